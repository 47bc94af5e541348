"""Shared pytest fixtures for the catalog test suite.

Provides reusable fixtures for:
- Settings overrides (memory backend, console logs)
- A deterministic 25-drama catalog
- MemoryBackend / QueryResolver instances over that catalog
- Flask app and test client
"""
import pytest

from app import create_app
from app.backends.memory_backend import MemoryBackend
from app.config import Settings
from app.services.query_resolver import QueryResolver


def make_catalog() -> list[dict]:
    """Build 25 dramas where exactly 15 match text "love" AND genre "Romance".

    - d00–d14: "Love Story N", Romance (array and comma-string genres alternate)
    - d15–d19: "Love in Action N", Action only (text matches, genre doesn't)
    - d20–d24: "Hospital N", Romance (genre matches, text doesn't)

    Countries cycle KR / South Korea / Japan; ratings and years vary.
    """
    countries = ["KR", "South Korea", "Japan"]
    records = []
    for i in range(25):
        if i < 15:
            title = f"Love Story {i}"
            genres = ["Romance", "Drama"] if i % 2 == 0 else "Romance, Drama"
        elif i < 20:
            title = f"Love in Action {i}"
            genres = ["Action"]
        else:
            title = f"Hospital {i}"
            genres = ["Romance"]
        records.append({
            "id": f"d{i:02d}",
            "title": title,
            "overview": "Doctors at work" if i >= 20 else "",
            "genres": genres,
            "country": countries[i % 3],
            "rating": float(i % 10) + 0.5,
            "year": 2000 + i,
            "status": "Ended" if i % 4 else "Ongoing",
        })
    return records


@pytest.fixture
def settings():
    """Create test settings that ignore the local .env file."""
    return Settings(
        _env_file=None,
        CATALOG_BACKEND="memory",
        LOG_FORMAT="console",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def backend(catalog):
    """MemoryBackend over the 25-drama catalog."""
    return MemoryBackend(catalog)


@pytest.fixture
def resolver(backend):
    return QueryResolver(backend)


@pytest.fixture
def app(settings, backend):
    """Create a Flask application instance for testing."""
    app = create_app(settings=settings, backend=backend)
    app.config["TESTING"] = True
    yield app


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
