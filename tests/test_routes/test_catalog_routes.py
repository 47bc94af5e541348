"""Integration tests for the HTTP surface (catalog, ads, health)."""
from unittest.mock import MagicMock

import pytest

from app import create_app
from app.backends.base import CatalogBackend
from app.utils.exceptions import (
    BackendQueryError,
    BackendRateLimitError,
    BackendUnavailableError,
)


@pytest.fixture
def failing_backend():
    """A backend whose queries can be made to fail per test."""
    backend = MagicMock(spec=CatalogBackend)
    backend.name = "mock"
    backend.health_check.return_value = True
    return backend


@pytest.fixture
def failing_client(settings, failing_backend):
    app = create_app(settings=settings, backend=failing_backend)
    app.config["TESTING"] = True
    return app.test_client()


# ── /api/dramas ───────────────────────────────────────────────────────


class TestSearchRoute:
    """Tests for GET /api/dramas."""

    def test_filtered_second_page(self, client):
        response = client.get("/api/dramas?search=love&genre=Romance&page=2&limit=10")

        assert response.status_code == 200
        data = response.get_json()
        assert data["total"] == 15
        assert data["totalPages"] == 2
        assert data["page"] == 2
        assert data["pageSize"] == 10
        assert data["totalIsEstimate"] is False
        assert len(data["items"]) == 5

    def test_item_shape_is_camel_case(self, client):
        item = client.get("/api/dramas?limit=1").get_json()["items"][0]
        assert set(item) == {"id", "title", "posterUrl", "releaseYear", "rating", "country", "genres"}

    def test_default_page_size(self, client):
        data = client.get("/api/dramas").get_json()
        assert data["pageSize"] == 28
        assert len(data["items"]) == 25

    def test_invalid_filter_is_dropped(self, client):
        data = client.get("/api/dramas?yr=abc&rtg=99").get_json()
        assert data["total"] == 25

    def test_country_aliases(self, client):
        by_code = client.get("/api/dramas?country=KR").get_json()
        by_name = client.get("/api/dramas?country=South%20Korea").get_json()
        assert by_code["total"] == by_name["total"] == 17

    def test_page_past_end(self, client):
        data = client.get("/api/dramas?page=99").get_json()
        assert data["items"] == []
        assert data["total"] == 25

    def test_post_not_allowed(self, client):
        response = client.post("/api/dramas")
        assert response.status_code == 405
        assert response.get_json()["error"] == "method_not_allowed"


# ── /api/dramas/<id> ─────────────────────────────────────────────────


class TestDetailRoute:
    """Tests for GET /api/dramas/<id>."""

    def test_found(self, client):
        response = client.get("/api/dramas/d03")

        assert response.status_code == 200
        item = response.get_json()["item"]
        assert item["id"] == "d03"
        assert item["title"] == "Love Story 3"
        assert item["genres"] == ["Romance", "Drama"]
        assert "externalLinks" in item

    def test_not_found(self, client):
        response = client.get("/api/dramas/missing")

        assert response.status_code == 404
        data = response.get_json()
        assert data["success"] is False
        assert data["error"] == "not_found"


# ── /api/genres ───────────────────────────────────────────────────────


def test_genres_route(client):
    response = client.get("/api/genres")
    assert response.status_code == 200
    assert response.get_json() == {"genres": ["Action", "Drama", "Romance"]}


# ── Backend failures ─────────────────────────────────────────────────


class TestBackendFailures:
    """Backend errors surface as errors, never as empty results."""

    def test_unavailable_is_503(self, failing_client, failing_backend):
        failing_backend.query_by_filters.side_effect = BackendUnavailableError("down", backend_name="mock")

        response = failing_client.get("/api/dramas?search=love")

        assert response.status_code == 503
        data = response.get_json()
        assert data["success"] is False
        assert data["error"] == "backend_unavailable"

    def test_rate_limit_sets_retry_after(self, failing_client, failing_backend):
        failing_backend.query_by_filters.side_effect = BackendRateLimitError("mock", retry_after=7)

        response = failing_client.get("/api/dramas")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "7"

    def test_query_error_is_502(self, failing_client, failing_backend):
        failing_backend.query_by_filters.side_effect = BackendQueryError("bad column", backend_name="mock")

        response = failing_client.get("/api/dramas")

        assert response.status_code == 502
        assert response.get_json()["error"] == "backend_query_error"

    def test_detail_unavailable(self, failing_client, failing_backend):
        failing_backend.get_record_by_id.side_effect = BackendUnavailableError("down", backend_name="mock")
        assert failing_client.get("/api/dramas/d01").status_code == 503

    def test_unexpected_error_is_500(self, failing_client, failing_backend):
        failing_backend.list_distinct_values.side_effect = RuntimeError("boom")

        response = failing_client.get("/api/genres")

        assert response.status_code == 500
        assert response.get_json()["error"] == "internal_error"


# ── /api/ads ─────────────────────────────────────────────────────────


class TestAdsRoute:
    """Tests for GET /api/ads/<placement>."""

    def test_ads_disabled_by_default(self, client):
        data = client.get("/api/ads/banner").get_json()
        assert data == {"platform": "none", "placement": "banner", "params": {}}

    def test_unknown_placement(self, client):
        response = client.get("/api/ads/popup")
        assert response.status_code == 404
        assert response.get_json()["error"] == "not_found"


# ── /health and request ids ──────────────────────────────────────────


class TestHealth:
    """Tests for GET /health."""

    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["backend"] == "memory"
        assert data["dependencies"] == {"catalog_backend": "ok"}

    def test_degraded(self, failing_client, failing_backend):
        failing_backend.health_check.return_value = False

        response = failing_client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["status"] == "degraded"


class TestRequestId:
    """Tests for the X-Request-ID middleware."""

    def test_generated_when_absent(self, client):
        assert client.get("/health").headers["X-Request-ID"]

    def test_valid_incoming_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_invalid_incoming_id_replaced(self, client):
        response = client.get("/health", headers={"X-Request-ID": "bad id; drop table"})
        assert response.headers["X-Request-ID"] != "bad id; drop table"
