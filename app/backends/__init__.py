"""Catalog backends and the factory selecting one from settings."""
from __future__ import annotations

import structlog

from app.backends.base import BackendPage, BackendQuery, CatalogBackend, FieldMap, SortKey
from app.config import Settings

logger = structlog.get_logger(__name__)

__all__ = [
    "BackendPage",
    "BackendQuery",
    "CatalogBackend",
    "FieldMap",
    "SortKey",
    "build_backend",
    "field_map_from_settings",
]


def field_map_from_settings(settings: Settings) -> FieldMap:
    return FieldMap(
        id=settings.FIELD_ID,
        title=settings.FIELD_TITLE,
        overview=settings.FIELD_OVERVIEW,
        genre=settings.FIELD_GENRE,
        country=settings.FIELD_COUNTRY,
        status=settings.FIELD_STATUS,
        rating=settings.FIELD_RATING,
        year=settings.FIELD_YEAR,
    )


def build_backend(settings: Settings) -> CatalogBackend:
    """Instantiate the backend named by ``CATALOG_BACKEND``."""
    field_map = field_map_from_settings(settings)

    if settings.CATALOG_BACKEND == "supabase":
        from app.backends.supabase_backend import SupabaseBackend

        backend: CatalogBackend = SupabaseBackend(
            url=settings.SUPABASE_URL,
            api_key=settings.SUPABASE_ANON_KEY,
            table=settings.SUPABASE_TABLE,
            field_map=field_map,
            genre_column=settings.SUPABASE_GENRE_COLUMN,
            count_mode=settings.SUPABASE_COUNT_MODE,
            timeout=settings.HTTP_TIMEOUT,
            max_retries=settings.HTTP_MAX_RETRIES,
        )
    else:
        from app.backends.memory_backend import MemoryBackend

        backend = MemoryBackend.from_fixture(settings.CATALOG_FIXTURE_PATH, field_map=field_map)

    logger.info("backend_selected", backend=backend.name)
    return backend
