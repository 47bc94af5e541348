"""Query resolver — SearchQuery in, SearchResult out.

The resolver is the only component that knows the catalog's search
semantics. For every public operation it:

1. Translates the request into a backend-agnostic BackendQuery
   (country aliases expanded, rating converted to the store's scale,
   sort order expanded to concrete keys with a stable id tiebreaker)
2. Issues exactly one backend call
3. Maps raw records through the RecordMapper

Matching policy:
    text:    case-insensitive substring anywhere in title OR overview
    genre:   membership in the item's genre set (array or comma string)
    country: equality against any alias of the requested country
    status:  case-insensitive equality

Backend failures are not retried or swallowed here: BackendUnavailableError
and BackendQueryError propagate to the caller unchanged.

Usage:
    resolver = QueryResolver(backend)
    result = resolver.search(SearchQuery(text="love", genre="Romance"))
"""
from __future__ import annotations

import time

import structlog

from app.backends.base import BackendQuery, CatalogBackend, SortKey
from app.models.drama import Drama
from app.models.requests import SearchQuery, SortOrder
from app.models.responses import SearchResult
from app.services.record_mapper import RecordMapper
from app.utils.countries import country_aliases
from app.utils.records import split_genres

logger = structlog.get_logger(__name__)

_TIEBREAK = SortKey(field="id")

SORT_KEYS: dict[SortOrder, tuple[SortKey, ...]] = {
    SortOrder.POPULARITY: (
        SortKey(field="rating", descending=True),
        SortKey(field="year", descending=True),
        _TIEBREAK,
    ),
    SortOrder.RATING: (SortKey(field="rating", descending=True), _TIEBREAK),
    SortOrder.NEWEST: (SortKey(field="year", descending=True), _TIEBREAK),
    SortOrder.OLDEST: (SortKey(field="year"), _TIEBREAK),
    SortOrder.TITLE: (SortKey(field="title"), _TIEBREAK),
}


class QueryResolver:
    """Resolves catalog searches and lookups against one backend.

    Args:
        backend: Catalog store to query.
        mapper: RecordMapper used to build response models.
    """

    def __init__(self, backend: CatalogBackend, mapper: RecordMapper | None = None) -> None:
        self._backend = backend
        self._mapper = mapper or RecordMapper()

    @property
    def backend(self) -> CatalogBackend:
        return self._backend

    # ── Search ────────────────────────────────────────────────────────

    def search(self, query: SearchQuery) -> SearchResult:
        """Run a filtered, sorted, paginated search.

        Args:
            query: Normalized search request.

        Returns:
            SearchResult with at most ``query.page_size`` grid items. A page
            past the end returns no items and no error.

        Raises:
            BackendUnavailableError: The store could not be reached.
            BackendQueryError: The store rejected the query.
        """
        backend_query = self.to_backend_query(query)

        start = time.monotonic()
        page = self._backend.query_by_filters(backend_query)
        duration_ms = round((time.monotonic() - start) * 1000)

        items = [self._mapper.to_grid_item(record) for record in page.records[:query.page_size]]
        result = SearchResult.build(
            items=items,
            total=page.total,
            page=query.page,
            page_size=query.page_size,
            total_is_estimate=page.total_is_estimate,
        )

        logger.info(
            "catalog_search",
            filters=query.active_filters(),
            sort=query.sort.value,
            page=query.page,
            total=result.total,
            returned=len(items),
            estimated=result.total_is_estimate,
            duration_ms=duration_ms,
        )
        return result

    def to_backend_query(self, query: SearchQuery) -> BackendQuery:
        """Translate a public SearchQuery into the backend's vocabulary."""
        return BackendQuery(
            text=query.text or None,
            genre=query.genre.strip() if query.genre and query.genre.strip() else None,
            countries=country_aliases(query.country) if query.country and query.country.strip() else frozenset(),
            min_rating=(
                self._mapper.to_stored_rating(query.min_rating)
                if query.min_rating is not None
                else None
            ),
            year=query.year,
            status=query.status.strip() if query.status and query.status.strip() else None,
            order_by=SORT_KEYS[query.sort],
            offset=query.offset,
            limit=query.page_size,
        )

    # ── Detail ────────────────────────────────────────────────────────

    def get_by_id(self, drama_id: str) -> Drama | None:
        """Fetch one fully-populated drama.

        Args:
            drama_id: Opaque id previously returned by search.

        Returns:
            Drama, or None when no such id exists. Not-found is an expected
            outcome and is never raised.

        Raises:
            BackendUnavailableError: The store could not be reached.
        """
        drama_id = (drama_id or "").strip()
        if not drama_id:
            return None

        record = self._backend.get_record_by_id(drama_id)
        if record is None:
            logger.info("drama_not_found", drama_id=drama_id)
            return None

        if not record.get("id"):
            record = {**record, "id": drama_id}
        return self._mapper.to_drama(record)

    # ── Genres ────────────────────────────────────────────────────────

    def list_genres(self) -> list[str]:
        """Distinct genres across the catalog, sorted case-insensitively.

        Comma-joined values are split, names are trimmed, and duplicates
        differing only in case collapse to the first spelling seen in
        sorted order.
        """
        raw_values = self._backend.list_distinct_values("genre")

        genres: dict[str, str] = {}
        for value in sorted(raw_values):
            for name in split_genres(value):
                genres.setdefault(name.casefold(), name)

        result = sorted(genres.values(), key=lambda g: (g.casefold(), g))
        logger.debug("genres_listed", count=len(result))
        return result
