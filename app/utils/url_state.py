"""Query-string ⇄ SearchQuery codec.

Filter UIs are best effort, so a bad parameter never fails a request: the
offending value is dropped (or defaulted) and a warning is logged.

Accepted parameters:
    search | query   → text
    genre            → genre
    country          → country
    rtg | rating     → min_rating (0–10)
    yr | year        → year
    status           → status
    sort             → popularity | rating | newest | oldest | title
    page             → page (≥ 1)
    limit | pageSize → page_size (clamped to max_page_size)

Anything else is ignored.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping
from urllib.parse import urlencode

import structlog

from app.models.requests import DEFAULT_PAGE_SIZE, SearchQuery, SortOrder
from app.utils.exceptions import InvalidQueryError
from app.utils.sanitizer import clean_search_text

logger = structlog.get_logger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100


def _first(args: Mapping[str, Any], *keys: str) -> str | None:
    """First non-blank value among ``keys`` (lists take their first element)."""
    for key in keys:
        value = args.get(key)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return None


# ── Value parsers (raise InvalidQueryError) ───────────────────────────

def parse_year(value: str) -> int:
    try:
        year = int(value)
    except ValueError:
        raise InvalidQueryError("year", value, "not an integer") from None
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidQueryError("year", value, f"outside {MIN_YEAR}-{MAX_YEAR}")
    return year


def parse_rating(value: str) -> float:
    try:
        rating = float(value)
    except ValueError:
        raise InvalidQueryError("rating", value, "not a number") from None
    if rating != rating or not 0.0 <= rating <= 10.0:
        raise InvalidQueryError("rating", value, "outside 0-10")
    return rating


def parse_sort(value: str) -> SortOrder:
    try:
        return SortOrder(value.lower())
    except ValueError:
        raise InvalidQueryError("sort", value, "unknown sort order") from None


def parse_page(value: str) -> int:
    try:
        page = int(value)
    except ValueError:
        raise InvalidQueryError("page", value, "not an integer") from None
    if page < 1:
        raise InvalidQueryError("page", value, "must be >= 1")
    return page


def parse_page_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError:
        raise InvalidQueryError("page_size", value, "not an integer") from None
    if size < 1:
        raise InvalidQueryError("page_size", value, "must be >= 1")
    return size


def _recover(parser: Callable[[str], Any], raw: str | None, default: Any = None) -> Any:
    """Apply ``parser``; on InvalidQueryError log and fall back to ``default``."""
    if raw is None:
        return default
    try:
        return parser(raw)
    except InvalidQueryError as e:
        logger.warning("invalid_filter_dropped", field=e.field, value=str(e.value), reason=e.message)
        return default


# ── Public API ────────────────────────────────────────────────────────

def parse_search_args(
    args: Mapping[str, Any],
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = 100,
) -> SearchQuery:
    """Build a SearchQuery from query-string arguments.

    Args:
        args: Query-string mapping (e.g. ``request.args``).
        default_page_size: Page size when none is given.
        max_page_size: Upper bound for a requested page size.

    Returns:
        A valid SearchQuery; invalid parameters are dropped or defaulted.
    """
    page_size = _recover(parse_page_size, _first(args, "limit", "pageSize"), default_page_size)

    return SearchQuery(
        text=clean_search_text(_first(args, "search", "query")),
        genre=_first(args, "genre"),
        country=_first(args, "country"),
        min_rating=_recover(parse_rating, _first(args, "rtg", "rating")),
        year=_recover(parse_year, _first(args, "yr", "year")),
        status=_first(args, "status"),
        sort=_recover(parse_sort, _first(args, "sort"), SortOrder.POPULARITY),
        page=_recover(parse_page, _first(args, "page"), 1),
        page_size=min(page_size, max_page_size),
    )


def build_query_string(query: SearchQuery, default_page_size: int = DEFAULT_PAGE_SIZE) -> str:
    """Serialize a SearchQuery with the short public keys, omitting defaults.

    Examples:
        >>> build_query_string(SearchQuery(text="love", year=2020, page=2))
        'search=love&yr=2020&page=2'
    """
    params: list[tuple[str, str]] = []
    if query.text:
        params.append(("search", query.text))
    if query.genre:
        params.append(("genre", query.genre))
    if query.country:
        params.append(("country", query.country))
    if query.min_rating is not None:
        params.append(("rtg", f"{query.min_rating:g}"))
    if query.year is not None:
        params.append(("yr", str(query.year)))
    if query.status:
        params.append(("status", query.status))
    if query.sort != SortOrder.POPULARITY:
        params.append(("sort", query.sort.value))
    if query.page != 1:
        params.append(("page", str(query.page)))
    if query.page_size != default_page_size:
        params.append(("limit", str(query.page_size)))
    return urlencode(params)
