"""Supabase (PostgREST) catalog backend.

Reads the drama table through Supabase's REST interface using httpx.
Base URL: {SUPABASE_URL}/rest/v1
Auth: anon key sent as both ``apikey`` and bearer token (reads are public)

Features:
- Persistent connection pooling via httpx.Client
- Automatic retry with exponential backoff (429, 5xx, timeouts)
- Exact or planned/estimated counts via the ``Prefer: count=...`` header
- Structured logging for every request/response
- Failure mapping onto BackendUnavailableError / BackendQueryError

Filter translation:
    text     → or=(title.ilike."*t*",overview.ilike."*t*")
    genre    → ov.{every stored spelling of g} on array columns,
               anchored imatch on comma strings
    country  → anchored imatch over every alias (kr|South Korea|...)
    rating   → gte.<n>        year → eq.<n>        status → ilike.<s>

Every text comparison is case-insensitive. Array containment is not, so
array genres are expanded to the spellings actually stored (looked up
through ``list_distinct_values`` and cached for GENRE_SPELLINGS_TTL).
"""
from __future__ import annotations

import re
import time
from typing import Any, Literal

import httpx
import structlog

from app.backends.base import BackendPage, BackendQuery, CatalogBackend, FieldMap
from app.utils.exceptions import (
    BackendError,
    BackendQueryError,
    BackendRateLimitError,
    BackendTimeoutError,
    BackendUnavailableError,
)

logger = structlog.get_logger(__name__)

# HTTP status codes that trigger automatic retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
AUTH_STATUS_CODES = {401, 403}
RANGE_NOT_SATISFIABLE = 416

DISTINCT_SCAN_PAGE_SIZE = 1000
GENRE_SPELLINGS_TTL = 300.0  # seconds

_LIKE_SPECIAL = re.compile(r"([%_\\])")
_REGEX_SPECIAL = re.compile(r"([.^$|?*+()\[\]{}\\])")


class SupabaseBackend(CatalogBackend):
    """Catalog store reading a Supabase table over PostgREST.

    Args:
        url: Supabase project URL (no trailing slash).
        api_key: Anon (or service-role) key.
        table: Table holding the drama rows.
        field_map: Column names for the logical catalog fields.
        genre_column: ``array`` for text[]/jsonb columns, ``text`` for
            comma-joined strings.
        count_mode: ``exact``, ``planned`` or ``estimated``.
        timeout: HTTP request timeout in seconds.
        max_retries: Maximum number of attempts per request.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    name = "supabase"

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = "korean_dramas",
        field_map: FieldMap | None = None,
        genre_column: Literal["array", "text"] = "array",
        count_mode: Literal["exact", "planned", "estimated"] = "exact",
        timeout: int = 10,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(field_map)
        self._table = table
        self._genre_column = genre_column
        self._count_mode = count_mode
        self._max_retries = max(1, max_retries)
        self._timeout = timeout
        self._genre_spellings_cache: tuple[float, set[str]] | None = None

        self._client = httpx.Client(
            base_url=f"{url.rstrip('/')}/rest/v1",
            timeout=httpx.Timeout(timeout, connect=5),
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "User-Agent": "DramaCatalog/1.0",
            },
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client and release connections."""
        self._client.close()

    # ── Queries ───────────────────────────────────────────────────────

    def query_by_filters(self, query: BackendQuery) -> BackendPage:
        params: list[tuple[str, str]] = [("select", "*")]
        params.extend(self._filter_params(query))
        if query.order_by:
            params.append(("order", self._order_param(query)))
        params.append(("offset", str(query.offset)))
        params.append(("limit", str(query.limit)))

        response = self._request(
            params,
            headers={"Prefer": f"count={self._count_mode}"},
            allow_statuses={RANGE_NOT_SATISFIABLE},
        )

        total = self._parse_total(response.headers.get("Content-Range"))
        if response.status_code == RANGE_NOT_SATISFIABLE:
            # Offset past the last row: an empty page, not an error
            return BackendPage(
                records=[],
                total=total or 0,
                total_is_estimate=self._count_mode != "exact",
            )

        records = response.json()
        if total is None:
            # No count header; the page itself is a lower bound
            logger.warning("count_missing", backend=self.name, table=self._table)
            return BackendPage(
                records=records,
                total=query.offset + len(records),
                total_is_estimate=True,
            )

        return BackendPage(
            records=records,
            total=total,
            total_is_estimate=self._count_mode != "exact",
        )

    def get_record_by_id(self, record_id: str) -> dict[str, Any] | None:
        column = self.field_map.id
        response = self._request(
            [("select", "*"), (column, f"eq.{record_id}"), ("limit", "1")]
        )
        rows = response.json()
        return rows[0] if isinstance(rows, list) and rows else None

    def list_distinct_values(self, field: str) -> set[str]:
        column = self.field_map.column(field)
        values: set[str] = set()
        offset = 0
        while True:
            response = self._request([
                ("select", column),
                ("order", f"{self.field_map.id}.asc"),
                ("offset", str(offset)),
                ("limit", str(DISTINCT_SCAN_PAGE_SIZE)),
            ])
            rows = response.json()
            for row in rows:
                value = row.get(column)
                if isinstance(value, list):
                    values.update(str(v) for v in value if v is not None)
                elif value not in (None, ""):
                    values.add(str(value))
            if len(rows) < DISTINCT_SCAN_PAGE_SIZE:
                return values
            offset += DISTINCT_SCAN_PAGE_SIZE

    def health_check(self) -> bool:
        """Verify the table is reachable with a single attempt (no backoff)."""
        try:
            self._request([("select", self.field_map.id), ("limit", "1")], attempts=1)
            return True
        except BackendError as e:
            logger.warning("health_check_failed", backend=self.name, error=e.message)
            return False

    # ── Query Translation ─────────────────────────────────────────────

    def _filter_params(self, query: BackendQuery) -> list[tuple[str, str]]:
        fm = self.field_map
        params: list[tuple[str, str]] = []

        if query.text:
            pattern = _quote(f"*{_like_escape(query.text)}*")
            params.append(("or", f"({fm.title}.ilike.{pattern},{fm.overview}.ilike.{pattern})"))

        if query.genre:
            genre = query.genre.strip()
            if self._genre_column == "array":
                spellings = ",".join(_quote(g) for g in self._genre_spellings(genre))
                params.append((fm.genre, f"ov.{{{spellings}}}"))
            else:
                params.append((fm.genre, f"imatch.(^|,)\\s*{_regex_escape(genre)}\\s*(,|$)"))

        if query.countries:
            names = "|".join(_regex_escape(c) for c in sorted(query.countries))
            params.append((fm.country, f"imatch.^\\s*({names})\\s*$"))

        if query.min_rating is not None:
            params.append((fm.rating, f"gte.{query.min_rating:g}"))

        if query.year is not None:
            params.append((fm.year, f"eq.{query.year}"))

        if query.status:
            # ilike without wildcards: case-insensitive equality
            params.append((fm.status, f"ilike.{_like_escape(query.status.strip())}"))

        return params

    def _genre_spellings(self, genre: str) -> list[str]:
        """Stored spellings equal to ``genre`` ignoring case, plus ``genre`` itself."""
        now = time.monotonic()
        cached = self._genre_spellings_cache
        if cached is None or now - cached[0] > GENRE_SPELLINGS_TTL:
            cached = (now, self.list_distinct_values("genre"))
            self._genre_spellings_cache = cached

        wanted = genre.casefold()
        spellings = {g for g in cached[1] if g.strip().casefold() == wanted}
        spellings.add(genre)
        return sorted(spellings)

    def _order_param(self, query: BackendQuery) -> str:
        return ",".join(
            f"{self.field_map.column(key.field)}.{'desc' if key.descending else 'asc'}.nullslast"
            for key in query.order_by
        )

    @staticmethod
    def _parse_total(content_range: str | None) -> int | None:
        """Parse the total from ``0-27/153`` or ``*/153``."""
        if not content_range or "/" not in content_range:
            return None
        total = content_range.rsplit("/", 1)[1].strip()
        return int(total) if total.isdigit() else None

    # ── Internal Methods ──────────────────────────────────────────────

    def _request(
        self,
        params: list[tuple[str, str]],
        headers: dict[str, str] | None = None,
        allow_statuses: set[int] | None = None,
        attempts: int | None = None,
    ) -> httpx.Response:
        """GET the table with exponential backoff retry.

        Args:
            params: PostgREST query parameters (repeated keys allowed).
            headers: Extra request headers.
            allow_statuses: Non-2xx statuses returned to the caller as-is.
            attempts: Overrides the configured max_retries.

        Returns:
            The successful httpx.Response.

        Raises:
            BackendRateLimitError: Still rate limited after all retries.
            BackendTimeoutError: Still timing out after all retries.
            BackendUnavailableError: Transport, auth or 5xx failures.
            BackendQueryError: The query was rejected (other 4xx).
        """
        endpoint = f"/{self._table}"
        max_attempts = attempts or self._max_retries
        allow_statuses = allow_statuses or set()

        for attempt in range(1, max_attempts + 1):
            try:
                logger.info(
                    "backend_request",
                    backend=self.name,
                    table=self._table,
                    attempt=attempt,
                )

                start = time.monotonic()
                response = self._client.get(endpoint, params=params, headers=headers)
                duration_ms = round((time.monotonic() - start) * 1000)

                logger.info(
                    "backend_response",
                    backend=self.name,
                    table=self._table,
                    status=response.status_code,
                    duration_ms=duration_ms,
                )

                status = response.status_code

                if status == 429:
                    retry_after = _retry_after(response)
                    if attempt < max_attempts:
                        logger.warning(
                            "rate_limited",
                            backend=self.name,
                            retry_after=retry_after,
                            attempt=attempt,
                        )
                        time.sleep(retry_after)
                        continue
                    raise BackendRateLimitError(backend_name=self.name, retry_after=retry_after)

                if status in RETRYABLE_STATUS_CODES:
                    if attempt < max_attempts:
                        backoff = 2 ** (attempt - 1)  # 1s, 2s, 4s
                        logger.warning(
                            "retryable_error",
                            backend=self.name,
                            status=status,
                            backoff=backoff,
                            attempt=attempt,
                        )
                        time.sleep(backoff)
                        continue
                    raise BackendUnavailableError(
                        message=f"{self.name}: HTTP {status} from {endpoint}",
                        backend_name=self.name,
                        upstream_status=status,
                    )

                if status in allow_statuses:
                    return response

                if status in AUTH_STATUS_CODES:
                    raise BackendUnavailableError(
                        message=f"{self.name}: access denied (HTTP {status})",
                        backend_name=self.name,
                        upstream_status=status,
                    )

                if status >= 400:
                    raise BackendQueryError(
                        message=f"{self.name}: query rejected (HTTP {status}): {_error_detail(response)}",
                        backend_name=self.name,
                        upstream_status=status,
                    )

                return response

            except httpx.TimeoutException as e:
                if attempt < max_attempts:
                    backoff = 2 ** (attempt - 1)
                    logger.warning(
                        "timeout_retry",
                        backend=self.name,
                        backoff=backoff,
                        attempt=attempt,
                    )
                    time.sleep(backoff)
                    continue
                raise BackendTimeoutError(backend_name=self.name, timeout=self._timeout) from e

            except httpx.HTTPError as e:
                if attempt < max_attempts:
                    backoff = 2 ** (attempt - 1)
                    logger.warning(
                        "http_error_retry",
                        backend=self.name,
                        error=str(e),
                        backoff=backoff,
                        attempt=attempt,
                    )
                    time.sleep(backoff)
                    continue
                raise BackendUnavailableError(
                    message=f"{self.name}: {type(e).__name__}: {e}",
                    backend_name=self.name,
                ) from e

        raise BackendUnavailableError(
            message=f"{self.name}: all {max_attempts} attempts failed for {endpoint}",
            backend_name=self.name,
        )


def _like_escape(text: str) -> str:
    """Make a user-supplied value literal inside an ilike pattern.

    ``%``, ``_`` and ``\\`` are backslash-escaped. PostgREST rewrites every
    ``*`` to ``%``, so a literal asterisk becomes the single-character
    wildcard ``_``, which still matches it.
    """
    return _LIKE_SPECIAL.sub(r"\\\1", text).replace("*", "_")


def _regex_escape(text: str) -> str:
    """Escape POSIX regex metacharacters for imatch filters."""
    return _REGEX_SPECIAL.sub(r"\\\1", text)


def _quote(value: str) -> str:
    """Double-quote a PostgREST value so commas and parentheses stay literal."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("hint") or body)
    return str(body)[:200]


def _retry_after(response: httpx.Response) -> float:
    try:
        return max(0.0, float(response.headers.get("Retry-After", 1)))
    except ValueError:
        return 1.0
