"""Custom exception hierarchy for the drama catalog.

All application-specific exceptions inherit from CatalogError,
enabling uniform error handling in the global error handlers.

"Not found" is deliberately absent: an unknown drama id is an expected
outcome and is returned as ``None`` rather than raised.

Hierarchy:
    CatalogError (base)
    ├── BackendError                 — Catalog store failures
    │   ├── BackendUnavailableError  — Network / auth / 5xx failures
    │   │   ├── BackendTimeoutError  — Request timeout
    │   │   └── BackendRateLimitError — 429 Too Many Requests
    │   └── BackendQueryError        — Store rejected the query (4xx)
    └── InvalidQueryError            — Malformed filter value
"""
from __future__ import annotations


class CatalogError(Exception):
    """Base exception for the catalog application."""

    error_code = "internal_error"

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


# ── Backend Errors ────────────────────────────────────────────────────

class BackendError(CatalogError):
    """Raised when the catalog store call fails."""

    error_code = "backend_error"

    def __init__(
        self,
        message: str,
        backend_name: str = "unknown",
        status_code: int = 502,
        upstream_status: int | None = None,
    ) -> None:
        self.backend_name = backend_name
        self.upstream_status = upstream_status
        super().__init__(message, status_code)


class BackendUnavailableError(BackendError):
    """Raised when the catalog store cannot be reached or refuses access."""

    error_code = "backend_unavailable"

    def __init__(
        self,
        message: str,
        backend_name: str = "unknown",
        status_code: int = 503,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message, backend_name, status_code, upstream_status)


class BackendTimeoutError(BackendUnavailableError):
    """Raised when a catalog store request times out."""

    def __init__(self, backend_name: str, timeout: float) -> None:
        super().__init__(
            message=f"{backend_name} request timed out after {timeout}s.",
            backend_name=backend_name,
            status_code=504,
        )


class BackendRateLimitError(BackendUnavailableError):
    """Raised when the catalog store keeps answering 429."""

    def __init__(self, backend_name: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(
            message=f"{backend_name} rate limit exceeded. Try again shortly.",
            backend_name=backend_name,
            upstream_status=429,
        )


class BackendQueryError(BackendError):
    """Raised when the catalog store rejects a query as malformed."""

    error_code = "backend_query_error"


# ── Query Errors ──────────────────────────────────────────────────────

class InvalidQueryError(CatalogError):
    """Raised when a single filter value cannot be parsed."""

    error_code = "invalid_query"

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        super().__init__(
            message=f"Invalid value for '{field}': {value!r} ({reason})",
            status_code=422,
        )
