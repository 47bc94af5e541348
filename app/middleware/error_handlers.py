"""JSON error responses for the catalog API.

Every failure leaves the API as
    { "success": false, "error": "<code>", "message": "..." }

Backend failures keep their own codes ("backend_unavailable",
"backend_query_error") so the UI can render "search temporarily
unavailable" instead of "no results".

Usage:
    from app.middleware.error_handlers import register_error_handlers
    register_error_handlers(app)
"""
from __future__ import annotations

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

import structlog

from app.models.responses import ErrorResponse
from app.utils.exceptions import BackendRateLimitError, BackendUnavailableError, CatalogError

logger = structlog.get_logger(__name__)

# status → (error code, message) for plain HTTP errors
HTTP_ERRORS: dict[int, tuple[str, str]] = {
    400: ("bad_request", "Bad request"),
    404: ("not_found", "Not found"),
    405: ("method_not_allowed", "Method not allowed"),
}


def _error_response(error: str, message: str, code: int, headers: dict[str, str] | None = None):
    """Render an ErrorResponse body.

    Returns:
        Tuple of (response, status_code, headers).
    """
    body = ErrorResponse(error=error, message=message)
    return jsonify(body.model_dump()), code, headers or {}


def register_error_handlers(app: Flask) -> None:
    """Attach the catalog's error handlers to ``app``."""

    # ── Plain HTTP errors ─────────────────────────────────────────────

    def http_error(e: HTTPException):
        error, message = HTTP_ERRORS[e.code]
        return _error_response(error, message, e.code)

    for status in HTTP_ERRORS:
        app.register_error_handler(status, http_error)

    @app.errorhandler(HTTPException)
    def other_http_error(e: HTTPException):
        return _error_response("http_error", e.description or "Unknown error", e.code or 500)

    # ── Catalog errors ────────────────────────────────────────────────

    @app.errorhandler(CatalogError)
    def catalog_error(e: CatalogError):
        # an unreachable store is an incident; a rejected query is not
        log = logger.error if isinstance(e, BackendUnavailableError) else logger.warning
        log(
            "catalog_error",
            error=e.message,
            error_code=e.error_code,
            backend=getattr(e, "backend_name", None),
            upstream_status=getattr(e, "upstream_status", None),
            status_code=e.status_code,
        )

        headers = {}
        if isinstance(e, BackendRateLimitError) and e.retry_after:
            headers["Retry-After"] = str(int(e.retry_after))
        return _error_response(e.error_code, e.message, e.status_code, headers)

    # ── Anything else ─────────────────────────────────────────────────

    @app.errorhandler(Exception)
    def unexpected_error(e: Exception):
        logger.error(
            "unexpected_error",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return _error_response("internal_error", "An unexpected error occurred", 500)
