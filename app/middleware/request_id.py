"""Request ID middleware for log correlation.

Injects a unique X-Request-ID into every incoming request so all log lines
of one catalog request can be correlated. A client-supplied X-Request-ID is
reused when it looks sane; otherwise a new UUID is generated.

Usage:
    from app.middleware.request_id import init_request_id_middleware
    init_request_id_middleware(app)
"""
from __future__ import annotations

import re
import time
import uuid

import structlog
from flask import Flask, g, request

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def init_request_id_middleware(app: Flask) -> None:
    """Register before/after hooks for request ID tracing.

    Args:
        app: Flask application instance.
    """
    logger = structlog.get_logger(__name__)

    @app.before_request
    def inject_request_id() -> None:
        """Bind request ID, method and path to the structlog context."""
        incoming = request.headers.get("X-Request-ID", "")
        request_id = incoming if _VALID_REQUEST_ID.match(incoming) else str(uuid.uuid4())
        g.request_id = request_id
        g.request_started = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
        )

        logger.debug("request_started", query=request.query_string.decode(errors="replace"))

    @app.after_request
    def attach_request_id(response):
        """Attach request ID to response headers and log completion."""
        response.headers["X-Request-ID"] = g.get("request_id", "unknown")

        started = g.get("request_started")
        duration_ms = round((time.monotonic() - started) * 1000) if started else None
        logger.info(
            "request_completed",
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response
