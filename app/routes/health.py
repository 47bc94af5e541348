"""Health check endpoint for application and backend monitoring.

Exposes GET /health returning the status of the catalog backend.
Used by Docker HEALTHCHECK and monitoring systems.

Response format:
    {
        "status": "healthy" | "degraded",
        "version": "1.0.0",
        "dependencies": {
            "catalog_backend": "ok" | "error: ..."
        }
    }
"""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify

import structlog

logger = structlog.get_logger(__name__)

health_bp = Blueprint("health", __name__)

APP_VERSION = "1.0.0"


@health_bp.route("/health", methods=["GET"])
def health_check():
    """Application health check endpoint.

    Returns:
        200 if the catalog backend is reachable.
        503 otherwise.
    """
    checks: dict[str, str] = {}

    backend = current_app.config["CATALOG_BACKEND"]
    try:
        checks["catalog_backend"] = "ok" if backend.health_check() else "error: unreachable"
    except Exception as e:
        logger.warning("health_check_failed", dependency="catalog_backend", error=str(e))
        checks["catalog_backend"] = f"error: {str(e)}"

    all_healthy = all(v == "ok" for v in checks.values())

    response = {
        "status": "healthy" if all_healthy else "degraded",
        "version": APP_VERSION,
        "backend": backend.name,
        "dependencies": checks,
    }

    status_code = 200 if all_healthy else 503
    return jsonify(response), status_code
