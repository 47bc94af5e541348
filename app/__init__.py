"""Korean Drama Catalog: a read-only JSON API over the drama catalog.

`create_app()` wires settings, logging, middleware, the catalog backend,
the query resolver and the HTTP blueprints into one Flask application.
"""
from __future__ import annotations

import structlog
from flask import Flask
from flask_cors import CORS

from app.backends import CatalogBackend, build_backend
from app.config import get_settings, Settings
from app.utils.logger import setup_logging
from app.middleware.request_id import init_request_id_middleware
from app.middleware.error_handlers import register_error_handlers


def create_app(
    settings: Settings | None = None,
    backend: CatalogBackend | None = None,
) -> Flask:
    """Build the catalog application.

    Order matters: logging is configured before anything logs, services
    exist before the startup check, and blueprints come last.

    Args:
        settings: Settings override (defaults to the cached env settings).
        backend: Catalog backend override (defaults to ``build_backend``).

    Returns:
        Configured Flask application instance.
    """
    settings = settings or get_settings()

    # ── Logging (must be first so all subsequent logs are formatted) ──
    setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
    logger = structlog.get_logger(__name__)

    # ── Flask app ─────────────────────────────────────────────────────
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.SECRET_KEY
    app.config["FLASK_DEBUG"] = settings.FLASK_DEBUG
    app.json.sort_keys = False

    app.config["SETTINGS"] = settings

    # ── Middleware ─────────────────────────────────────────────────────
    init_request_id_middleware(app)
    register_error_handlers(app)

    # ── CORS (public, read-only API) ──────────────────────────────────
    CORS(app, resources={
        r"/api/*": {"origins": "*", "methods": ["GET"]},
        r"/health": {"origins": "*"},
    })

    # ── Services ──────────────────────────────────────────────────────
    _init_services(app, settings, backend)

    # ── Startup validation ────────────────────────────────────────────
    _validate_startup(app, logger)

    # ── Blueprints ────────────────────────────────────────────────────
    from app.routes.health import health_bp
    from app.routes.catalog import catalog_bp
    from app.routes.ads import ads_bp
    app.register_blueprint(health_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(ads_bp)

    logger.info(
        "app_started",
        env=settings.FLASK_ENV,
        backend=app.config["CATALOG_BACKEND"].name,
        log_level=settings.LOG_LEVEL,
    )

    return app


def _init_services(app: Flask, settings: Settings, backend: CatalogBackend | None) -> None:
    """Initialize the catalog backend, query resolver and ad selector.

    All services are stored on `app.config` for access via `current_app`.

    Args:
        app: Flask application instance.
        settings: Application settings.
        backend: Optional pre-built backend.
    """
    from app.services.ad_selector import AdSelector
    from app.services.query_resolver import QueryResolver
    from app.services.record_mapper import RecordMapper

    logger = structlog.get_logger(__name__)
    logger.info("initializing_services")

    backend = backend or build_backend(settings)

    mapper = RecordMapper(
        rating_scale=settings.SOURCE_RATING_SCALE,
        image_base_url=settings.IMAGE_BASE_URL,
    )
    resolver = QueryResolver(backend, mapper)

    app.config["CATALOG_BACKEND"] = backend
    app.config["QUERY_RESOLVER"] = resolver
    app.config["AD_SELECTOR"] = AdSelector(settings)

    logger.info("services_initialized")


def _validate_startup(app: Flask, logger) -> None:
    """Check backend reachability at startup (single attempt, warning only).

    Args:
        app: Flask application with services initialized.
        logger: Structlog logger instance.
    """
    logger.info("startup_validation", phase="begin")

    backend: CatalogBackend = app.config["CATALOG_BACKEND"]
    if backend.health_check():
        logger.info("startup_check", backend=backend.name, status="ok")
    else:
        logger.warning("startup_check_failed", backend=backend.name)

    logger.info("startup_validation", phase="complete")
