"""Catalog blueprint — drama grid, detail and genre routes.

Routes:
    GET /api/dramas          → Paginated, filterable grid
    GET /api/dramas/<id>     → One fully-populated drama
    GET /api/genres          → Distinct genres for the filter UI

Backend failures are not handled here: they propagate to the global
error handlers, which answer 503/504 so clients can tell "no matches"
(200 with empty items) from "search unavailable".
"""
from __future__ import annotations

import structlog
from flask import Blueprint, current_app, jsonify, request

from app.models.responses import DramaResponse, ErrorResponse, GenreListResponse
from app.services.query_resolver import QueryResolver
from app.utils.url_state import parse_search_args

logger = structlog.get_logger(__name__)

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


def _resolver() -> QueryResolver:
    return current_app.config["QUERY_RESOLVER"]


@catalog_bp.route("/dramas", methods=["GET"])
def search_dramas():
    """Search the catalog.

    Query string:
        search|query, genre, country, rtg|rating, yr|year, status,
        sort, page, limit|pageSize

    Response JSON:
        {
            "items": [{"id": "...", "title": "...", ...}],
            "total": 15,
            "page": 2,
            "pageSize": 10,
            "totalPages": 2,
            "totalIsEstimate": false
        }
    """
    settings = current_app.config["SETTINGS"]
    query = parse_search_args(
        request.args,
        default_page_size=settings.DEFAULT_PAGE_SIZE,
        max_page_size=settings.MAX_PAGE_SIZE,
    )

    result = _resolver().search(query)
    return jsonify(result.model_dump(mode="json", by_alias=True))


@catalog_bp.route("/dramas/<drama_id>", methods=["GET"])
def get_drama(drama_id: str):
    """Fetch one drama by id.

    Response JSON:
        200 { "item": {...} }
        404 { "success": false, "error": "not_found", "message": "..." }
    """
    drama = _resolver().get_by_id(drama_id)
    if drama is None:
        error = ErrorResponse(error="not_found", message=f"Drama '{drama_id}' not found")
        return jsonify(error.model_dump()), 404

    return jsonify(DramaResponse(item=drama).model_dump(mode="json", by_alias=True))


@catalog_bp.route("/genres", methods=["GET"])
def list_genres():
    """List genres for the filter UI.

    Response JSON:
        { "genres": ["Action", "Comedy", "Romance"] }
    """
    genres = _resolver().list_genres()
    return jsonify(GenreListResponse(genres=genres).model_dump(by_alias=True))
