"""Ads blueprint — which ad vendor to render per placement.

Routes:
    GET /api/ads/<placement> → { "platform": "adsense", "placement": "banner", "params": {...} }
"""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from app.models.responses import ErrorResponse
from app.services.ad_selector import AdSelector, Placement

ads_bp = Blueprint("ads", __name__, url_prefix="/api")


@ads_bp.route("/ads/<placement>", methods=["GET"])
def get_ad_placement(placement: str):
    """Resolve the ad slot for a banner, sidebar or footer placement."""
    if placement not in {p.value for p in Placement}:
        error = ErrorResponse(error="not_found", message=f"Unknown placement '{placement}'")
        return jsonify(error.model_dump()), 404

    selector: AdSelector = current_app.config["AD_SELECTOR"]
    return jsonify(selector.select(placement).model_dump(mode="json"))
