"""
HTTP routes for the model gateway and catalog.
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from ..core.gateway import error_envelope
from ..core.selection import compare_models

api_bp = Blueprint("api", __name__)


@api_bp.route("/multi-model", methods=["POST"])
def multi_model():
    """Dispatch one prompt to the requested model."""
    gateway = current_app.extensions["gateway"]
    body, status = gateway.handle(request.get_json(silent=True))
    return jsonify(body), status


@api_bp.route("/multi-model", methods=["GET"])
def multi_model_status():
    """Readiness probe for the gateway."""
    return jsonify({
        "status": "Multi-model API ready",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


@api_bp.route("/models")
def list_models():
    """List the catalog in catalog order."""
    gateway = current_app.extensions["gateway"]
    return jsonify({"models": [model.to_dict() for model in gateway.catalog]})


@api_bp.route("/models/compare")
def compare():
    """List the catalog ordered by a criterion."""
    gateway = current_app.extensions["gateway"]
    criterion = request.args.get("criterion", "cost")
    try:
        ordered = compare_models(gateway.catalog, criterion)
    except ValueError as e:
        return jsonify(error_envelope(str(e))), 400
    return jsonify({"criterion": criterion, "models": [model.to_dict() for model in ordered]})


@api_bp.route("/models/recommend")
def recommend():
    """Recommend a model for a use case and budget."""
    recommender = current_app.extensions["recommender"]
    use_case = request.args.get("use_case")
    budget = request.args.get("budget")
    if not use_case or not budget:
        return jsonify(error_envelope("use_case and budget are required")), 400
    try:
        model = recommender.recommend(use_case, budget)
    except ValueError as e:
        return jsonify(error_envelope(str(e))), 400
    return jsonify({"use_case": use_case, "budget": budget, "model": model.to_dict()})
