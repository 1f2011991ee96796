"""
Recommendation Blueprint.

  GET    /api/v1/recommendations                   — visible recommendations
                                                     (?search=, ?status=, ?department_id=,
                                                      ?mission_id=, ?user_id=)
  POST   /api/v1/recommendations                   — create and assign (admin / chief)
  GET    /api/v1/recommendations/pending           — pending items the caller may confirm
  GET    /api/v1/recommendations/<id>
  PATCH  /api/v1/recommendations/<id>              — content edit
  DELETE /api/v1/recommendations/<id>
  POST   /api/v1/recommendations/<id>/transition   — { "action": "submit" | "confirm" | "reject" }
"""

from flask import Blueprint, current_app, jsonify

from missionboard.auth import require_auth
from missionboard.blueprints import (
    current_state,
    current_store,
    json_body,
    register_error_handlers,
    request_filters,
    sync_feed,
)
from missionboard.services import recommendation_service
from missionboard.services.recommendation_lifecycle import transition_recommendation
from missionboard.utils.errors import E, api_error

recommendation_bp = Blueprint("recommendations", __name__, url_prefix="/api/v1/recommendations")
register_error_handlers(recommendation_bp)


@recommendation_bp.route("", methods=["GET"])
@require_auth
def list_recommendations():
    filters = request_filters("search", "status", "department_id", "mission_id", "user_id")
    recs = recommendation_service.list_recommendations(current_state(), **filters)
    return jsonify({"items": recs, "total": len(recs)}), 200


@recommendation_bp.route("", methods=["POST"])
def create_recommendation():
    state = current_state()
    rec = recommendation_service.create_recommendation(
        state,
        current_store(),
        json_body(),
        default_deadline_days=current_app.config["DEFAULT_DEADLINE_DAYS"],
    )
    sync_feed()
    return jsonify(recommendation_service.get_recommendation(state, rec["id"])), 201


@recommendation_bp.route("/pending", methods=["GET"])
@require_auth
def list_pending():
    recs = recommendation_service.list_pending_validations(current_state())
    return jsonify({"items": recs, "total": len(recs)}), 200


@recommendation_bp.route("/<rec_id>", methods=["GET"])
@require_auth
def get_recommendation(rec_id):
    return jsonify(recommendation_service.get_recommendation(current_state(), rec_id)), 200


@recommendation_bp.route("/<rec_id>", methods=["PATCH", "PUT"])
def update_recommendation(rec_id):
    state = current_state()
    recommendation_service.update_recommendation(state, current_store(), rec_id, json_body())
    sync_feed()
    return jsonify(recommendation_service.get_recommendation(state, rec_id)), 200


@recommendation_bp.route("/<rec_id>", methods=["DELETE"])
def delete_recommendation(rec_id):
    recommendation_service.delete_recommendation(current_state(), current_store(), rec_id)
    sync_feed()
    return jsonify({"message": "Recommendation deleted", "id": rec_id}), 200


@recommendation_bp.route("/<rec_id>/transition", methods=["POST"])
def transition(rec_id):
    """
    Body: { "action": "submit" | "confirm" | "reject" }
    """
    data = json_body()
    action = data.get("action")
    if not action:
        return api_error(E.VALIDATION_REQUIRED, "action is required")

    state = current_state()
    result = transition_recommendation(state, current_store(), rec_id, action)
    sync_feed()
    result["record"] = recommendation_service.get_recommendation(state, rec_id)
    return jsonify(result), 200
