"""
Mission Blueprint.

  GET    /api/v1/missions                        — visible missions with progress
                                                   (?search=, ?status=, ?department_id=, ?created_by=)
  POST   /api/v1/missions                        — create (admin / chief)
  GET    /api/v1/missions/<id>
  PATCH  /api/v1/missions/<id>                   — edit title / description / deadline / department
  DELETE /api/v1/missions/<id>                   — delete with its recommendations
  POST   /api/v1/missions/<id>/status            — { "status": "active" | "completed" }
  GET    /api/v1/missions/<id>/recommendations   — visible recommendations of the mission
"""

from flask import Blueprint, jsonify

from missionboard.auth import require_auth
from missionboard.blueprints import (
    current_state,
    current_store,
    json_body,
    register_error_handlers,
    request_filters,
    sync_feed,
)
from missionboard.services import mission_service, recommendation_service
from missionboard.utils.errors import E, api_error

mission_bp = Blueprint("missions", __name__, url_prefix="/api/v1/missions")
register_error_handlers(mission_bp)


@mission_bp.route("", methods=["GET"])
@require_auth
def list_missions():
    filters = request_filters("search", "status", "department_id", "created_by")
    missions = mission_service.list_missions(current_state(), **filters)
    return jsonify({"items": missions, "total": len(missions)}), 200


@mission_bp.route("", methods=["POST"])
def create_mission():
    state = current_state()
    mission = mission_service.create_mission(state, current_store(), json_body())
    sync_feed()
    return jsonify(mission_service.get_mission(state, mission["id"])), 201


@mission_bp.route("/<mission_id>", methods=["GET"])
@require_auth
def get_mission(mission_id):
    return jsonify(mission_service.get_mission(current_state(), mission_id)), 200


@mission_bp.route("/<mission_id>", methods=["PATCH", "PUT"])
def update_mission(mission_id):
    state = current_state()
    mission_service.update_mission(state, current_store(), mission_id, json_body())
    sync_feed()
    return jsonify(mission_service.get_mission(state, mission_id)), 200


@mission_bp.route("/<mission_id>", methods=["DELETE"])
def delete_mission(mission_id):
    result = mission_service.delete_mission(current_state(), current_store(), mission_id)
    sync_feed()
    return jsonify({"message": "Mission deleted", **result}), 200


@mission_bp.route("/<mission_id>/status", methods=["POST"])
def set_mission_status(mission_id):
    data = json_body()
    status = data.get("status")
    if not status:
        return api_error(E.VALIDATION_REQUIRED, "status is required")

    state = current_state()
    mission_service.set_mission_status(state, current_store(), mission_id, status)
    sync_feed()
    return jsonify(mission_service.get_mission(state, mission_id)), 200


@mission_bp.route("/<mission_id>/recommendations", methods=["GET"])
@require_auth
def list_mission_recommendations(mission_id):
    state = current_state()
    mission_service.get_mission(state, mission_id)
    filters = request_filters("search", "status", "user_id")
    recs = recommendation_service.list_recommendations(state, mission_id=mission_id, **filters)
    return jsonify({"items": recs, "total": len(recs)}), 200
