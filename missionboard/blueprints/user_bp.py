"""
User Blueprint — profile directory.

  GET /api/v1/users        — visible profiles (?role=, ?department_id=)
  GET /api/v1/users/<id>
"""

from flask import Blueprint, jsonify

from missionboard.auth import require_auth
from missionboard.blueprints import current_state, register_error_handlers, request_filters
from missionboard.services import user_service

user_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")
register_error_handlers(user_bp)


@user_bp.route("", methods=["GET"])
@require_auth
def list_users():
    users = user_service.list_users(current_state(), **request_filters("role", "department_id"))
    return jsonify({"items": users, "total": len(users)}), 200


@user_bp.route("/<profile_id>", methods=["GET"])
@require_auth
def get_user(profile_id):
    return jsonify(user_service.get_user(current_state(), profile_id)), 200
