"""
Department Blueprint.

  GET   /api/v1/departments        — all departments (no login needed: sign-up form)
  POST  /api/v1/departments        — create (admin)
  GET   /api/v1/departments/<id>
  PATCH /api/v1/departments/<id>   — rename (admin)
"""

from flask import Blueprint, jsonify

from missionboard.blueprints import current_state, current_store, json_body, register_error_handlers, sync_feed
from missionboard.services import department_service

department_bp = Blueprint("departments", __name__, url_prefix="/api/v1/departments")
register_error_handlers(department_bp)


@department_bp.route("", methods=["GET"])
def list_departments():
    return jsonify(department_service.list_departments(current_state())), 200


@department_bp.route("", methods=["POST"])
def create_department():
    state = current_state()
    dept = department_service.create_department(state, current_store(), json_body())
    sync_feed()
    return jsonify(state.get("departments", dept["id"])), 201


@department_bp.route("/<department_id>", methods=["GET"])
def get_department(department_id):
    return jsonify(department_service.get_department(current_state(), department_id)), 200


@department_bp.route("/<department_id>", methods=["PATCH", "PUT"])
def rename_department(department_id):
    state = current_state()
    department_service.rename_department(state, current_store(), department_id, json_body())
    sync_feed()
    return jsonify(state.get("departments", department_id)), 200
