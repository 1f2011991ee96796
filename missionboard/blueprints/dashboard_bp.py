"""
Dashboard Blueprint.

  GET /api/v1/dashboard/stats   — statistics over the caller's visible scope
"""

from flask import Blueprint, jsonify

from missionboard.auth import require_auth
from missionboard.blueprints import current_state, register_error_handlers
from missionboard.services.dashboard_service import get_dashboard_stats

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")
register_error_handlers(dashboard_bp)


@dashboard_bp.route("/stats", methods=["GET"])
@require_auth
def stats():
    return jsonify(get_dashboard_stats(current_state())), 200
