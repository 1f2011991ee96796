"""
Auth Blueprint — JWT authentication endpoints.

  POST /api/v1/auth/login       — Email + password → access token
  POST /api/v1/auth/register    — Self-service sign-up (role "user") → access token
  GET  /api/v1/auth/me          — Current profile
"""

from flask import Blueprint, g, jsonify

from missionboard.auth import require_auth
from missionboard.blueprints import current_store, json_body, register_error_handlers, sync_feed
from missionboard.core.exceptions import ValidationError
from missionboard.services.jwt_service import token_response
from missionboard.services.user_service import authenticate_user, register_user
from missionboard.utils.errors import E, api_error
from missionboard.utils.helpers import clean_text

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")
register_error_handlers(auth_bp)


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with email + password.

    Body: { "email": "...", "password": "..." }
    """
    data = json_body()
    email = clean_text(data.get("email"), "email", required=False).lower()
    password = data.get("password") or ""
    if not isinstance(password, str):
        raise ValidationError("password must be a string", details={"password": "type"})

    if not email or not password:
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    profile = authenticate_user(email, password)
    return jsonify(token_response(profile)), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/register
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Create a ``user`` profile in an existing department.

    Body: { "email", "password", "name", "department_id" }
    """
    data = json_body()
    missing = [f for f in ("email", "password", "name", "department_id") if not data.get(f)]
    if missing:
        return api_error(
            E.VALIDATION_REQUIRED,
            f"Missing required fields: {', '.join(missing)}",
            details={f: "required" for f in missing},
        )

    profile = register_user(current_store(), data)
    sync_feed()
    return jsonify(token_response(profile)), 201


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    return jsonify(g.auth.profile), 200
