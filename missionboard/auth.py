"""
MissionBoard
Authentication middleware.

Provides:
    - Bearer token decoding into ``g.auth`` (an AuthContext) on every request
    - ``require_auth`` decorator for endpoints that are meaningless anonymously

Security model:
    - A missing, malformed or expired token leaves the request anonymous;
      it is never an error by itself.  Services reject anonymous callers
      with UnauthenticatedError (401) before any store call.
    - The token only identifies the caller.  Role and department always
      come from the profile record, so a role claim cannot be forged.
"""

import functools
import logging

import jwt
from flask import current_app, g, request

from missionboard.integrations.record_store import RecordStoreError
from missionboard.services.app_state import AuthContext
from missionboard.services.jwt_service import decode_token
from missionboard.services.user_service import present_profile
from missionboard.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def _bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def resolve_auth() -> AuthContext:
    """Build the AuthContext for the current request."""
    token = _bearer_token()
    if not token:
        return AuthContext.anonymous()

    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        logger.info("Expired access token")
        return AuthContext.anonymous()
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid access token: %s", e)
        return AuthContext.anonymous()

    store = current_app.extensions["record_store"]
    try:
        profile = store.get("profiles", payload.get("sub"))
    except RecordStoreError:
        logger.exception("Could not load profile for token subject %s", payload.get("sub"))
        return AuthContext.anonymous()
    if profile is None:
        logger.info("Token subject %s has no profile", payload.get("sub"))
        return AuthContext.anonymous()

    return AuthContext(session=payload, profile=present_profile(profile))


def init_auth(app):
    """Register the before_request hook that sets ``g.auth``."""

    @app.before_request
    def _load_auth():
        if request.method == "OPTIONS" or not request.path.startswith("/api/"):
            g.auth = AuthContext.anonymous()
            return None
        g.auth = resolve_auth()
        return None


def require_auth(f):
    """Reject anonymous callers with 401 before the view runs."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = getattr(g, "auth", None)
        if auth is None or not auth.is_authenticated:
            return api_error(E.UNAUTHENTICATED, "Authentication required")
        return f(*args, **kwargs)

    return decorated
