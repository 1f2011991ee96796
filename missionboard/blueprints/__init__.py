"""
MissionBoard
Blueprint registry and shared request helpers.

Every API request works on an explicit AppState:

    state = current_state()        # loaded once per request, feed connected
    ... service call ...
    sync_feed()                    # deliver change events: the authoritative
                                   # rows replace the optimistic cache values

The state is disconnected from the feed in the app-level teardown.
"""

from flask import current_app, g, request

from missionboard.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RemoteFailureError,
    UnauthenticatedError,
    ValidationError,
)
from missionboard.services.app_state import AuthContext, load_state
from missionboard.utils.errors import E, api_error


def current_store():
    return current_app.extensions["record_store"]


def current_state():
    """The caller's AppState, loaded on first use within the request."""
    state = getattr(g, "app_state", None)
    if state is None:
        auth = getattr(g, "auth", None) or AuthContext.anonymous()
        store = current_store()
        state = load_state(store, auth)
        state.connect(store)
        g.app_state = state
    return state


def sync_feed() -> int:
    """Deliver buffered change events to the request's state."""
    return current_store().dispatch()


def release_state(exc=None):
    """Teardown hook: unsubscribe the request's state from the feed."""
    state = g.pop("app_state", None)
    if state is not None:
        state.disconnect()


def request_filters(*names):
    """Non-empty query-string values for the given names."""
    return {n: request.args[n] for n in names if request.args.get(n)}


def json_body() -> dict:
    """The JSON request body; {} when absent or unparsable.

    Raises:
        ValidationError: the body is valid JSON but not an object.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object", details={"body": "type"})
    return data


# ═════════════════════════════════════════════════════════════════════════
# Error handlers
# ═════════════════════════════════════════════════════════════════════════

def _handle_unauthenticated(error: UnauthenticatedError):
    return api_error(E.UNAUTHENTICATED, str(error))


def _handle_forbidden(error: ForbiddenError):
    return api_error(E.FORBIDDEN, str(error))


def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


def _handle_invalid_state(error: InvalidStateError):
    return api_error(E.CONFLICT_STATE, str(error), details={"current_status": error.current_status})


def _handle_conflict(error: ConflictError):
    return api_error(E.CONFLICT_DUPLICATE, str(error), details={"field": error.field})


def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_RULE, str(error), details=error.details)


def _handle_remote_failure(error: RemoteFailureError):
    return api_error(E.REMOTE_FAILURE, str(error))


def register_error_handlers(bp):
    """Map the domain exceptions to HTTP statuses on one blueprint."""
    bp.register_error_handler(UnauthenticatedError, _handle_unauthenticated)
    bp.register_error_handler(ForbiddenError, _handle_forbidden)
    bp.register_error_handler(NotFoundError, _handle_not_found)
    bp.register_error_handler(InvalidStateError, _handle_invalid_state)
    bp.register_error_handler(ConflictError, _handle_conflict)
    bp.register_error_handler(ValidationError, _handle_validation)
    bp.register_error_handler(RemoteFailureError, _handle_remote_failure)
    return bp
