"""
Platform-wide exception hierarchy.

Every service raises one of these types; blueprints register handlers
against them once and get consistent HTTP status codes everywhere.

Rejections raised by the transition engine and the CRUD services happen
before any call to the record store, so the local cache is never touched
when one of these is raised (RemoteFailureError included: the store call
failed, nothing was applied).

Usage:
    from missionboard.core.exceptions import NotFoundError, ForbiddenError

    raise NotFoundError(resource="Recommendation", resource_id="abc")
    raise ForbiddenError("confirm", reason="recommendation belongs to another department")
"""


class UnauthenticatedError(Exception):
    """Raised when no session/profile is present for a protected operation.

    Maps to HTTP 401.
    """

    def __init__(self, message: str = "You must be logged in to perform this action") -> None:
        super().__init__(message)


class ForbiddenError(Exception):
    """Raised when the caller is authenticated but the role/department guard fails.

    Maps to HTTP 403.

    Args:
        action: The operation that was attempted (e.g. "confirm", "delete_mission").
        reason: Optional human-readable explanation.
    """

    def __init__(self, action: str, reason: str | None = None) -> None:
        self.action = action
        self.reason = reason
        msg = f"Not allowed to {action}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NotFoundError(Exception):
    """Raised when a record id is not present in the local cache.

    Args:
        resource: Human-readable entity name (e.g. "Mission", "Recommendation").
        resource_id: The id that was looked up.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class InvalidStateError(Exception):
    """Raised when the record exists but its status does not allow the action.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, action: str, current: str, reason: str | None = None) -> None:
        self.resource = resource
        self.action = action
        self.current_status = current
        msg = f"Cannot '{action}' {resource.lower()} (status={current})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class RemoteFailureError(Exception):
    """Raised when the record store call itself fails (network, backend, conflict).

    Maps to HTTP 502. The message is safe to display to the end user.
    """

    def __init__(self, operation: str, detail: str | None = None) -> None:
        self.operation = operation
        self.detail = detail
        msg = f"Failed to {operation}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is well-formed but violates a business rule.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique field.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")
