"""
Recommendation Lifecycle Service — status transitions.

Manages recommendation status transitions with:
  - Transition validation against the cached current status
  - Role / department guards (services/authorization.py)
  - Side effects: confirmation timestamp and actor
  - Optimistic cache update after a successful store call

3 valid transitions:
  submit   in_progress → pending      assignee only
  confirm  pending → confirmed        admin, or chief of the same department
  reject   pending → in_progress      admin, or chief of the same department

Check order (every rejection happens before any store call):
  1. authentication   → UnauthenticatedError
  2. existence        → NotFoundError
  3. permission       → ForbiddenError
  4. current status   → InvalidStateError

A failed store call raises RemoteFailureError and leaves the cache as it was.

Usage:
    from missionboard.services.recommendation_lifecycle import transition_recommendation

    result = transition_recommendation(state, store, rec_id, "confirm")

Reads:  state.auth.profile, state.cache["recommendations"]
Writes: store "recommendations" (update), state.cache (optimistic)
"""

import logging
from datetime import datetime, timezone

from missionboard.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RemoteFailureError,
    ValidationError,
)
from missionboard.integrations.record_store import RecordStoreError
from missionboard.models.mission import (
    EDITABLE_RECOMMENDATION_STATUSES,
    REC_COMPLETED,
    REC_CONFIRMED,
    REC_IN_PROGRESS,
    REC_OVERDUE,
    RECOMMENDATION_TRANSITIONS,
)
from missionboard.services import authorization as authz

logger = logging.getLogger(__name__)

LEGACY_CONFIRMER = "legacy"

_ACTION_GUARD = {
    "submit": (authz.can_submit, "only the assignee can submit this recommendation"),
    "confirm": (authz.can_confirm, "recommendation belongs to another department"),
    "reject": (authz.can_reject, "recommendation belongs to another department"),
}


# ═══════════════════════════════════════════════════════════════════════════
#  Legacy status mapping
# ═══════════════════════════════════════════════════════════════════════════

def normalize_legacy_record(rec: dict) -> dict:
    """Map statuses of the earlier data model onto the canonical lifecycle.

    completed → confirmed   (confirmed_at from completed_at, confirmed_by "legacy")
    overdue   → in_progress (overdue is a display label only)

    Returns a new dict; canonical records come back as an unchanged copy.
    """
    rec = dict(rec)
    status = rec.get("status")

    if status == REC_COMPLETED:
        stamp = rec.get("confirmed_at") or rec.get("completed_at") or rec.get("created_at")
        rec["status"] = REC_CONFIRMED
        rec["confirmed_at"] = stamp
        rec["completed_at"] = rec.get("completed_at") or stamp
        rec["confirmed_by"] = rec.get("confirmed_by") or LEGACY_CONFIRMER
    elif status == REC_OVERDUE:
        rec["status"] = REC_IN_PROGRESS
    elif not status:
        rec["status"] = REC_IN_PROGRESS
    return rec


# ═══════════════════════════════════════════════════════════════════════════
#  Validation
# ═══════════════════════════════════════════════════════════════════════════

def validate_transition(rec: dict, action: str) -> dict:
    """Validate whether an action is valid for the recommendation's current state."""
    status = rec.get("status")
    rule = RECOMMENDATION_TRANSITIONS.get(action)
    if not rule:
        return {"valid": False, "from": status, "to": None,
                "reason": f"Unknown action: {action}"}

    if status not in rule["from"]:
        return {"valid": False, "from": status, "to": rule["to"],
                "reason": f"Cannot '{action}' from status '{status}'"}

    return {"valid": True, "from": status, "to": rule["to"], "reason": None}


def is_permitted(profile, rec: dict, action: str) -> bool:
    guard = _ACTION_GUARD.get(action)
    return bool(guard) and guard[0](profile, rec)


def _transition_changes(action: str, profile: dict, now: datetime) -> dict:
    to_status = RECOMMENDATION_TRANSITIONS[action]["to"]
    if action == "confirm":
        stamp = now.isoformat()
        return {
            "status": to_status,
            "confirmed_at": stamp,
            "confirmed_by": profile["id"],
            "completed_at": stamp,
        }
    # submit and reject both leave the record unconfirmed
    return {
        "status": to_status,
        "confirmed_at": None,
        "confirmed_by": None,
        "completed_at": None,
    }


# ═══════════════════════════════════════════════════════════════════════════
#  Transition
# ═══════════════════════════════════════════════════════════════════════════

def transition_recommendation(state, store, rec_id: str, action: str, *, now: datetime | None = None) -> dict:
    """
    Execute a recommendation lifecycle transition.

    Args:
        state: AppState of the caller
        store: RecordStore to mutate
        rec_id: Recommendation id
        action: submit | confirm | reject
        now: Clock override for the confirmation timestamp

    Returns:
        {"recommendation_id", "action", "previous_status", "new_status", "record"}

    Raises:
        UnauthenticatedError, NotFoundError, ForbiddenError,
        InvalidStateError, RemoteFailureError, ValidationError (unknown action)
    """
    profile = state.require_profile()

    if not isinstance(action, str) or action not in RECOMMENDATION_TRANSITIONS:
        raise ValidationError(
            f"Unknown action: {action}",
            details={"allowed": sorted(RECOMMENDATION_TRANSITIONS)},
        )

    rec = state.get("recommendations", rec_id)
    if rec is None:
        raise NotFoundError(resource="Recommendation", resource_id=rec_id)

    # 1. Permission check
    if not is_permitted(profile, rec, action):
        raise ForbiddenError(action, reason=_ACTION_GUARD[action][1])

    # 2. Validate transition
    validation = validate_transition(rec, action)
    if not validation["valid"]:
        raise InvalidStateError("Recommendation", action, rec.get("status"), validation["reason"])

    # 3. Store round trip
    changes = _transition_changes(action, profile, now or datetime.now(timezone.utc))
    try:
        store.update("recommendations", rec_id, changes)
    except RecordStoreError as exc:
        logger.exception("Recommendation %s '%s' failed in record store", rec_id, action)
        raise RemoteFailureError(f"{action} recommendation", exc.detail) from exc

    # 4. Optimistic update; the change feed overwrites it with the stored row
    state.apply_optimistic("recommendations", rec_id, changes)

    logger.info(
        "Recommendation %s: %s → %s by %s",
        rec_id, validation["from"], validation["to"], profile["id"],
    )

    return {
        "recommendation_id": rec_id,
        "action": action,
        "previous_status": validation["from"],
        "new_status": validation["to"],
        "record": state.get("recommendations", rec_id),
    }


# ═══════════════════════════════════════════════════════════════════════════
#  Button visibility
# ═══════════════════════════════════════════════════════════════════════════

def get_available_transitions(profile, rec: dict) -> list[str]:
    """Transitions the caller could trigger now, in lifecycle order."""
    if not profile or not rec:
        return []
    return [
        action for action in RECOMMENDATION_TRANSITIONS
        if is_permitted(profile, rec, action) and validate_transition(rec, action)["valid"]
    ]


def available_actions(profile, rec: dict) -> list[str]:
    """Transitions plus ``edit`` / ``delete`` where the caller holds the right."""
    actions = get_available_transitions(profile, rec)
    if not profile or not rec:
        return actions
    if authz.can_edit_recommendation(profile, rec) and rec.get("status") in EDITABLE_RECOMMENDATION_STATUSES:
        actions.append("edit")
    if authz.can_delete_recommendation(profile, rec):
        actions.append("delete")
    return actions
