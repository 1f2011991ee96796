"""
Mission service — missions and their progress.

    create_mission      admin (any department) or chief (own department)
    update_mission      title / description / deadline; department change admin-only
    set_mission_status  active ↔ completed; overdue is derived and cannot be set
    delete_mission      recommendations first, then the mission (sequential, not atomic)
    list_missions       scoped, narrowed, with progress

Reads:  state.auth.profile, state.cache (missions, recommendations, departments)
Writes: store "missions" and "recommendations", state.cache (optimistic)
"""

import logging
from datetime import date, datetime, timezone

from missionboard.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from missionboard.models.mission import (
    MISSION_ACTIVE,
    MISSION_COMPLETED,
    MISSION_OVERDUE,
    MISSION_SETTABLE_STATUSES,
    REC_CONFIRMED,
)
from missionboard.services import authorization as authz
from missionboard.services.access_scope import scoped_missions, visible_recommendations
from missionboard.services.display_status import mission_display_status
from missionboard.services.store_calls import call_store
from missionboard.utils.helpers import clean_text, optional_id, parse_date_input

logger = logging.getLogger(__name__)


def _clean_deadline(value):
    try:
        deadline = parse_date_input(value)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"deadline": "invalid"}) from exc
    return deadline.isoformat() if deadline else None


def _require_mission(state, mission_id):
    mission = state.get("missions", mission_id)
    if mission is None:
        raise NotFoundError(resource="Mission", resource_id=mission_id)
    return mission


def mission_progress(state, mission_id: str) -> dict:
    """Confirmed / total over the recommendations the caller can see."""
    recs = [r for r in visible_recommendations(state) if r.get("mission_id") == mission_id]
    total = len(recs)
    confirmed = sum(1 for r in recs if r.get("status") == REC_CONFIRMED)
    return {
        "total": total,
        "confirmed": confirmed,
        "progress": round(confirmed * 100 / total) if total else 0,
    }


def present_mission(state, mission: dict, *, today: date | None = None) -> dict:
    profile = state.profile
    department = state.get("departments", mission.get("department_id")) if mission.get("department_id") else None
    return {
        **mission,
        "display_status": mission_display_status(mission, today),
        "department_acronym": (department or {}).get("acronym"),
        "progress": mission_progress(state, mission["id"]),
        "can_edit": authz.can_edit_mission(profile, mission),
    }


# ═══════════════════════════════════════════════════════════════════════════
#  Reads
# ═══════════════════════════════════════════════════════════════════════════

def list_missions(state, *, today: date | None = None, **filters) -> list[dict]:
    """Filters: search, status, department_id (admin only), created_by."""
    state.require_profile()
    missions = scoped_missions(state, today=today, **filters)
    missions.sort(key=lambda m: m.get("created_at") or "", reverse=True)
    return [present_mission(state, m, today=today) for m in missions]


def get_mission(state, mission_id: str, *, today: date | None = None) -> dict:
    profile = state.require_profile()
    mission = state.get("missions", mission_id)
    if mission is None or not authz.can_view_mission(profile, mission):
        raise NotFoundError(resource="Mission", resource_id=mission_id)
    return present_mission(state, mission, today=today)


# ═══════════════════════════════════════════════════════════════════════════
#  Writes
# ═══════════════════════════════════════════════════════════════════════════

def create_mission(state, store, data: dict, *, today: date | None = None) -> dict:
    profile = state.require_profile()
    if not authz.can_edit(profile):
        raise ForbiddenError("create mission", reason="only admins and chiefs create missions")

    title = clean_text(data.get("title"), "title", required=False)
    description = clean_text(data.get("description"), "description", required=False)
    missing = [f for f, v in (("title", title), ("description", description)) if not v]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={f: "required" for f in missing})

    department_id = optional_id(data.get("department_id"), "department_id")
    if authz.is_chief(profile):
        department_id = department_id or profile.get("department_id")
    if not authz.can_create_mission(profile, department_id):
        raise ForbiddenError("create mission", reason="chiefs create missions in their own department only")
    if department_id and state.get("departments", department_id) is None:
        raise ValidationError("Unknown department", details={"department_id": department_id})

    record = {
        "title": title,
        "description": description,
        "created_by": profile["id"],
        "created_by_name": profile.get("name") or "",
        "department_id": department_id,
        "deadline": _clean_deadline(data.get("deadline")),
        "status": MISSION_ACTIVE,
        "completed_at": None,
    }
    stored = call_store("create mission", store.insert, "missions", record)
    state.apply_optimistic_insert("missions", stored)
    logger.info("Mission %s created by %s (department=%s)", stored["id"], profile["id"], department_id)
    return present_mission(state, state.get("missions", stored["id"]), today=today)


def update_mission(state, store, mission_id: str, data: dict, *, today: date | None = None) -> dict:
    profile = state.require_profile()
    mission = _require_mission(state, mission_id)
    if not authz.can_edit_mission(profile, mission):
        raise ForbiddenError("edit mission", reason="mission belongs to another department")

    changes = {}
    for key in ("title", "description"):
        if key in data:
            changes[key] = clean_text(data[key], key)
    if "deadline" in data:
        changes["deadline"] = _clean_deadline(data["deadline"])
    department_id = optional_id(data.get("department_id"), "department_id")
    if "department_id" in data and department_id != mission.get("department_id"):
        if not authz.is_admin(profile):
            raise ForbiddenError("move mission", reason="only admins change a mission's department")
        if department_id and state.get("departments", department_id) is None:
            raise ValidationError("Unknown department", details={"department_id": department_id})
        changes["department_id"] = department_id
    if not changes:
        raise ValidationError("Nothing to update: send title, description, deadline or department_id")

    call_store("update mission", store.update, "missions", mission_id, changes)
    state.apply_optimistic("missions", mission_id, changes)
    logger.info("Mission %s edited by %s: %s", mission_id, profile["id"], sorted(changes))
    return present_mission(state, state.get("missions", mission_id), today=today)


def set_mission_status(
    state, store, mission_id: str, status: str, *, now: datetime | None = None, today: date | None = None,
) -> dict:
    """Mark a mission completed (sets completed_at) or reopen it (clears it)."""
    profile = state.require_profile()
    mission = _require_mission(state, mission_id)
    if not authz.can_edit_mission(profile, mission):
        raise ForbiddenError("change mission status", reason="mission belongs to another department")
    if not isinstance(status, str):
        raise ValidationError("status must be a string", details={"status": "type"})
    if status == MISSION_OVERDUE:
        raise ValidationError("'overdue' is derived from the deadline and cannot be set")
    if status not in MISSION_SETTABLE_STATUSES:
        raise ValidationError(
            f"Invalid mission status: {status}",
            details={"allowed": sorted(MISSION_SETTABLE_STATUSES)},
        )
    if mission.get("status") == status:
        raise InvalidStateError("Mission", f"set {status}", mission.get("status"))

    if status == MISSION_COMPLETED:
        changes = {"status": status, "completed_at": (now or datetime.now(timezone.utc)).isoformat()}
    else:
        changes = {"status": status, "completed_at": None}

    call_store("update mission status", store.update, "missions", mission_id, changes)
    state.apply_optimistic("missions", mission_id, changes)
    logger.info("Mission %s: %s → %s by %s", mission_id, mission.get("status"), status, profile["id"])
    return present_mission(state, state.get("missions", mission_id), today=today)


def delete_mission(state, store, mission_id: str) -> dict:
    """Delete a mission and its recommendations.

    The recommendations are queried from the store, so rows written since
    the initial fetch are included, and deleted one by one before the
    mission.  A failure part-way leaves the already-deleted ones deleted.
    """
    profile = state.require_profile()
    mission = _require_mission(state, mission_id)
    if not authz.can_delete_mission(profile, mission):
        raise ForbiddenError("delete mission", reason="mission belongs to another department")

    children = call_store("list mission recommendations", store.query, "recommendations", mission_id=mission_id)
    for rec in children:
        call_store("delete recommendation", store.delete, "recommendations", rec["id"])
        state.apply_optimistic_delete("recommendations", rec["id"])

    call_store("delete mission", store.delete, "missions", mission_id)
    state.apply_optimistic_delete("missions", mission_id)
    logger.info("Mission %s deleted by %s with %d recommendation(s)", mission_id, profile["id"], len(children))
    return {"mission_id": mission_id, "deleted_recommendations": len(children)}
