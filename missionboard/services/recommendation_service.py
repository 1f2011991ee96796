"""
Recommendation service — create, edit, delete, list.

Status changes live in recommendation_lifecycle.py; this module covers the
rest of the recommendation surface.

Rejections follow the same order as the lifecycle (authentication,
existence, permission, status) and happen before any store call.

Reads:  state.auth.profile, state.cache (recommendations, missions, profiles)
Writes: store "recommendations", state.cache (optimistic)
"""

import logging
from datetime import date, timedelta

from missionboard.config import Config
from missionboard.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from missionboard.models.mission import EDITABLE_RECOMMENDATION_STATUSES, REC_IN_PROGRESS, REC_PENDING
from missionboard.services import authorization as authz
from missionboard.services.access_scope import scoped_recommendations
from missionboard.services.display_status import recommendation_display_status
from missionboard.services.recommendation_lifecycle import LEGACY_CONFIRMER, available_actions
from missionboard.services.store_calls import (
    UNKNOWN_NAME,
    cached_profile_name,
    call_store,
    resolve_profile_name,
)
from missionboard.utils.helpers import clean_text, optional_id, parse_date_input

logger = logging.getLogger(__name__)


def _clean_title(value) -> str:
    title = clean_text(value, "title")
    if "\n" in title:
        raise ValidationError("title must be a single line", details={"title": "newline"})
    return title


def _clean_deadline(value):
    try:
        deadline = parse_date_input(value)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"deadline": "invalid"}) from exc
    return deadline.isoformat() if deadline else None


def present_recommendation(state, rec: dict, *, today: date | None = None, assignee_name: str | None = None) -> dict:
    """Record plus display fields: display status, names, mission title, actions."""
    profile = state.profile
    mission = state.get("missions", rec.get("mission_id")) or {}
    confirmed_by = rec.get("confirmed_by")
    if confirmed_by and confirmed_by != LEGACY_CONFIRMER:
        confirmed_by_name = cached_profile_name(state, confirmed_by)
    else:
        confirmed_by_name = UNKNOWN_NAME if confirmed_by else None
    return {
        **rec,
        "display_status": recommendation_display_status(rec, today),
        "assignee_name": assignee_name or cached_profile_name(state, rec.get("user_id")),
        "confirmed_by_name": confirmed_by_name,
        "mission_title": mission.get("title"),
        "available_actions": available_actions(profile, rec),
    }


# ═══════════════════════════════════════════════════════════════════════════
#  Reads
# ═══════════════════════════════════════════════════════════════════════════

def list_recommendations(state, *, today: date | None = None, **filters) -> list[dict]:
    """Visible recommendations narrowed by UI filters, nearest deadline first.

    Filters: search, status, department_id, mission_id, user_id.
    """
    state.require_profile()
    records = scoped_recommendations(state, today=today, **filters)
    records.sort(key=lambda r: (r.get("deadline") is None, r.get("deadline") or "", r.get("created_at") or ""))
    return [present_recommendation(state, r, today=today) for r in records]


def get_recommendation(state, rec_id: str, *, today: date | None = None) -> dict:
    profile = state.require_profile()
    rec = state.get("recommendations", rec_id)
    if rec is None or not authz.can_view_recommendation(profile, rec):
        raise NotFoundError(resource="Recommendation", resource_id=rec_id)
    return present_recommendation(state, rec, today=today)


def list_pending_validations(state, *, today: date | None = None) -> list[dict]:
    """Pending recommendations the caller may confirm or reject."""
    profile = state.require_profile()
    records = [
        r for r in scoped_recommendations(state)
        if r.get("status") == REC_PENDING and authz.can_confirm(profile, r)
    ]
    records.sort(key=lambda r: r.get("created_at") or "")
    return [present_recommendation(state, r, today=today) for r in records]


# ═══════════════════════════════════════════════════════════════════════════
#  Writes
# ═══════════════════════════════════════════════════════════════════════════

def create_recommendation(
    state,
    store,
    data: dict,
    *,
    today: date | None = None,
    default_deadline_days: int | None = None,
) -> dict:
    """Create a recommendation and assign it.

    Two sequential round trips: the insert, then the assignee's display
    name.  A failed name lookup falls back to "Unknown".

    Raises:
        UnauthenticatedError, ForbiddenError, ValidationError,
        NotFoundError (mission or assignee), RemoteFailureError
    """
    profile = state.require_profile()
    if not authz.can_edit(profile):
        raise ForbiddenError("create recommendation", reason="only admins and chiefs assign recommendations")

    title = _clean_title(data.get("title"))
    description = clean_text(data.get("description"), "description")
    ids = {f: optional_id(data.get(f), f) for f in ("user_id", "mission_id")}
    missing = [f for f, v in ids.items() if not v]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={f: "required" for f in missing})

    mission = state.get("missions", ids["mission_id"])
    if mission is None:
        raise NotFoundError(resource="Mission", resource_id=ids["mission_id"])
    if not authz.can_view_mission(profile, mission):
        raise ForbiddenError("create recommendation", reason="mission is outside your scope")

    assignee = state.get("profiles", ids["user_id"])
    if assignee is None:
        raise NotFoundError(resource="Profile", resource_id=ids["user_id"])
    if not authz.can_create_recommendation(profile, assignee):
        raise ForbiddenError("create recommendation", reason="assignee belongs to another department")

    deadline = _clean_deadline(data.get("deadline"))
    if deadline is None:
        if default_deadline_days is None:
            default_deadline_days = Config.DEFAULT_DEADLINE_DAYS
        deadline = ((today or date.today()) + timedelta(days=default_deadline_days)).isoformat()

    record = {
        "title": title,
        "description": description,
        "user_id": assignee["id"],
        "created_by": profile.get("name") or "",
        "created_by_id": profile["id"],
        "department_id": assignee.get("department_id"),
        "mission_id": mission["id"],
        "deadline": deadline,
        "status": REC_IN_PROGRESS,
        "completed_at": None,
        "confirmed_at": None,
        "confirmed_by": None,
    }
    stored = call_store("create recommendation", store.insert, "recommendations", record)
    state.apply_optimistic_insert("recommendations", stored)
    logger.info("Recommendation %s created by %s for %s", stored["id"], profile["id"], assignee["id"])

    assignee_name = resolve_profile_name(store, stored["user_id"])
    return present_recommendation(
        state, state.get("recommendations", stored["id"]), today=today, assignee_name=assignee_name,
    )


def update_recommendation(state, store, rec_id: str, data: dict, *, today: date | None = None) -> dict:
    """Content edit: title, description, deadline.  Status is untouched."""
    profile = state.require_profile()
    rec = state.get("recommendations", rec_id)
    if rec is None:
        raise NotFoundError(resource="Recommendation", resource_id=rec_id)
    if not authz.can_edit_recommendation(profile, rec):
        raise ForbiddenError("edit recommendation", reason="recommendation belongs to another department")
    if rec.get("status") not in EDITABLE_RECOMMENDATION_STATUSES:
        raise InvalidStateError("Recommendation", "edit", rec.get("status"))

    changes = {}
    if "title" in data:
        changes["title"] = _clean_title(data["title"])
    if "description" in data:
        changes["description"] = clean_text(data["description"], "description", required=False)
    if "deadline" in data:
        changes["deadline"] = _clean_deadline(data["deadline"])
    if not changes:
        raise ValidationError("Nothing to update: send title, description or deadline")

    call_store("update recommendation", store.update, "recommendations", rec_id, changes)
    state.apply_optimistic("recommendations", rec_id, changes)
    logger.info("Recommendation %s edited by %s: %s", rec_id, profile["id"], sorted(changes))
    return present_recommendation(state, state.get("recommendations", rec_id), today=today)


def delete_recommendation(state, store, rec_id: str) -> None:
    """Irreversible, allowed in any status."""
    profile = state.require_profile()
    rec = state.get("recommendations", rec_id)
    if rec is None:
        raise NotFoundError(resource="Recommendation", resource_id=rec_id)
    if not authz.can_delete_recommendation(profile, rec):
        raise ForbiddenError("delete recommendation", reason="recommendation belongs to another department")

    call_store("delete recommendation", store.delete, "recommendations", rec_id)
    state.apply_optimistic_delete("recommendations", rec_id)
    logger.info("Recommendation %s deleted by %s", rec_id, profile["id"])
