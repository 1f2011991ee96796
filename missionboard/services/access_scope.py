"""
Access scope — which missions, recommendations and profiles a caller sees.

Composition order:
  1. role scope (authorization.can_view_*), the hard boundary
  2. optional UI filters, which only ever narrow step 1

UI filters:
    search          case-insensitive substring of title or description
    status          matched against the display status, so "overdue" works
    department_id   honoured for admins only
    mission_id, user_id, created_by

Reads: state.auth.profile, state.cache
"""

from datetime import date

from missionboard.services import authorization as authz
from missionboard.services.display_status import (
    mission_display_status,
    recommendation_display_status,
)


# ── Role scope ──────────────────────────────────────────────────────────────

def visible_missions(state) -> list[dict]:
    profile = state.profile
    if profile is None:
        return []
    return [m for m in state.records("missions") if authz.can_view_mission(profile, m)]


def visible_recommendations(state) -> list[dict]:
    profile = state.profile
    if profile is None:
        return []
    return [r for r in state.records("recommendations") if authz.can_view_recommendation(profile, r)]


def visible_profiles(state) -> list[dict]:
    profile = state.profile
    if profile is None:
        return []
    return [p for p in state.records("profiles") if authz.can_view_profile(profile, p)]


# ── UI filters ──────────────────────────────────────────────────────────────

def _matches_search(record, search):
    needle = search.strip().lower()
    if not needle:
        return True
    haystack = f"{record.get('title') or ''}\n{record.get('description') or ''}".lower()
    return needle in haystack


def filter_recommendations(
    records: list[dict],
    profile,
    *,
    search: str | None = None,
    status: str | None = None,
    department_id: str | None = None,
    mission_id: str | None = None,
    user_id: str | None = None,
    today: date | None = None,
) -> list[dict]:
    result = list(records)
    if search:
        result = [r for r in result if _matches_search(r, search)]
    if status:
        result = [r for r in result if recommendation_display_status(r, today) == status]
    if department_id and authz.is_admin(profile):
        result = [r for r in result if r.get("department_id") == department_id]
    if mission_id:
        result = [r for r in result if r.get("mission_id") == mission_id]
    if user_id:
        result = [r for r in result if r.get("user_id") == user_id]
    return result


def filter_missions(
    records: list[dict],
    profile,
    *,
    search: str | None = None,
    status: str | None = None,
    department_id: str | None = None,
    created_by: str | None = None,
    today: date | None = None,
) -> list[dict]:
    result = list(records)
    if search:
        result = [m for m in result if _matches_search(m, search)]
    if status:
        result = [m for m in result if mission_display_status(m, today) == status]
    if department_id and authz.is_admin(profile):
        result = [m for m in result if m.get("department_id") == department_id]
    if created_by:
        result = [m for m in result if m.get("created_by") == created_by]
    return result


# ── Scope + filters ─────────────────────────────────────────────────────────

def scoped_recommendations(state, **filters) -> list[dict]:
    return filter_recommendations(visible_recommendations(state), state.profile, **filters)


def scoped_missions(state, **filters) -> list[dict]:
    return filter_missions(visible_missions(state), state.profile, **filters)
