"""
Dashboard statistics over the caller's visible scope.

    total / per display status / completion_rate
    missions: total, active, completed, overdue
    departments and users counts
    per-department breakdown (admin only)
    upcoming deadlines and recently confirmed items

Reads: state.auth.profile, state.cache
"""

import logging
from collections import defaultdict
from datetime import date

from missionboard.models.mission import (
    MISSION_ACTIVE,
    MISSION_COMPLETED,
    MISSION_OVERDUE,
    REC_CONFIRMED,
    REC_IN_PROGRESS,
    REC_OVERDUE,
    REC_PENDING,
)
from missionboard.models.organization import ROLE_USER
from missionboard.services import authorization as authz
from missionboard.services.access_scope import visible_missions, visible_profiles, visible_recommendations
from missionboard.services.display_status import mission_display_status, recommendation_display_status

logger = logging.getLogger(__name__)

LIST_LIMIT = 5


def _percent(part, whole):
    return round(part * 100 / whole) if whole else 0


def _brief(rec, today):
    return {
        "id": rec["id"],
        "title": rec.get("title"),
        "deadline": rec.get("deadline"),
        "confirmed_at": rec.get("confirmed_at"),
        "user_id": rec.get("user_id"),
        "display_status": recommendation_display_status(rec, today),
    }


def get_dashboard_stats(state, today: date | None = None) -> dict:
    profile = state.require_profile()
    today = today or date.today()

    recs = visible_recommendations(state)
    missions = visible_missions(state)

    counts = {REC_IN_PROGRESS: 0, REC_PENDING: 0, REC_CONFIRMED: 0, REC_OVERDUE: 0}
    for rec in recs:
        label = recommendation_display_status(rec, today)
        counts[label] = counts.get(label, 0) + 1

    mission_counts = {MISSION_ACTIVE: 0, MISSION_COMPLETED: 0, MISSION_OVERDUE: 0}
    for mission in missions:
        label = mission_display_status(mission, today)
        mission_counts[label] = mission_counts.get(label, 0) + 1

    stats = {
        "total": len(recs),
        **counts,
        "completion_rate": _percent(counts[REC_CONFIRMED], len(recs)),
        "missions": {"total": len(missions), **mission_counts},
        "departments": len(state.records("departments")),
        "users": sum(1 for p in visible_profiles(state) if p.get("role") == ROLE_USER),
    }

    if authz.is_admin(profile):
        by_department = defaultdict(lambda: {"total": 0, "confirmed": 0})
        for rec in recs:
            bucket = by_department[rec.get("department_id")]
            bucket["total"] += 1
            if rec.get("status") == REC_CONFIRMED:
                bucket["confirmed"] += 1
        breakdown = []
        for dept in state.records("departments"):
            bucket = by_department.get(dept["id"], {"total": 0, "confirmed": 0})
            breakdown.append({
                "department_id": dept["id"],
                "acronym": dept.get("acronym"),
                "name": dept.get("name"),
                **bucket,
                "completion_rate": _percent(bucket["confirmed"], bucket["total"]),
            })
        breakdown.sort(key=lambda b: b["acronym"] or "")
        stats["by_department"] = breakdown

    open_items = [r for r in recs if r.get("status") != REC_CONFIRMED and r.get("deadline")]
    open_items.sort(key=lambda r: r["deadline"])
    stats["upcoming"] = [_brief(r, today) for r in open_items[:LIST_LIMIT]]

    confirmed = [r for r in recs if r.get("status") == REC_CONFIRMED]
    confirmed.sort(key=lambda r: r.get("confirmed_at") or "", reverse=True)
    stats["recently_confirmed"] = [_brief(r, today) for r in confirmed[:LIST_LIMIT]]

    logger.debug("Dashboard stats for %s: total=%d", profile["id"], stats["total"])
    return stats
