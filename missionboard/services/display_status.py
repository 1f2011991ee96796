"""
View-time status labels.

``overdue`` is never stored.  It is derived whenever a record is shown:

    recommendation:  status == in_progress and deadline < today
    mission:         status == active      and deadline < today
"""

from datetime import date

from missionboard.models.mission import (
    MISSION_ACTIVE,
    MISSION_OVERDUE,
    REC_IN_PROGRESS,
    REC_OVERDUE,
)
from missionboard.utils.helpers import parse_date


def _past_deadline(record, today):
    deadline = parse_date(record.get("deadline"))
    if deadline is None:
        return False
    return deadline < (today or date.today())


def is_overdue(rec, today: date | None = None) -> bool:
    return rec.get("status") == REC_IN_PROGRESS and _past_deadline(rec, today)


def recommendation_display_status(rec, today: date | None = None) -> str:
    if is_overdue(rec, today):
        return REC_OVERDUE
    return rec.get("status")


def is_mission_overdue(mission, today: date | None = None) -> bool:
    return mission.get("status") == MISSION_ACTIVE and _past_deadline(mission, today)


def mission_display_status(mission, today: date | None = None) -> str:
    if is_mission_overdue(mission, today):
        return MISSION_OVERDUE
    return mission.get("status")
