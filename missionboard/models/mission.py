"""
MissionBoard
Mission domain models.

Models:
    - Mission: a departmental goal grouping recommendations
    - Recommendation: an assignable action item attached to a mission

Architecture chain: Department → Mission → Recommendation → Profile (assignee)

Recommendation lifecycle (canonical):

    in_progress ──submit──▶ pending ──confirm──▶ confirmed
         ▲                     │
         └───────reject────────┘

``overdue`` is a display label derived from the deadline, never stored by
a user action.  ``completed`` is the terminal state of the earlier data
model and is read as ``confirmed`` (see normalize_legacy_record in
services/recommendation_lifecycle.py).
"""

import uuid
from datetime import datetime, timezone

from missionboard.models import db
from missionboard.utils.content import compose_content, split_content
from missionboard.utils.helpers import parse_date, parse_datetime


# ── Constants ────────────────────────────────────────────────────────────────

MISSION_ACTIVE = "active"
MISSION_COMPLETED = "completed"
MISSION_OVERDUE = "overdue"

# overdue is derived; only these may be stored
MISSION_SETTABLE_STATUSES = {MISSION_ACTIVE, MISSION_COMPLETED}

REC_IN_PROGRESS = "in_progress"
REC_PENDING = "pending"
REC_CONFIRMED = "confirmed"
REC_COMPLETED = "completed"   # legacy terminal state
REC_OVERDUE = "overdue"       # derived label

# Statuses in which title/description/deadline may still be edited
EDITABLE_RECOMMENDATION_STATUSES = {REC_IN_PROGRESS, REC_PENDING}

# Recommendation transition rules: action → allowed from-states and target
RECOMMENDATION_TRANSITIONS = {
    "submit": {"from": [REC_IN_PROGRESS], "to": REC_PENDING},
    "confirm": {"from": [REC_PENDING], "to": REC_CONFIRMED},
    "reject": {"from": [REC_PENDING], "to": REC_IN_PROGRESS},
}


# ── Helpers ──────────────────────────────────────────────────────────────────

def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ═══════════════════════════════════════════════════════════════════════════
#  MISSION
# ═══════════════════════════════════════════════════════════════════════════

class Mission(db.Model):
    """
    A goal owned by one department (or none, for organization-wide missions).

    Created, edited and deleted by admins and chiefs.  Deleting a mission
    removes its recommendations.
    """

    __tablename__ = "missions"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    created_by = db.Column(
        db.String(36),
        db.ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Creator profile id",
    )
    created_by_name = db.Column(db.String(200), default="")
    department_id = db.Column(
        db.String(36),
        db.ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    deadline = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), default=MISSION_ACTIVE, index=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    WRITABLE_FIELDS = ("title", "description", "department_id", "deadline", "status", "completed_at")

    @classmethod
    def from_record(cls, data):
        return cls(
            id=data.get("id") or _uuid(),
            title=data["title"],
            description=data.get("description", ""),
            created_by=data.get("created_by"),
            created_by_name=data.get("created_by_name", ""),
            department_id=data.get("department_id"),
            deadline=parse_date(data.get("deadline")),
            status=data.get("status", MISSION_ACTIVE),
            completed_at=parse_datetime(data.get("completed_at")),
        )

    def apply_changes(self, changes):
        for key in self.WRITABLE_FIELDS:
            if key not in changes:
                continue
            value = changes[key]
            if key == "deadline":
                value = parse_date(value)
            elif key == "completed_at":
                value = parse_datetime(value)
            setattr(self, key, value)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "created_by": self.created_by,
            "created_by_name": self.created_by_name or "",
            "department_id": self.department_id,
            "deadline": _iso(self.deadline),
            "status": self.status,
            "completed_at": _iso(self.completed_at),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Mission {self.id} {self.title!r}>"


# ═══════════════════════════════════════════════════════════════════════════
#  RECOMMENDATION
# ═══════════════════════════════════════════════════════════════════════════

class Recommendation(db.Model):
    """
    An action item assigned to one profile.

    Title and description are stored together in ``content``
    (see utils/content.py).  ``confirmed_at``/``confirmed_by`` and
    ``completed_at`` are only ever set while status is ``confirmed``.
    """

    __tablename__ = "recommendations"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    content = db.Column(db.Text, nullable=False, default="")
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Assignee profile id",
    )
    created_by = db.Column(db.String(200), default="", comment="Creator display name")
    created_by_id = db.Column(
        db.String(36),
        db.ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    department_id = db.Column(
        db.String(36),
        db.ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    mission_id = db.Column(
        db.String(36),
        db.ForeignKey("missions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    deadline = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), default=REC_IN_PROGRESS, index=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    confirmed_by = db.Column(db.String(36), nullable=True, comment="Confirming profile id")
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    WRITABLE_FIELDS = (
        "department_id", "deadline", "status",
        "completed_at", "confirmed_at", "confirmed_by",
    )

    @classmethod
    def from_record(cls, data):
        return cls(
            id=data.get("id") or _uuid(),
            content=compose_content(data.get("title", ""), data.get("description", "")),
            user_id=data["user_id"],
            created_by=data.get("created_by", ""),
            created_by_id=data.get("created_by_id"),
            department_id=data.get("department_id"),
            mission_id=data["mission_id"],
            deadline=parse_date(data.get("deadline")),
            status=data.get("status", REC_IN_PROGRESS),
            completed_at=parse_datetime(data.get("completed_at")),
            confirmed_at=parse_datetime(data.get("confirmed_at")),
            confirmed_by=data.get("confirmed_by"),
        )

    def apply_changes(self, changes):
        if "title" in changes or "description" in changes:
            title, description = split_content(self.content)
            self.content = compose_content(
                changes.get("title", title),
                changes.get("description", description),
            )
        for key in self.WRITABLE_FIELDS:
            if key not in changes:
                continue
            value = changes[key]
            if key == "deadline":
                value = parse_date(value)
            elif key in ("completed_at", "confirmed_at"):
                value = parse_datetime(value)
            setattr(self, key, value)

    def to_dict(self):
        title, description = split_content(self.content)
        return {
            "id": self.id,
            "title": title,
            "description": description,
            "user_id": self.user_id,
            "created_by": self.created_by or "",
            "created_by_id": self.created_by_id,
            "department_id": self.department_id,
            "mission_id": self.mission_id,
            "deadline": _iso(self.deadline),
            "status": self.status,
            "completed_at": _iso(self.completed_at),
            "confirmed_at": _iso(self.confirmed_at),
            "confirmed_by": self.confirmed_by,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Recommendation {self.id} [{self.status}]>"
