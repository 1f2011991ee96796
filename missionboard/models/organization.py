"""
MissionBoard
Organization models — departments and user profiles.

Models:
    - Department: organizational unit (acronym + name), rename-only after creation
    - Profile: an account with a role (admin / chief / user) and optional department

Role is fixed at creation. ``chief`` and ``user`` are department-scoped,
``admin`` is global.
"""

import uuid
from datetime import datetime, timezone

from missionboard.models import db


# ── Constants ────────────────────────────────────────────────────────────────

ROLE_ADMIN = "admin"
ROLE_CHIEF = "chief"
ROLE_USER = "user"

ROLES = {ROLE_ADMIN, ROLE_CHIEF, ROLE_USER}


# ── Helpers ──────────────────────────────────────────────────────────────────

def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
#  DEPARTMENT
# ═══════════════════════════════════════════════════════════════════════════

class Department(db.Model):
    __tablename__ = "departments"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    acronym = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    WRITABLE_FIELDS = ("acronym", "name")

    @classmethod
    def from_record(cls, data):
        return cls(
            id=data.get("id") or _uuid(),
            acronym=data["acronym"],
            name=data["name"],
        )

    def apply_changes(self, changes):
        for key in self.WRITABLE_FIELDS:
            if key in changes:
                setattr(self, key, changes[key])

    def to_dict(self):
        return {
            "id": self.id,
            "acronym": self.acronym,
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Department {self.acronym}>"


# ═══════════════════════════════════════════════════════════════════════════
#  PROFILE
# ═══════════════════════════════════════════════════════════════════════════

class Profile(db.Model):
    """
    An authenticated account.

    ``password_hash`` is never part of the serialised record, so it does
    not travel through the change feed or the local cache.
    """

    __tablename__ = "profiles"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    email = db.Column(db.String(200), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256))
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_USER, index=True)
    department_id = db.Column(
        db.String(36),
        db.ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    department = db.relationship("Department", lazy="joined")

    # role is fixed at creation
    WRITABLE_FIELDS = ("name", "department_id")

    @classmethod
    def from_record(cls, data):
        return cls(
            id=data.get("id") or _uuid(),
            email=data["email"],
            password_hash=data.get("password_hash"),
            name=data["name"],
            role=data.get("role", ROLE_USER),
            department_id=data.get("department_id"),
        )

    def apply_changes(self, changes):
        for key in self.WRITABLE_FIELDS:
            if key in changes:
                setattr(self, key, changes[key])

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "department_id": self.department_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Profile {self.email} ({self.role})>"
