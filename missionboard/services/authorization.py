"""
Authorization predicates — who may see and do what.

Single source for both consumers:
  - access_scope.py           (what is shown)
  - recommendation_lifecycle  (what is allowed)
  - mission / department / recommendation services

Every predicate takes the caller ``profile`` dict (``{id, role,
department_id, name}``) or None for an anonymous caller, and returns a bool.
An anonymous caller is refused by every predicate.

Role model:
    admin   global, sees and edits everything
    chief   scoped to own department (plus missions they created)
    user    scoped to recommendations assigned to them
"""

from missionboard.models.organization import ROLE_ADMIN, ROLE_CHIEF, ROLE_USER

EDITOR_ROLES = {ROLE_ADMIN, ROLE_CHIEF}


# ── Role helpers ────────────────────────────────────────────────────────────

def is_admin(profile) -> bool:
    return bool(profile) and profile.get("role") == ROLE_ADMIN


def is_chief(profile) -> bool:
    return bool(profile) and profile.get("role") == ROLE_CHIEF


def is_user(profile) -> bool:
    return bool(profile) and profile.get("role") == ROLE_USER


def same_department(profile, record) -> bool:
    """True when both carry the same, non-null department id."""
    if not profile or not record:
        return False
    department_id = profile.get("department_id")
    return department_id is not None and record.get("department_id") == department_id


def can_edit(profile) -> bool:
    """Role-level edit right (button visibility before a record is chosen)."""
    return bool(profile) and profile.get("role") in EDITOR_ROLES


def has_edit_rights(profile, record) -> bool:
    """Record-level edit right: admin, or chief of the record's department."""
    return is_admin(profile) or (is_chief(profile) and same_department(profile, record))


# ── Visibility ──────────────────────────────────────────────────────────────

def can_view_mission(profile, mission) -> bool:
    if not profile or not mission:
        return False
    if is_admin(profile):
        return True
    if is_chief(profile):
        return same_department(profile, mission) or mission.get("created_by") == profile.get("id")
    if is_user(profile):
        return same_department(profile, mission)
    return False


def can_view_recommendation(profile, rec) -> bool:
    if not profile or not rec:
        return False
    if is_admin(profile):
        return True
    if is_chief(profile):
        return same_department(profile, rec)
    if is_user(profile):
        return rec.get("user_id") == profile.get("id")
    return False


def can_view_profile(profile, other) -> bool:
    if not profile or not other:
        return False
    if is_admin(profile) or other.get("id") == profile.get("id"):
        return True
    return is_chief(profile) and same_department(profile, other)


# ── Missions ────────────────────────────────────────────────────────────────

def can_create_mission(profile, department_id) -> bool:
    if is_admin(profile):
        return True
    return is_chief(profile) and department_id is not None and department_id == profile.get("department_id")


def can_edit_mission(profile, mission) -> bool:
    if is_admin(profile):
        return True
    if not is_chief(profile) or not mission:
        return False
    return same_department(profile, mission) or mission.get("created_by") == profile.get("id")


can_delete_mission = can_edit_mission


# ── Recommendations ─────────────────────────────────────────────────────────

def can_create_recommendation(profile, assignee) -> bool:
    """Admin assigns anyone; a chief assigns users of their own department."""
    if not assignee:
        return False
    if is_admin(profile):
        return True
    return is_chief(profile) and same_department(profile, assignee)


def can_edit_recommendation(profile, rec) -> bool:
    return has_edit_rights(profile, rec)


can_delete_recommendation = can_edit_recommendation


def can_submit(profile, rec) -> bool:
    """Only the assignee submits their own recommendation."""
    if not profile or not rec:
        return False
    return rec.get("user_id") == profile.get("id")


def can_confirm(profile, rec) -> bool:
    """Confirm/reject right, independent of the current status."""
    return has_edit_rights(profile, rec)


can_reject = can_confirm


# ── Organization ────────────────────────────────────────────────────────────

def can_manage_departments(profile) -> bool:
    return is_admin(profile)
