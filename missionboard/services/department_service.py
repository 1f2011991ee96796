"""
Department service.

Departments are created by admins and can afterwards only be renamed
(name and acronym).  Acronyms are stored upper-case and are unique.

Reads:  state.auth.profile, state.cache["departments"]
Writes: store "departments", state.cache (optimistic)
"""

import logging

from missionboard.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from missionboard.services import authorization as authz
from missionboard.services.store_calls import call_store
from missionboard.utils.helpers import clean_text

logger = logging.getLogger(__name__)


def _clean(data, key):
    return clean_text(data.get(key), key)


def _check_unique_acronym(state, acronym, exclude_id=None):
    for dept in state.records("departments"):
        if dept["id"] != exclude_id and (dept.get("acronym") or "").upper() == acronym:
            raise ConflictError("Department", "acronym", acronym)


def list_departments(state) -> list[dict]:
    """All departments by name. Available to anonymous callers (sign-up)."""
    return sorted(state.records("departments"), key=lambda d: (d.get("name") or "").lower())


def get_department(state, department_id: str) -> dict:
    dept = state.get("departments", department_id)
    if dept is None:
        raise NotFoundError(resource="Department", resource_id=department_id)
    return dept


def create_department(state, store, data: dict) -> dict:
    profile = state.require_profile()
    if not authz.can_manage_departments(profile):
        raise ForbiddenError("create department", reason="admin role required")

    acronym = _clean(data, "acronym").upper()
    name = _clean(data, "name")
    _check_unique_acronym(state, acronym)

    stored = call_store("create department", store.insert, "departments", {"acronym": acronym, "name": name})
    state.apply_optimistic_insert("departments", stored)
    logger.info("Department %s (%s) created by %s", acronym, stored["id"], profile["id"])
    return state.get("departments", stored["id"])


def rename_department(state, store, department_id: str, data: dict) -> dict:
    profile = state.require_profile()
    dept = get_department(state, department_id)
    if not authz.can_manage_departments(profile):
        raise ForbiddenError("rename department", reason="admin role required")

    changes = {}
    if "name" in data:
        changes["name"] = _clean(data, "name")
    if "acronym" in data:
        acronym = _clean(data, "acronym").upper()
        if acronym != dept.get("acronym"):
            _check_unique_acronym(state, acronym, exclude_id=department_id)
        changes["acronym"] = acronym
    if not changes:
        raise ValidationError("Nothing to update: send name or acronym")

    call_store("rename department", store.update, "departments", department_id, changes)
    state.apply_optimistic("departments", department_id, changes)
    logger.info("Department %s renamed by %s: %s", department_id, profile["id"], changes)
    return state.get("departments", department_id)
