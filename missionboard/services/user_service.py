"""
User Service — profiles, sign-up and password login.

Profiles are written through the record store like every other
collection.  Login is the one place that reads the profiles table
directly: the password hash never leaves the database layer.
"""

import logging

from email_validator import EmailNotValidError, validate_email

from missionboard.core.exceptions import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from missionboard.models.organization import ROLE_ADMIN, ROLE_USER, ROLES, Profile
from missionboard.services import authorization as authz
from missionboard.services.access_scope import visible_profiles
from missionboard.services.store_calls import call_store
from missionboard.utils.crypto import hash_password, verify_password
from missionboard.utils.helpers import clean_text, optional_id

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def present_profile(profile: dict) -> dict:
    """Profile dict safe to return to clients."""
    return {k: v for k, v in profile.items() if k != "password_hash"}


# ═══════════════════════════════════════════════════════════════
# Profile creation
# ═══════════════════════════════════════════════════════════════
def create_profile(
    store,
    *,
    email: str,
    password: str,
    name: str,
    role: str = ROLE_USER,
    department_id: str | None = None,
) -> dict:
    """Create a profile with a hashed password.

    Used by self-service sign-up (role ``user``) and the
    ``flask create-profile`` command (any role).

    Raises:
        ValidationError, ConflictError, RemoteFailureError
    """
    email = clean_text(email, "email", required=False)
    try:
        email = validate_email(email, check_deliverability=False).normalized.lower()
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": "invalid"})

    name = clean_text(name, "name")
    if not isinstance(password or "", str):
        raise ValidationError("password must be a string", details={"password": "type"})
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"password": "too_short"},
        )
    if role not in ROLES:
        raise ValidationError(f"Invalid role: {role}", details={"allowed": sorted(ROLES)})

    department_id = optional_id(department_id, "department_id")
    if role != ROLE_ADMIN:
        if not department_id:
            raise ValidationError(f"A {role} must belong to a department", details={"department_id": "required"})
        if call_store("load department", store.get, "departments", department_id) is None:
            raise ValidationError("Unknown department", details={"department_id": department_id})

    if call_store("check email", store.query, "profiles", email=email):
        raise ConflictError("Profile", "email", email)

    record = {
        "email": email,
        "password_hash": hash_password(password),
        "name": name,
        "role": role,
        "department_id": department_id,
    }
    stored = call_store("create profile", store.insert, "profiles", record)
    logger.info("Profile %s created (role=%s, department=%s)", stored["id"], role, department_id)
    return present_profile(stored)


def register_user(store, data: dict) -> dict:
    """Self-service sign-up.  The role is always ``user``."""
    return create_profile(
        store,
        email=data.get("email", ""),
        password=data.get("password", ""),
        name=data.get("name", ""),
        role=ROLE_USER,
        department_id=data.get("department_id"),
    )


# ═══════════════════════════════════════════════════════════════
# Authentication
# ═══════════════════════════════════════════════════════════════
def authenticate_user(email: str, password: str) -> dict:
    """Check credentials; return the profile record.

    Raises:
        UnauthenticatedError: unknown email or wrong password (same message).
    """
    email = (email or "").strip().lower()
    profile = Profile.query.filter_by(email=email).first()
    if not profile or not profile.password_hash or not verify_password(password, profile.password_hash):
        logger.info("Failed login for %s", email)
        raise UnauthenticatedError("Invalid email or password")
    return profile.to_dict()


# ═══════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════
def list_users(state, *, role: str | None = None, department_id: str | None = None) -> list[dict]:
    """Profiles the caller may see: admin all, chief own department, user self."""
    state.require_profile()
    profiles = visible_profiles(state)
    if role:
        profiles = [p for p in profiles if p.get("role") == role]
    if department_id:
        profiles = [p for p in profiles if p.get("department_id") == department_id]
    profiles.sort(key=lambda p: (p.get("name") or "").lower())
    return [present_profile(p) for p in profiles]


def get_user(state, profile_id: str) -> dict:
    caller = state.require_profile()
    profile = state.get("profiles", profile_id)
    if profile is None or not authz.can_view_profile(caller, profile):
        raise NotFoundError(resource="Profile", resource_id=profile_id)
    return present_profile(profile)
