"""
Departments (admin-managed) and profiles (sign-up, visibility).
"""

import pytest

from missionboard.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from missionboard.services import department_service, user_service


# ═══════════════════════════════════════════════════════════════════════════
# Departments
# ═══════════════════════════════════════════════════════════════════════════


class TestDepartments:

    def test_list_sorted_by_name_for_anonymous(self, world):
        names = [d["name"] for d in department_service.list_departments(world.state_for(None))]
        assert names == ["Finance", "Operations"]

    def test_admin_creates_with_upper_case_acronym(self, world):
        state = world.state_for(world.admin)
        dept = department_service.create_department(state, world.store, {"acronym": "hr", "name": "People"})
        assert dept["acronym"] == "HR"
        assert world.store.get("departments", dept["id"])["name"] == "People"

    def test_duplicate_acronym_conflicts(self, world):
        with pytest.raises(ConflictError):
            department_service.create_department(world.state_for(world.admin), world.store,
                                                 {"acronym": "d1", "name": "Copy"})

    def test_chief_cannot_create(self, world):
        with pytest.raises(ForbiddenError):
            department_service.create_department(world.state_for(world.chief1), world.store,
                                                 {"acronym": "X", "name": "X"})

    def test_rename(self, world):
        dept = department_service.rename_department(world.state_for(world.admin), world.store, "d1",
                                                    {"name": "Ops"})
        assert dept["name"] == "Ops"
        assert dept["acronym"] == "D1"

    def test_rename_unknown_before_permission(self, world):
        with pytest.raises(NotFoundError):
            department_service.rename_department(world.state_for(world.user_u), world.store, "nope",
                                                 {"name": "x"})

    def test_rename_requires_a_field(self, world):
        with pytest.raises(ValidationError):
            department_service.rename_department(world.state_for(world.admin), world.store, "d1", {})

    def test_non_string_acronym(self, world):
        with pytest.raises(ValidationError):
            department_service.create_department(world.state_for(world.admin), world.store,
                                                 {"acronym": ["OPS"], "name": "Operations"})
        with pytest.raises(ValidationError):
            department_service.rename_department(world.state_for(world.admin), world.store, "d1",
                                                 {"acronym": 9})


# ═══════════════════════════════════════════════════════════════════════════
# Profiles
# ═══════════════════════════════════════════════════════════════════════════


def _signup(**overrides):
    data = {"email": "new@example.com", "password": "secret123", "name": "New Person", "department_id": "d2"}
    data.update(overrides)
    return data


class TestRegistration:

    def test_register_creates_user_role(self, world):
        profile = user_service.register_user(world.store, _signup(role="admin"))
        assert profile["role"] == "user"
        assert profile["department_id"] == "d2"
        assert "password_hash" not in profile
        assert world.store.get("profiles", profile["id"])["password_hash"]

    def test_email_normalized(self, world):
        profile = user_service.register_user(world.store, _signup(email="  Mixed@Example.COM "))
        assert profile["email"] == "mixed@example.com"

    def test_duplicate_email(self, world):
        with pytest.raises(ConflictError):
            user_service.register_user(world.store, _signup(email="user_u@example.com"))

    @pytest.mark.parametrize("overrides", [
        {"email": "not-an-email"},
        {"password": "short"},
        {"name": "  "},
        {"department_id": None},
        {"department_id": "ghost"},
        {"email": 42},
        {"name": ["New", "Person"]},
        {"password": 12345678},
        {"department_id": ["d2"]},
    ])
    def test_invalid_sign_up(self, world, overrides):
        with pytest.raises(ValidationError):
            user_service.register_user(world.store, _signup(**overrides))

    def test_admin_without_department(self, world):
        profile = user_service.create_profile(world.store, email="boss@example.com", password="secret123",
                                              name="Boss", role="admin")
        assert profile["department_id"] is None


class TestUserVisibility:

    def test_chief_lists_own_department(self, world):
        ids = [p["id"] for p in user_service.list_users(world.state_for(world.chief1))]
        assert set(ids) == {"chief1", "user_u", "user_u2"}

    def test_role_filter(self, world):
        users = user_service.list_users(world.state_for(world.admin), role="chief")
        assert {p["id"] for p in users} == {"chief1", "chief2"}

    def test_user_cannot_see_colleague(self, world):
        with pytest.raises(NotFoundError):
            user_service.get_user(world.state_for(world.user_u), "user_u2")
