"""
Access scope — role visibility first, UI filters only narrow it.
"""

from datetime import timedelta

from missionboard.services.access_scope import (
    scoped_missions,
    scoped_recommendations,
    visible_missions,
    visible_profiles,
    visible_recommendations,
)


def _ids(records):
    return {r["id"] for r in records}


# ═══════════════════════════════════════════════════════════════════════════
# Missions
# ═══════════════════════════════════════════════════════════════════════════


class TestMissionVisibility:

    def test_mission_in_d1_hidden_from_chief_d2(self, world):
        assert "mission_m" not in _ids(visible_missions(world.state_for(world.chief2)))

    def test_mission_in_d1_visible_to_chief_d1(self, world):
        assert "mission_m" in _ids(visible_missions(world.state_for(world.chief1)))

    def test_admin_sees_all(self, world):
        world.store.insert("missions", {"id": "global", "title": "G", "department_id": None, "created_by": "admin"})
        assert _ids(visible_missions(world.state_for(world.admin))) == {"mission_m", "global"}

    def test_chief_sees_missions_they_created_elsewhere(self, world):
        world.store.insert("missions", {"id": "m_d2", "title": "X", "department_id": "d2", "created_by": "chief1"})
        assert "m_d2" in _ids(visible_missions(world.state_for(world.chief1)))
        assert "m_d2" in _ids(visible_missions(world.state_for(world.chief2)))

    def test_user_sees_own_department_missions(self, world):
        world.store.insert("missions", {"id": "m_d2", "title": "X", "department_id": "d2", "created_by": "admin"})
        assert _ids(visible_missions(world.state_for(world.user_u2))) == {"mission_m"}

    def test_anonymous_sees_nothing(self, world):
        assert visible_missions(world.state_for(None)) == []


# ═══════════════════════════════════════════════════════════════════════════
# Recommendations
# ═══════════════════════════════════════════════════════════════════════════


class TestRecommendationVisibility:

    def test_admin_sees_r(self, world):
        assert "rec_r" in _ids(visible_recommendations(world.state_for(world.admin)))

    def test_chief_of_other_department_does_not(self, world):
        assert "rec_r" not in _ids(visible_recommendations(world.state_for(world.chief2)))

    def test_assignee_sees_r(self, world):
        assert "rec_r" in _ids(visible_recommendations(world.state_for(world.user_u)))

    def test_colleague_in_same_department_does_not(self, world):
        assert "rec_r" not in _ids(visible_recommendations(world.state_for(world.user_u2)))

    def test_chief_of_department_sees_r(self, world):
        assert "rec_r" in _ids(visible_recommendations(world.state_for(world.chief1)))


class TestProfileVisibility:

    def test_user_sees_only_self(self, world):
        assert _ids(visible_profiles(world.state_for(world.user_u))) == {"user_u"}

    def test_chief_sees_department_and_self(self, world):
        assert _ids(visible_profiles(world.state_for(world.chief1))) == {"chief1", "user_u", "user_u2"}

    def test_admin_sees_everyone(self, world):
        assert len(visible_profiles(world.state_for(world.admin))) == 5


# ═══════════════════════════════════════════════════════════════════════════
# UI filters
# ═══════════════════════════════════════════════════════════════════════════


def _add_rec(world, rid, **fields):
    record = {
        "id": rid, "title": f"Rec {rid}", "description": "", "user_id": "user_u",
        "department_id": "d1", "mission_id": "mission_m", "status": "in_progress",
        "deadline": (world.today + timedelta(days=5)).isoformat(),
        "completed_at": None, "confirmed_at": None, "confirmed_by": None,
    }
    record.update(fields)
    world.store.insert("recommendations", record)


class TestUiFilters:

    def test_search_is_case_insensitive_over_title_and_description(self, world):
        _add_rec(world, "r2", title="Budget", description="Annual REVIEW")
        state = world.state_for(world.admin)
        assert _ids(scoped_recommendations(state, search="review")) == {"r2"}
        assert _ids(scoped_recommendations(state, search="FIX THE")) == {"rec_r"}

    def test_status_filter_matches_display_status(self, world):
        _add_rec(world, "late", deadline=(world.today - timedelta(days=1)).isoformat())
        state = world.state_for(world.admin)
        assert _ids(scoped_recommendations(state, status="overdue", today=world.today)) == {"late"}
        assert _ids(scoped_recommendations(state, status="in_progress", today=world.today)) == {"rec_r"}

    def test_department_filter_ignored_for_chief(self, world):
        _add_rec(world, "r_d2", department_id="d2", user_id="chief2")
        chief_state = world.state_for(world.chief1)
        # a chief cannot widen or re-target the scope with the department filter
        assert _ids(scoped_recommendations(chief_state, department_id="d2")) == {"rec_r"}
        admin_state = world.state_for(world.admin)
        assert _ids(scoped_recommendations(admin_state, department_id="d2")) == {"r_d2"}

    def test_filters_never_widen_scope(self, world):
        _add_rec(world, "r_u2", user_id="user_u2")
        state = world.state_for(world.user_u)
        assert scoped_recommendations(state, user_id="user_u2") == []

    def test_mission_filter(self, world):
        world.store.insert("missions", {"id": "m2", "title": "Other", "department_id": "d1", "created_by": "admin"})
        _add_rec(world, "r_m2", mission_id="m2")
        state = world.state_for(world.admin)
        assert _ids(scoped_recommendations(state, mission_id="m2")) == {"r_m2"}

    def test_mission_search(self, world):
        state = world.state_for(world.admin)
        assert _ids(scoped_missions(state, search="quarterly")) == {"mission_m"}
        assert scoped_missions(state, search="nothing like this") == []
