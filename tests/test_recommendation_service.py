"""
Recommendation service — create / edit / delete / list / pending validations.
"""

from datetime import timedelta

import pytest

from missionboard.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RemoteFailureError,
    UnauthenticatedError,
    ValidationError,
)
from missionboard.services import recommendation_service as svc


def _payload(**overrides):
    data = {"title": "T", "description": "D", "user_id": "user_u", "mission_id": "mission_m"}
    data.update(overrides)
    return data


class TestCreateRecommendation:

    def test_chief_assigns_user_of_own_department(self, world):
        state = world.state_for(world.chief1)
        rec = svc.create_recommendation(state, world.store, _payload(), today=world.today)

        assert rec["title"] == "T"
        assert rec["description"] == "D"
        assert rec["status"] == "in_progress"
        assert rec["department_id"] == "d1"
        assert rec["created_by"] == "Chris Chief"
        assert rec["created_by_id"] == "chief1"
        assert rec["assignee_name"] == "Uma User"
        assert rec["deadline"] == (world.today + timedelta(days=7)).isoformat()
        assert state.get("recommendations", rec["id"]) is not None

    def test_custom_default_deadline(self, world):
        state = world.state_for(world.admin)
        rec = svc.create_recommendation(state, world.store, _payload(), today=world.today, default_deadline_days=3)
        assert rec["deadline"] == (world.today + timedelta(days=3)).isoformat()

    def test_explicit_deadline_kept(self, world):
        state = world.state_for(world.admin)
        rec = svc.create_recommendation(state, world.store, _payload(deadline="2030-05-01"))
        assert rec["deadline"] == "2030-05-01"

    def test_chief_cannot_assign_other_department(self, world):
        world.store.insert("missions", {"id": "m_d2", "title": "X", "department_id": "d2", "created_by": "chief2"})
        state = world.state_for(world.chief2)
        with pytest.raises(ForbiddenError):
            svc.create_recommendation(state, world.store, _payload(mission_id="m_d2"))

    def test_user_cannot_create(self, world):
        with pytest.raises(ForbiddenError):
            svc.create_recommendation(world.state_for(world.user_u), world.store, _payload())

    def test_anonymous_rejected(self, world):
        with pytest.raises(UnauthenticatedError):
            svc.create_recommendation(world.state_for(None), world.store, _payload())

    def test_title_with_newline_rejected(self, world):
        with pytest.raises(ValidationError):
            svc.create_recommendation(world.state_for(world.admin), world.store, _payload(title="a\nb"))

    @pytest.mark.parametrize("field", ["title", "description", "user_id", "mission_id"])
    def test_required_fields(self, world, field):
        with pytest.raises(ValidationError):
            svc.create_recommendation(world.state_for(world.admin), world.store, _payload(**{field: ""}))

    @pytest.mark.parametrize("field, value", [
        ("title", 12),
        ("description", {"text": "D"}),
        ("user_id", ["user_u"]),
        ("mission_id", ["mission_m"]),
    ])
    def test_non_string_fields(self, world, field, value):
        with pytest.raises(ValidationError) as exc_info:
            svc.create_recommendation(world.state_for(world.admin), world.store, _payload(**{field: value}))
        assert exc_info.value.details == {field: "type"}

    def test_unknown_mission(self, world):
        with pytest.raises(NotFoundError):
            svc.create_recommendation(world.state_for(world.admin), world.store, _payload(mission_id="nope"))

    def test_bad_deadline(self, world):
        with pytest.raises(ValidationError):
            svc.create_recommendation(world.state_for(world.admin), world.store, _payload(deadline="soon"))

    def test_assignee_name_falls_back_to_unknown(self, world):
        state = world.state_for(world.admin)
        world.store.fail_on.add(("get", "profiles"))
        rec = svc.create_recommendation(state, world.store, _payload())
        assert rec["assignee_name"] == "Unknown"
        assert world.store.get("recommendations", rec["id"]) is not None

    def test_insert_failure_leaves_cache_untouched(self, world):
        state = world.state_for(world.admin)
        before = len(state.records("recommendations"))
        world.store.fail_on.add(("insert", "recommendations"))
        with pytest.raises(RemoteFailureError):
            svc.create_recommendation(state, world.store, _payload())
        assert len(state.records("recommendations")) == before


class TestUpdateRecommendation:

    def test_chief_edits_content(self, world):
        state = world.state_for(world.chief1)
        rec = svc.update_recommendation(state, world.store, "rec_r", {"title": "New title", "deadline": "2030-01-01"})
        assert rec["title"] == "New title"
        assert rec["deadline"] == "2030-01-01"
        assert rec["status"] == "in_progress"
        assert world.store.get("recommendations", "rec_r")["title"] == "New title"

    def test_confirmed_is_not_editable(self, world):
        world.store.update("recommendations", "rec_r", {
            "status": "confirmed", "confirmed_at": "2026-01-01T00:00:00+00:00",
            "confirmed_by": "admin", "completed_at": "2026-01-01T00:00:00+00:00",
        })
        with pytest.raises(InvalidStateError):
            svc.update_recommendation(world.state_for(world.admin), world.store, "rec_r", {"title": "x"})

    def test_chief_of_other_department_forbidden(self, world):
        with pytest.raises(ForbiddenError):
            svc.update_recommendation(world.state_for(world.chief2), world.store, "rec_r", {"title": "x"})

    def test_assignee_cannot_edit(self, world):
        with pytest.raises(ForbiddenError):
            svc.update_recommendation(world.state_for(world.user_u), world.store, "rec_r", {"title": "x"})

    def test_non_string_description(self, world):
        with pytest.raises(ValidationError):
            svc.update_recommendation(world.state_for(world.admin), world.store, "rec_r", {"description": 3})

    def test_empty_update(self, world):
        with pytest.raises(ValidationError):
            svc.update_recommendation(world.state_for(world.admin), world.store, "rec_r", {"status": "confirmed"})


class TestDeleteRecommendation:

    def test_delete_confirmed_allowed(self, world):
        world.store.update("recommendations", "rec_r", {"status": "confirmed"})
        state = world.state_for(world.chief1)
        svc.delete_recommendation(state, world.store, "rec_r")
        assert state.get("recommendations", "rec_r") is None
        assert world.store.get("recommendations", "rec_r") is None

    def test_user_cannot_delete(self, world):
        with pytest.raises(ForbiddenError):
            svc.delete_recommendation(world.state_for(world.user_u), world.store, "rec_r")

    def test_delete_failure_keeps_record_visible(self, world):
        state = world.state_for(world.admin)
        world.store.fail_on.add(("delete", "recommendations"))
        with pytest.raises(RemoteFailureError):
            svc.delete_recommendation(state, world.store, "rec_r")
        assert state.get("recommendations", "rec_r") is not None


class TestReads:

    def test_list_for_assignee(self, world):
        recs = svc.list_recommendations(world.state_for(world.user_u), today=world.today)
        assert [r["id"] for r in recs] == ["rec_r"]
        assert recs[0]["mission_title"] == "Quarterly goals"
        assert recs[0]["available_actions"] == ["submit"]

    def test_get_invisible_is_not_found(self, world):
        with pytest.raises(NotFoundError):
            svc.get_recommendation(world.state_for(world.user_u2), "rec_r")

    def test_pending_validations(self, world):
        world.store.update("recommendations", "rec_r", {"status": "pending"})
        assert [r["id"] for r in svc.list_pending_validations(world.state_for(world.chief1))] == ["rec_r"]
        assert svc.list_pending_validations(world.state_for(world.chief2)) == []
        assert svc.list_pending_validations(world.state_for(world.user_u)) == []

    def test_legacy_confirmer_name(self, world):
        world.store.update("recommendations", "rec_r", {"status": "completed", "completed_at": "2025-01-01T00:00:00+00:00"})
        rec = svc.get_recommendation(world.state_for(world.admin), "rec_r")
        assert rec["status"] == "confirmed"
        assert rec["confirmed_by_name"] == "Unknown"
