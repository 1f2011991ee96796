"""
Recommendation content encoding — title/description packed into one column.
"""

from missionboard.models.mission import Recommendation
from missionboard.utils.content import compose_content, split_content


class TestContentEncoding:

    def test_title_and_description_round_trip(self):
        content = compose_content("T", "D")
        assert content == "T\nD"
        assert split_content(content) == ("T", "D")

    def test_multiline_description_kept(self):
        content = compose_content("Title", "line one\nline two")
        assert split_content(content) == ("Title", "line one\nline two")

    def test_title_only(self):
        assert compose_content("Only title", "") == "Only title"
        assert split_content("Only title") == ("Only title", "")

    def test_surrounding_whitespace_trimmed(self):
        assert compose_content("  T", "D  ") == "T\nD"

    def test_empty_content(self):
        assert split_content("") == ("", "")
        assert split_content(None) == ("", "")


class TestSqlRoundTrip:
    """The model stores content and serialises title/description back."""

    def test_create_and_read_back(self, store, make_department, make_profile):
        dept = make_department()
        user = make_profile("user", dept)
        mission = store.insert("missions", {"title": "M", "description": "m", "department_id": dept["id"]})

        rec = store.insert("recommendations", {
            "title": "T", "description": "D",
            "user_id": user["id"], "mission_id": mission["id"], "department_id": dept["id"],
        })
        assert rec["title"] == "T"
        assert rec["description"] == "D"

        from missionboard.models import db
        row = db.session.get(Recommendation, rec["id"])
        assert row.content == "T\nD"

    def test_edit_description_keeps_title(self, store, make_department, make_profile):
        dept = make_department()
        user = make_profile("user", dept)
        mission = store.insert("missions", {"title": "M", "description": "m", "department_id": dept["id"]})
        rec = store.insert("recommendations", {
            "title": "T", "description": "D",
            "user_id": user["id"], "mission_id": mission["id"],
        })

        updated = store.update("recommendations", rec["id"], {"description": "New"})
        assert updated["title"] == "T"
        assert updated["description"] == "New"
