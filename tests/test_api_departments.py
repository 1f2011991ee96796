"""
Department, user directory and dashboard endpoints.
"""


class TestDepartmentsApi:

    def test_anonymous_can_list(self, client, make_department):
        make_department("B", "Beta")
        make_department("A", "Alpha")
        res = client.get("/api/v1/departments")
        assert res.status_code == 200
        assert [d["name"] for d in res.get_json()] == ["Alpha", "Beta"]

    def test_admin_creates(self, client, make_profile, auth_headers):
        headers = auth_headers(make_profile(role="admin"))
        res = client.post("/api/v1/departments", json={"acronym": "hr", "name": "People"}, headers=headers)
        assert res.status_code == 201
        assert res.get_json()["acronym"] == "HR"

        res = client.post("/api/v1/departments", json={"acronym": "HR", "name": "Again"}, headers=headers)
        assert res.status_code == 409

    def test_non_string_acronym(self, client, make_profile, auth_headers):
        headers = auth_headers(make_profile(role="admin"))
        res = client.post("/api/v1/departments", json={"acronym": 7, "name": "Seven"}, headers=headers)
        assert res.status_code == 422
        assert res.get_json()["details"] == {"acronym": "type"}

    def test_anonymous_cannot_create(self, client):
        res = client.post("/api/v1/departments", json={"acronym": "X", "name": "X"})
        assert res.status_code == 401

    def test_chief_cannot_rename(self, client, make_department, make_profile, auth_headers):
        dept = make_department()
        headers = auth_headers(make_profile(role="chief", department=dept))
        res = client.patch(f"/api/v1/departments/{dept['id']}", json={"name": "Mine"}, headers=headers)
        assert res.status_code == 403

    def test_admin_renames(self, client, make_department, make_profile, auth_headers):
        dept = make_department()
        headers = auth_headers(make_profile(role="admin"))
        res = client.patch(f"/api/v1/departments/{dept['id']}", json={"name": "Renamed"}, headers=headers)
        assert res.status_code == 200
        assert res.get_json()["name"] == "Renamed"

    def test_unknown_department(self, client):
        assert client.get("/api/v1/departments/nope").status_code == 404


class TestUsersApi:

    def test_chief_sees_department(self, client, make_department, make_profile, auth_headers):
        d1 = make_department("D1")
        d2 = make_department("D2")
        chief = make_profile(role="chief", department=d1)
        make_profile(role="user", department=d1)
        make_profile(role="user", department=d2)
        body = client.get("/api/v1/users", headers=auth_headers(chief)).get_json()
        assert body["total"] == 2

    def test_role_filter(self, client, make_department, make_profile, auth_headers):
        d1 = make_department()
        admin = make_profile(role="admin")
        make_profile(role="user", department=d1)
        body = client.get("/api/v1/users?role=user", headers=auth_headers(admin)).get_json()
        assert body["total"] == 1


class TestDashboardApi:

    def test_stats_require_auth(self, client):
        assert client.get("/api/v1/dashboard/stats").status_code == 401

    def test_admin_stats(self, client, make_department, make_profile, auth_headers):
        make_department("D1")
        admin = make_profile(role="admin")
        body = client.get("/api/v1/dashboard/stats", headers=auth_headers(admin)).get_json()
        assert body["total"] == 0
        assert body["departments"] == 1
        assert body["by_department"][0]["acronym"] == "D1"
