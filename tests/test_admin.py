"""
Tests for the admin dashboard: gate redirects, subject and resource CRUD, stats.
"""

from app.database.object_storage import key_from_public_url
from conftest import make_user

DASHBOARD = "/admin/dashboard"


def upload(client, headers, subject_id, title="Unit test notes", file_name="unit.pdf", **form):
    data = {"title": title, "subject_id": subject_id, "category": "notes"}
    data.update(form)
    return client.post(
        f"{DASHBOARD}/resources",
        data=data,
        files={"file": (file_name, b"%PDF-1.4 upload", "application/pdf")},
        headers=headers
    )


class TestAdminGate:
    def test_anonymous_dashboard_redirects_to_login(self, client):
        response = client.get(DASHBOARD, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/admin/login"

    def test_anonymous_nested_dashboard_path_redirects(self, client):
        response = client.get(f"{DASHBOARD}/subjects", follow_redirects=False)
        assert response.status_code == 307

    def test_signed_in_login_page_redirects_to_dashboard(self, client, admin_headers):
        response = client.get("/admin/login", headers=admin_headers, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == DASHBOARD

    def test_anonymous_login_page(self, client):
        response = client.get("/admin/login", follow_redirects=False)

        assert response.status_code == 200
        assert response.json()["login_endpoint"] == "/api/v1/auth/login"

    def test_expired_cookie_redirects(self, client):
        client.cookies.set("access_token", "expired")
        assert client.get(DASHBOARD, follow_redirects=False).status_code == 307

    def test_student_is_forbidden(self, client, student_headers):
        assert client.get(DASHBOARD, headers=student_headers).status_code == 403

    def test_public_routes_are_not_gated(self, client):
        assert client.get("/api/v1/catalog/options").status_code == 200


class TestSubjects:
    def test_create_and_list(self, client, admin_headers):
        response = client.post(
            f"{DASHBOARD}/subjects",
            json={"name": "  Economics ", "grade": 11, "subject_type": "commerce"},
            headers=admin_headers
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Economics"
        listed = client.get(f"{DASHBOARD}/subjects", headers=admin_headers).json()
        assert [s["name"] for s in listed] == ["Economics"]

    def test_create_rejects_bad_input(self, client, admin_headers):
        blank = client.post(f"{DASHBOARD}/subjects", json={"name": " ", "grade": 11}, headers=admin_headers)
        bad_grade = client.post(f"{DASHBOARD}/subjects", json={"name": "X", "grade": 5}, headers=admin_headers)

        assert blank.status_code == 400
        assert bad_grade.status_code == 400

    def test_grade_change_refused_while_resources_exist(self, client, admin_headers, physics):
        response = client.put(f"{DASHBOARD}/subjects/{physics['id']}", json={"grade": 11}, headers=admin_headers)
        assert response.status_code == 409

    def test_rename(self, client, admin_headers, physics):
        response = client.put(
            f"{DASHBOARD}/subjects/{physics['id']}", json={"name": "Applied Physics"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Applied Physics"
        assert response.json()["resource_count"] == 3

    def test_delete_requires_confirmation(self, client, supabase, admin_headers):
        subject = supabase.add_subject("Art", 9)

        response = client.delete(f"{DASHBOARD}/subjects/{subject['id']}", headers=admin_headers)

        assert response.status_code == 400
        assert len(supabase.rows("subjects")) == 1

    def test_delete_with_resources_needs_cascade(self, client, supabase, admin_headers, physics):
        response = client.delete(
            f"{DASHBOARD}/subjects/{physics['id']}", params={"confirm": True}, headers=admin_headers
        )

        assert response.status_code == 409
        assert len(supabase.rows("resources")) == 3

    def test_cascade_delete_removes_resources_and_files(self, client, supabase, admin_headers, physics):
        response = client.delete(
            f"{DASHBOARD}/subjects/{physics['id']}",
            params={"confirm": True, "cascade": True},
            headers=admin_headers
        )

        assert response.status_code == 204
        assert supabase.rows("subjects") == []
        assert supabase.rows("resources") == []
        assert supabase.storage.buckets["resources"] == {}

    def test_failed_cascade_row_delete_keeps_files(self, client, supabase, admin_headers, physics):
        before = dict(supabase.storage.buckets["resources"])
        supabase.fail("resources", "delete")

        response = client.delete(
            f"{DASHBOARD}/subjects/{physics['id']}",
            params={"confirm": True, "cascade": True},
            headers=admin_headers
        )

        assert response.status_code == 500
        assert len(supabase.rows("subjects")) == 1
        assert len(supabase.rows("resources")) == 3
        assert supabase.storage.buckets["resources"] == before

    def test_delete_missing_subject(self, client, admin_headers):
        response = client.delete(f"{DASHBOARD}/subjects/missing", params={"confirm": True}, headers=admin_headers)
        assert response.status_code == 404


class TestResources:
    def test_upload_creates_resource(self, client, supabase, admin_headers, physics):
        response = upload(client, admin_headers, physics["id"], description="Chapter 3")

        assert response.status_code == 201
        data = response.json()
        assert data["grade"] == 10
        assert data["file_name"] == "unit.pdf"
        assert data["subject"]["name"] == "Physics"
        key = key_from_public_url(data["file_url"])
        assert supabase.storage.buckets["resources"][key] == b"%PDF-1.4 upload"

    def test_upload_requires_file(self, client, admin_headers, physics):
        response = client.post(
            f"{DASHBOARD}/resources",
            data={"title": "No file", "subject_id": physics["id"]},
            headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Please select a file"

    def test_upload_requires_subject(self, client, supabase, admin_headers):
        response = client.post(
            f"{DASHBOARD}/resources",
            data={"title": "Loose notes"},
            files={"file": ("loose.pdf", b"%PDF", "application/pdf")},
            headers=admin_headers
        )

        assert response.status_code == 400
        assert supabase.storage.buckets.get("resources", {}) == {}

    def test_upload_grade_must_match_subject(self, client, admin_headers, physics):
        response = upload(client, admin_headers, physics["id"], grade="11")
        assert response.status_code == 400

    def test_failed_insert_removes_upload(self, client, supabase, admin_headers, physics):
        before = dict(supabase.storage.buckets["resources"])
        supabase.fail("resources", "insert")

        response = upload(client, admin_headers, physics["id"])

        assert response.status_code == 500
        assert supabase.storage.buckets["resources"] == before

    def test_failed_upload_writes_no_row(self, client, supabase, admin_headers, physics):
        supabase.storage.fail_uploads = True

        response = upload(client, admin_headers, physics["id"])

        assert response.status_code == 500
        assert len(supabase.rows("resources")) == 3

    def test_replace_file_removes_old_object(self, client, supabase, admin_headers, physics):
        resource = supabase.rows("resources")[0]
        old_key = key_from_public_url(resource["file_url"])

        response = client.put(
            f"{DASHBOARD}/resources/{resource['id']}",
            data={"title": "Kinematics (revised)"},
            files={"file": ("revised.pdf", b"%PDF-1.4 v2", "application/pdf")},
            headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Kinematics (revised)"
        new_key = key_from_public_url(response.json()["file_url"])
        objects = supabase.storage.buckets["resources"]
        assert old_key not in objects
        assert objects[new_key] == b"%PDF-1.4 v2"

    def test_delete_resource_keeps_subject(self, client, supabase, admin_headers, physics):
        resource = supabase.rows("resources")[0]
        key = key_from_public_url(resource["file_url"])

        unconfirmed = client.delete(f"{DASHBOARD}/resources/{resource['id']}", headers=admin_headers)
        assert unconfirmed.status_code == 400

        response = client.delete(
            f"{DASHBOARD}/resources/{resource['id']}", params={"confirm": True}, headers=admin_headers
        )

        assert response.status_code == 204
        assert len(supabase.rows("resources")) == 2
        assert key not in supabase.storage.buckets["resources"]
        assert client.get(f"/api/v1/catalog/subjects/{physics['id']}").json()["resource_count"] == 2


    def test_failed_row_delete_keeps_file(self, client, supabase, admin_headers, physics):
        resource = supabase.rows("resources")[0]
        key = key_from_public_url(resource["file_url"])
        supabase.fail("resources", "delete")

        response = client.delete(
            f"{DASHBOARD}/resources/{resource['id']}", params={"confirm": True}, headers=admin_headers
        )

        assert response.status_code == 500
        assert len(supabase.rows("resources")) == 3
        assert key in supabase.storage.buckets["resources"]

    def test_storage_failure_after_row_delete_still_succeeds(self, client, supabase, admin_headers, physics):
        resource = supabase.rows("resources")[0]
        supabase.storage.fail_removes = True

        response = client.delete(
            f"{DASHBOARD}/resources/{resource['id']}", params={"confirm": True}, headers=admin_headers
        )

        assert response.status_code == 204
        assert len(supabase.rows("resources")) == 2

class TestDashboard:
    def test_stats(self, client, supabase, admin_headers, physics):
        make_user(supabase, "second@school.org", role="student")
        history = supabase.add_subject("History", 11)
        supabase.add_resource(history, "World wars", "projects")

        response = client.get(DASHBOARD, headers=admin_headers)

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_resources"] == 4
        assert stats["total_users"] == 2
        assert stats["resources_by_grade"] == {"10": 3, "11": 1}
        assert stats["resources_by_category"] == {"notes": 2, "pyqs": 1, "projects": 1}
        assert stats["recent_uploads"][0]["title"] == "World wars"
        assert len(stats["recent_uploads"]) == 4


def test_created_resource_appears_in_listing_and_science_bucket(client, admin_headers):
    subject = client.post(
        f"{DASHBOARD}/subjects",
        json={"name": "Physics", "grade": 11, "subject_type": "science"},
        headers=admin_headers
    ).json()
    created = upload(client, admin_headers, subject["id"], title="Ch1 Notes", grade="11")
    assert created.status_code == 201

    listed = client.get("/api/v1/catalog/resources", params={"grade": 11, "subject_id": subject["id"]}).json()
    overview = client.get("/api/v1/catalog/grades/11").json()

    assert [r["title"] for r in listed] == ["Ch1 Notes"]
    assert [s["name"] for s in overview["categories"]["SCIENCE"]] == ["Physics"]
    assert overview["categories"]["SCIENCE"][0]["resource_count"] == 1
