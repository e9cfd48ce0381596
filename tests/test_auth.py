"""
Tests for sign-in, sessions and role resolution.
"""

import pytest
from fastapi import HTTPException

from app.database.record_store import RecordStore
from app.modules.auth.schemas import LoginRequest
from app.modules.auth.service import AuthService
from app.modules.auth.session import SessionContext, SessionState
from conftest import make_user


@pytest.fixture
def auth_service(supabase):
    return AuthService(supabase, RecordStore(supabase))


class TestSessionContext:
    def test_no_token_is_anonymous(self, auth_service):
        session = SessionContext(auth_service).load(None)

        assert session.state == SessionState.ANONYMOUS
        assert session.user is None

    def test_rejected_token_is_anonymous(self, auth_service):
        session = SessionContext(auth_service).load("not-a-token")

        assert session.state == SessionState.ANONYMOUS
        with pytest.raises(HTTPException) as exc_info:
            session.require_user()
        assert exc_info.value.status_code == 401

    def test_valid_token_is_authenticated(self, supabase, auth_service):
        user, token = make_user(supabase, "student@school.org")

        session = SessionContext(auth_service).load(token)

        assert session.is_authenticated
        assert session.user.id == user.id
        assert session.user.role == "student"
        assert not session.is_admin

    def test_require_admin(self, supabase, auth_service):
        _, student_token = make_user(supabase, "student@school.org")
        _, admin_token = make_user(supabase, "admin@school.org", role="admin")

        with pytest.raises(HTTPException) as exc_info:
            SessionContext(auth_service).load(student_token).require_admin()
        assert exc_info.value.status_code == 403

        assert SessionContext(auth_service).load(admin_token).require_admin().role == "admin"

    def test_first_sign_in_creates_profile_once(self, supabase, auth_service):
        user = supabase.auth.add_user("new@school.org", metadata={"full_name": "New Student"})

        SessionContext(auth_service).complete_sign_in(supabase.auth.issue_code(user.id))
        SessionContext(auth_service).complete_sign_in(supabase.auth.issue_code(user.id))

        profiles = supabase.rows("profiles")
        assert len(profiles) == 1
        assert profiles[0]["id"] == user.id
        assert profiles[0]["full_name"] == "New Student"
        assert profiles[0]["role"] == "student"

    def test_invalid_code(self, auth_service):
        with pytest.raises(HTTPException) as exc_info:
            SessionContext(auth_service).complete_sign_in("bogus")
        assert exc_info.value.status_code == 401

    def test_profile_write_failure(self, supabase, auth_service):
        user = supabase.auth.add_user("new@school.org")
        supabase.fail("profiles", "insert")

        with pytest.raises(HTTPException) as exc_info:
            SessionContext(auth_service).complete_sign_in(supabase.auth.issue_code(user.id))
        assert exc_info.value.status_code == 500

    def test_sign_out_disposes_session(self, supabase, auth_service):
        user, token = make_user(supabase, "student@school.org")
        session = SessionContext(auth_service).load(token)

        session.sign_out()
        session.sign_out()

        assert session.state == SessionState.DISPOSED
        assert session.user is None
        assert supabase.auth.signed_out == [user.id]
        assert token not in supabase.auth.tokens
        with pytest.raises(RuntimeError):
            session.load(token)

    def test_sign_in_with_password(self, supabase, auth_service):
        make_user(supabase, "student@school.org", password="pw")
        session = SessionContext(auth_service)

        token = session.sign_in_with_password(LoginRequest(email="student@school.org", password="pw"))

        assert session.is_authenticated
        assert session.access_token == token.access_token
        assert token.role == "student"

    def test_sign_in_leaves_shared_client_anonymous(self, supabase, auth_service):
        make_user(supabase, "student@school.org", password="pw")

        token = SessionContext(auth_service).sign_in_with_password(
            LoginRequest(email="student@school.org", password="pw")
        )

        assert supabase.headers["Authorization"] == "Bearer anon-key"
        assert supabase.session_clients[-1].headers["Authorization"] == f"Bearer {token.access_token}"

    def test_code_exchange_leaves_shared_client_anonymous(self, supabase, auth_service):
        user = supabase.auth.add_user("new@school.org")

        SessionContext(auth_service).complete_sign_in(supabase.auth.issue_code(user.id))

        assert supabase.headers["Authorization"] == "Bearer anon-key"

    def test_signing_out_anonymous_session_revokes_nothing(self, supabase, auth_service):
        SessionContext(auth_service).load(None).sign_out()
        assert supabase.auth.signed_out == []


class TestRoles:
    def test_profile_role_used_without_users_row(self, supabase, auth_service):
        supabase.rows("profiles").append({"id": "u1", "email": "t@school.org", "role": "admin"})
        assert auth_service.resolve_role("u1") == "admin"

    def test_users_row_wins(self, supabase, auth_service):
        supabase.rows("users").append({"id": "u1", "email": "t@school.org", "role": "student"})
        supabase.rows("profiles").append({"id": "u1", "email": "t@school.org", "role": "admin"})
        assert auth_service.resolve_role("u1") == "student"

    def test_lookup_failure_defaults_to_student(self, supabase, auth_service):
        supabase.fail("users")
        assert auth_service.resolve_role("u1") == "student"


class TestAuthRoutes:
    def test_login_sets_cookie(self, client, supabase):
        make_user(supabase, "student@school.org", password="pw")

        response = client.post("/api/v1/auth/login", json={"email": "student@school.org", "password": "pw"})

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        assert response.cookies.get("access_token") == response.json()["access_token"]

    def test_login_wrong_password(self, client, supabase):
        make_user(supabase, "student@school.org", password="pw")

        response = client.post("/api/v1/auth/login", json={"email": "student@school.org", "password": "nope"})

        assert response.status_code == 401

    def test_me_requires_session(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_me_with_cookie(self, client, supabase):
        user, token = make_user(supabase, "student@school.org")
        client.cookies.set("access_token", token)

        response = client.get("/api/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["id"] == user.id

    def test_session_state(self, client, student_headers):
        assert client.get("/api/v1/auth/session").json() == {"state": "anonymous", "user": None}

        response = client.get("/api/v1/auth/session", headers=student_headers)
        assert response.json()["state"] == "authenticated"

    def test_callback_redirects_home(self, client, supabase):
        user = supabase.auth.add_user("new@school.org")

        response = client.get(
            "/api/v1/auth/callback",
            params={"code": supabase.auth.issue_code(user.id)},
            follow_redirects=False
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert "access_token" in response.cookies
        assert supabase.rows("profiles")[0]["id"] == user.id

    def test_logout(self, client, supabase, student_headers):
        response = client.post("/api/v1/auth/logout", headers=student_headers)

        assert response.status_code == 200
        assert len(supabase.auth.signed_out) == 1

    def test_logout_revokes_only_the_callers_session(self, client, supabase):
        first, _ = make_user(supabase, "first@school.org", password="pw1")
        second, _ = make_user(supabase, "second@school.org", password="pw2")
        first_token = client.post(
            "/api/v1/auth/login", json={"email": "first@school.org", "password": "pw1"}
        ).json()["access_token"]
        second_token = client.post(
            "/api/v1/auth/login", json={"email": "second@school.org", "password": "pw2"}
        ).json()["access_token"]
        client.cookies.clear()

        response = client.post("/api/v1/auth/logout", headers={"Authorization": f"Bearer {first_token}"})

        assert response.status_code == 200
        assert supabase.auth.signed_out == [first.id]
        assert supabase.headers["Authorization"] == "Bearer anon-key"
        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {second_token}"})
        assert me.status_code == 200
        assert me.json()["id"] == second.id
        assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {first_token}"}).status_code == 401
