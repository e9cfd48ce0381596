"""
Pytest configuration and fixtures for the student resource portal tests.
"""

import os

# Settings are read at import time; these must be set before app is imported
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient

from app.database.record_store import RecordStore
from app.database.object_storage import ObjectStorage
from app.database.supabase_client import SupabaseClient
from app.main import app
from app.modules.auth.service import clear_auth_cache
from fake_supabase import FakeSupabase


@pytest.fixture
def supabase(monkeypatch):
    """Fake Supabase wired in as both the anon and the service-role client; sign-ins get their own client."""
    fake = FakeSupabase(url=os.environ["SUPABASE_URL"])
    SupabaseClient._client = fake
    SupabaseClient._service_client = fake
    monkeypatch.setattr(SupabaseClient, "create_session_client", fake.session_client)
    yield fake
    SupabaseClient.reset_client()
    clear_auth_cache()


@pytest.fixture
def store(supabase):
    return RecordStore(supabase)


@pytest.fixture
def storage(supabase):
    return ObjectStorage(supabase)


@pytest.fixture
def client(supabase):
    with TestClient(app) as test_client:
        yield test_client


def make_user(supabase, email, role=None, password="secret"):
    """Auth user with a live token; role writes the users row like create_admin does."""
    user = supabase.auth.add_user(email, password)
    if role:
        supabase.rows("users").append({"id": user.id, "email": email, "role": role})
    return user, supabase.auth.issue_token(user.id)


@pytest.fixture
def admin_headers(supabase):
    _, token = make_user(supabase, "admin@school.org", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers(supabase):
    _, token = make_user(supabase, "student@school.org")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def physics(supabase):
    """Grade 10 Physics with two notes and one PYQ paper."""
    subject = supabase.add_subject("Physics", 10, "science")
    supabase.add_resource(subject, "Kinematics notes", "notes", "kinematics.pdf", "Motion in one dimension")
    supabase.add_resource(subject, "Optics notes", "notes", "optics.docx")
    supabase.add_resource(subject, "Board paper 2023", "pyqs", "board-2023.pdf")
    return subject
