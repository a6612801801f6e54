"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database that is rebuilt for every
test, with Celery in eager mode and email sending disabled.
"""
import os

# Must be set before anything imports core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest-only-0123456789")
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["CHALLENGE_STORE_BACKEND"] = "memory"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from core.database import Base, SessionLocal, engine
from core.security import create_access_token
from main import app
from models import Member
from services.challenge_store import shutdown_challenge_store


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    shutdown_challenge_store()


@pytest.fixture
def db():
    """
    Session for arranging and inspecting data.

    Commit before calling the API: the request uses its own session on the
    same connection.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(subject_id: int, role: str = "admin", kind: str = "user") -> dict:
    token = create_access_token({"sub": str(subject_id), "role": role, "kind": kind})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers():
    return auth_headers(1)


@pytest.fixture
def member_headers():
    def _make(member_id: int) -> dict:
        return auth_headers(member_id, role="member", kind="member")
    return _make


@pytest.fixture
def make_member(db):
    counter = {"n": 0}

    def _make(**fields) -> Member:
        counter["n"] += 1
        n = counter["n"]
        values = {
            "first_name": f"Member{n}",
            "last_name": "Test",
            "phone": f"07700000{n:02d}",
        }
        values.update(fields)
        member = Member(**values)
        db.add(member)
        db.commit()
        return member

    return _make
