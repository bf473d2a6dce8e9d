"""
Test fixtures for the Student Life Tracker.

Provides app, client, student_client and parent_client fixtures backed by a
file-based SQLite database and a temporary server-side session directory.
"""

from __future__ import annotations

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


def make_config(tmp_path) -> dict:
    return {
        "TESTING": True,
        "DATABASE": str(tmp_path / "test.db"),
        "SECRET_KEY": "test-secret-key",
        "SESSION_STORE_DIR": str(tmp_path / "sessions"),
        "REDIS_URL": "",
        "LOG_LEVEL": "WARNING",
    }


def login(client, name: str, role: str):
    return client.post("/api/auth/login", json={"name": name, "role": role})


@pytest.fixture
def app(tmp_path):
    """Create app with file-based SQLite for testing."""
    from app import create_app

    app = create_app(make_config(tmp_path))

    with app.app_context():
        from database import init_db
        init_db()

    yield app


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


@pytest.fixture
def student_client(app):
    """Client logged in as the student; provisions the Student record."""
    client = app.test_client()
    resp = login(client, "Alex Rivera", "student")
    assert resp.status_code == 200
    return client


@pytest.fixture
def parent_client(app, student_client):
    """Client logged in as a parent of the already-provisioned student."""
    client = app.test_client()
    resp = login(client, "Pat Rivera", "parent")
    assert resp.status_code == 200
    return client


@pytest.fixture
def db(app):
    """Direct database access for store tests."""
    with app.app_context():
        from database import get_db
        yield get_db()


@pytest.fixture
def student_id(app, student_client):
    with app.app_context():
        from db_stores import StudentStore
        return StudentStore.get()["id"]


@pytest.fixture
def sign_in():
    """Return the login helper so tests can sign in extra clients."""
    return login
