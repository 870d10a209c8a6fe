"""Shared test fixtures for fintrack-core."""

import os
import tempfile
from datetime import timedelta

import pytest

from fintrack_core.config import settings

# Cheap bcrypt for the whole test run
settings.bcrypt_work_factor = 4

from fintrack_core.main import app
from fintrack_core.auth.sessions import SessionManager
from fintrack_core.auth.store import InMemoryCredentialStore
from fintrack_core.auth.token import TokenCodec
from fintrack_core.db import init_db

ACCESS_SECRET = "test-access-secret-0123456789abcdef"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"

# 2026-01-01T00:00:00Z
T0 = 1767225600


class FakeClock:
    """Settable clock returning unix seconds."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def temp_db():
    """Point settings at a fresh temp-file database with the schema applied."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    original_db_path = settings.database_path
    settings.database_path = db_path
    try:
        init_db()
        yield db_path
    finally:
        settings.database_path = original_db_path
        try:
            os.unlink(db_path)
        except OSError:
            pass


@pytest.fixture
def client(temp_db):
    """Create test client for API testing.

    Each test gets a fresh temp-file database.
    """
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def bare_client(temp_db):
    """Test client that does not keep cookies.

    For tests that pass refresh tokens in the JSON body; the cookie would
    take precedence otherwise.
    """
    app.config["TESTING"] = True
    with app.test_client(use_cookies=False) as client:
        yield client


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def codec(clock):
    """Token codec on a controllable clock (15 minute access, 7 day refresh)."""
    return TokenCodec(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
        clock=clock,
    )


@pytest.fixture
def memory_store():
    return InMemoryCredentialStore()


@pytest.fixture
def manager(memory_store, codec):
    """SessionManager over an in-memory store and the fake clock."""
    return SessionManager(memory_store, codec)


@pytest.fixture
def registered(bare_client):
    """Register a user through the API.

    Returns a dict with email, password, the response body and auth headers.
    """
    email = "alice@example.com"
    password = "correct horse"
    response = bare_client.post("/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201
    body = response.get_json()
    return {
        "email": email,
        "password": password,
        "body": body,
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
    }
