"""Tests for refresh session and user table operations."""

import sqlite3

import pytest

from fintrack_core.db import get_core


@pytest.fixture
def core(temp_db):
    core = get_core()
    yield core
    core.close()


@pytest.fixture
def user_id(core):
    row = core.user.create("a@x.com", "hash")
    core._conn.commit()
    return row["id"]


class TestUserOperations:
    """Tests for UserOperations."""

    def test_create_returns_row(self, core):
        row = core.user.create("a@x.com", "hash")
        assert row["email"] == "a@x.com"
        assert row["created_at"].endswith("Z")

    def test_email_is_unique(self, core, user_id):
        with pytest.raises(sqlite3.IntegrityError):
            core.user.create("a@x.com", "other")


class TestSessionOperations:
    """Tests for SessionOperations."""

    def test_create_and_get(self, core, user_id):
        core.session.create("tok", user_id, "2030-01-01T00:00:00Z")

        row = core.session.get_by_token("tok")
        assert row["user_id"] == user_id
        assert row["expires_at"] == "2030-01-01T00:00:00Z"

    def test_token_is_primary_key(self, core, user_id):
        core.session.create("tok", user_id, "2030-01-01T00:00:00Z")
        with pytest.raises(sqlite3.IntegrityError):
            core.session.create("tok", user_id, "2030-01-01T00:00:00Z")

    def test_delete_reports_removal(self, core, user_id):
        core.session.create("tok", user_id, "2030-01-01T00:00:00Z")

        assert core.session.delete_by_token("tok") is True
        assert core.session.delete_by_token("tok") is False

    def test_delete_expired_inclusive(self, core, user_id):
        core.session.create("old", user_id, "2026-01-01T00:00:00Z")
        core.session.create("edge", user_id, "2026-01-01T00:00:01Z")
        core.session.create("new", user_id, "2026-01-01T00:00:02Z")

        assert core.session.delete_expired("2026-01-01T00:00:01Z") == 2
        assert core.session.count_for_user(user_id) == 1
