"""User account operations.

IMPORT CONVENTION:
- Core accesses these through core.user property

Emails are stored exactly as given; normalization happens in the auth
schemas before anything reaches this layer. The UNIQUE index on email is
the final arbiter of registration races.
"""

import sqlite3

from ..utils import isodatetime, uid


class UserOperations:
    """User table operations."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def get_by_id(self, user_id: str) -> sqlite3.Row | None:
        """Get a user row by ID, or None."""
        return self._conn.execute(
            "SELECT id, email, password_hash, created_at FROM users WHERE id = ?",
            (user_id,)
        ).fetchone()

    def get_by_email(self, email: str) -> sqlite3.Row | None:
        """Get a user row by (normalized) email, or None."""
        return self._conn.execute(
            "SELECT id, email, password_hash, created_at FROM users WHERE email = ?",
            (email,)
        ).fetchone()

    def create(self, email: str, password_hash: str) -> sqlite3.Row:
        """Insert a user with an auto-generated UUID.

        Returns:
            The inserted row

        Raises:
            sqlite3.IntegrityError: If the email is already registered
        """
        user_id = uid.generate_uuid()
        created_at = isodatetime.now()
        self._conn.execute(
            """INSERT INTO users (id, email, password_hash, created_at)
               VALUES (?, ?, ?, ?)""",
            (user_id, email, password_hash, created_at)
        )
        return self.get_by_id(user_id)
