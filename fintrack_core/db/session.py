"""Refresh session operations.

IMPORT CONVENTION:
- Core accesses these through core.session property

Each row is one outstanding refresh token. Deleting the row is what
invalidates the token; delete_by_token() reports whether this call was the
one that removed it.
"""

import sqlite3

from ..utils import isodatetime


class SessionOperations:
    """refresh_sessions table operations."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def get_by_token(self, token: str) -> sqlite3.Row | None:
        """Get a session row by token value, or None."""
        return self._conn.execute(
            "SELECT token, user_id, expires_at, created_at FROM refresh_sessions WHERE token = ?",
            (token,)
        ).fetchone()

    def create(self, token: str, user_id: str, expires_at: str) -> None:
        """Insert a session row.

        Args:
            token: Refresh token value (primary key)
            user_id: Owning user
            expires_at: ISO 8601 UTC timestamp

        Raises:
            sqlite3.IntegrityError: If the token already exists or the user does not
        """
        self._conn.execute(
            """INSERT INTO refresh_sessions (token, user_id, expires_at, created_at)
               VALUES (?, ?, ?, ?)""",
            (token, user_id, expires_at, isodatetime.now())
        )

    def delete_by_token(self, token: str) -> bool:
        """Delete a session row. Returns True if a row was removed."""
        cursor = self._conn.execute(
            "DELETE FROM refresh_sessions WHERE token = ?",
            (token,)
        )
        return cursor.rowcount > 0

    def delete_expired(self, now: str) -> int:
        """Delete every row whose expiry is at or before `now`. Returns the count."""
        cursor = self._conn.execute(
            "DELETE FROM refresh_sessions WHERE expires_at <= ?",
            (now,)
        )
        return cursor.rowcount

    def count_for_user(self, user_id: str) -> int:
        """Number of session rows (expired or not) held by a user."""
        row = self._conn.execute(
            "SELECT COUNT(*) FROM refresh_sessions WHERE user_id = ?",
            (user_id,)
        ).fetchone()
        return row[0]
