"""Database module for FinTrack Core.

This module provides the Core API for database operations.
Core encapsulates connection management and provides access to per-table
operations classes.

ARCHITECTURE:
- Core owns its connection (no Flask g.db dependency)
- atomic=True: every statement inside the with-block commits or rolls back together
- atomic=False: read-mostly use; callers close() the Core when done

Each table gets an encapsulated operations class:

    core.user.get_by_email("a@x.com")
    core.session.delete_by_token(token)
    core.transaction.list(user_id, filters)

CONCURRENCY:
Connections are opened with a busy timeout and atomic Cores begin with
BEGIN IMMEDIATE, so a writer that finds the database locked waits for the
other writer to commit instead of failing.
Single-statement deletes report their row count, which is how two requests
racing to consume the same refresh token learn which one won.
"""

from pathlib import Path
from typing import TYPE_CHECKING
import sqlite3
from ..config import settings


if TYPE_CHECKING:
    from .session import SessionOperations
    from .transaction import TransactionOperations
    from .user import UserOperations


class Core:
    """
    Database Core with table operations.

    Maintains its own connection and transaction state.
    Provides access to table operations through properties.
    """

    def __init__(self, connection: sqlite3.Connection, atomic: bool = False):
        """Initialize Core with a database connection.

        Args:
            connection: SQLite connection with row_factory set to sqlite3.Row
            atomic: If True, Core MUST be used as context manager.
        """
        self._conn = connection
        self._atomic = atomic
        self._user_ops = None
        self._session_ops = None
        self._transaction_ops = None

    @property
    def user(self) -> "UserOperations":
        """User account operations (lazy-loaded and cached)."""
        if self._user_ops is None:
            from .user import UserOperations
            self._user_ops = UserOperations(self._conn)
        return self._user_ops

    @property
    def session(self) -> "SessionOperations":
        """Refresh session operations (lazy-loaded and cached)."""
        if self._session_ops is None:
            from .session import SessionOperations
            self._session_ops = SessionOperations(self._conn)
        return self._session_ops

    @property
    def transaction(self) -> "TransactionOperations":
        """Transaction operations (lazy-loaded and cached)."""
        if self._transaction_ops is None:
            from .transaction import TransactionOperations
            self._transaction_ops = TransactionOperations(self._conn)
        return self._transaction_ops

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def __enter__(self) -> "Core":
        """Enter context manager for atomic transaction.

        Raises:
            RuntimeError: If Core was not created with atomic=True
        """
        if not self._atomic:
            raise RuntimeError(
                "Core must be created with atomic=True for context manager use. "
                "Use: with db.get_core(atomic=True) as core:"
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager, committing or rolling back transaction."""
        try:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            # Always close connection
            self._conn.close()

    def __del__(self):
        """Cleanup connection if not already closed.

        Called during garbage collection. Ignores errors since connection
        may already be closed or in an invalid state.
        """
        if hasattr(self, "_conn") and self._conn:
            try:
                self._conn.close()
            except Exception:
                # Connection may already be closed or invalid
                pass


def _create_connection() -> sqlite3.Connection:
    """Create a fresh database connection.

    Returns:
        SQLite connection with row_factory set to sqlite3.Row,
        foreign keys enabled and the configured busy timeout.
    """
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), timeout=settings.database_timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_core(atomic: bool = False) -> Core:
    """
    Get a database Core instance.

    Args:
        atomic: If True, returns a Core that MUST be used as context manager.
                Use for multi-statement writes that need to commit together.

    Examples:
        Read:
        >>> core = get_core()
        >>> row = core.user.get_by_email("a@x.com")
        >>> core.close()

        Atomic write:
        >>> with get_core(atomic=True) as core:
        ...     core.session.delete_by_token(old_token)
        ...     core.session.create(new_token, user_id, expires_at)
    """
    conn = _create_connection()
    if atomic:
        # Take the write lock at BEGIN so concurrent writers queue on the busy
        # timeout instead of failing on a shared-to-reserved lock upgrade
        conn.isolation_level = "IMMEDIATE"
    return Core(conn, atomic=atomic)


# ============================================================================
# DATABASE INITIALIZATION
# ============================================================================

def init_db():
    """Initialize database by running schema.sql if not already initialized."""
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with sqlite3.connect(str(db_path)) as db:
        # Check if database is already initialized
        cursor = db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='_schema_metadata'"
        )
        if cursor.fetchone():
            return

        # Fresh database - apply current schema
        schema_path = Path(__file__).parent.parent / "schema" / "schema.sql"
        with open(schema_path, "r") as f:
            schema_sql = f.read()
        db.executescript(schema_sql)
        db.commit()


def get_schema_version() -> str:
    """Get current schema version from _schema_metadata table."""
    core = get_core()
    try:
        row = core._conn.execute(
            "SELECT value FROM _schema_metadata WHERE key = 'version'"
        ).fetchone()
    finally:
        core.close()
    return row[0] if row else "unknown"
