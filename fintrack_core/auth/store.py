"""Credential store: user identities and refresh sessions.

The session manager and the auth gate depend only on the CredentialStore
protocol below, never on SQL. Two implementations are provided:

- SqliteCredentialStore: the application store, backed by db.Core
- InMemoryCredentialStore: dict-backed, for tests and embedding

Contract shared by both:

- lookups return None when nothing matches
- insert_user raises DuplicateRecord when the email is taken
- delete_session_by_token is idempotent and reports whether it removed a row
- rotate_session removes the old row and inserts the new one as one atomic
  unit; if the old row is already gone it inserts nothing and returns False
- any backend failure surfaces as DatabaseError
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from ..db import get_core
from ..exceptions import DatabaseError, DuplicateRecord
from ..utils import isodatetime, uid
from .schemas import UserResponse

logger = logging.getLogger(__name__)


# ============================================================================
# Data contract
# ============================================================================


@dataclass(frozen=True)
class UserRecord:
    """A stored user identity. Holds the password hash; never serialize it."""

    id: str
    email: str
    password_hash: str
    created_at: datetime

    def public(self) -> UserResponse:
        """Public view of this user (no password hash)."""
        return UserResponse(id=self.id, email=self.email, created_at=self.created_at)


@dataclass(frozen=True)
class RefreshSession:
    """One outstanding refresh token."""

    token: str
    user_id: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """True once `now` has reached the expiry instant."""
        return self.expires_at <= now


class CredentialStore(Protocol):
    """Operations the auth core needs from persistence."""

    def find_user_by_email(self, email: str) -> UserRecord | None:
        ...

    def find_user_by_id(self, user_id: str) -> UserRecord | None:
        ...

    def insert_user(self, email: str, password_hash: str) -> UserRecord:
        ...

    def find_session_by_token(self, token: str) -> RefreshSession | None:
        ...

    def insert_session(self, session: RefreshSession) -> None:
        ...

    def delete_session_by_token(self, token: str) -> bool:
        ...

    def rotate_session(self, old_token: str, new_session: RefreshSession) -> bool:
        ...

    def delete_expired_sessions(self, now: datetime) -> int:
        ...


# ============================================================================
# SQLite implementation
# ============================================================================


@contextmanager
def _store_errors(operation: str):
    """Translate sqlite3 failures into DatabaseError."""
    try:
        yield
    except sqlite3.Error as e:
        logger.error(f"Credential store failure during {operation}: {e}")
        raise DatabaseError(
            "Credential store unavailable",
            {"operation": operation}
        ) from e


def _row_to_user(row: sqlite3.Row | None) -> UserRecord | None:
    if row is None:
        return None
    return UserRecord(
        id=row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=isodatetime.to_datetime(row["created_at"]),
    )


def _row_to_session(row: sqlite3.Row | None) -> RefreshSession | None:
    if row is None:
        return None
    return RefreshSession(
        token=row["token"],
        user_id=row["user_id"],
        expires_at=isodatetime.to_datetime(row["expires_at"]),
    )


class SqliteCredentialStore:
    """CredentialStore backed by the application database.

    Every call opens its own Core, so the store is safe to share between
    concurrent requests. Atomicity comes from SQLite: the UNIQUE email index,
    the token primary key, and a single write transaction for rotation.
    """

    def find_user_by_email(self, email: str) -> UserRecord | None:
        with _store_errors("find_user_by_email"):
            core = get_core()
            try:
                return _row_to_user(core.user.get_by_email(email))
            finally:
                core.close()

    def find_user_by_id(self, user_id: str) -> UserRecord | None:
        with _store_errors("find_user_by_id"):
            core = get_core()
            try:
                return _row_to_user(core.user.get_by_id(user_id))
            finally:
                core.close()

    def insert_user(self, email: str, password_hash: str) -> UserRecord:
        with _store_errors("insert_user"):
            try:
                with get_core(atomic=True) as core:
                    return _row_to_user(core.user.create(email, password_hash))
            except sqlite3.IntegrityError as e:
                raise DuplicateRecord("Email already registered", {"field": "email"}) from e

    def find_session_by_token(self, token: str) -> RefreshSession | None:
        with _store_errors("find_session_by_token"):
            core = get_core()
            try:
                return _row_to_session(core.session.get_by_token(token))
            finally:
                core.close()

    def insert_session(self, session: RefreshSession) -> None:
        with _store_errors("insert_session"):
            with get_core(atomic=True) as core:
                core.session.create(
                    session.token,
                    session.user_id,
                    isodatetime.to_timestamp(session.expires_at)
                )

    def delete_session_by_token(self, token: str) -> bool:
        with _store_errors("delete_session_by_token"):
            with get_core(atomic=True) as core:
                return core.session.delete_by_token(token)

    def rotate_session(self, old_token: str, new_session: RefreshSession) -> bool:
        with _store_errors("rotate_session"):
            with get_core(atomic=True) as core:
                # The delete takes SQLite's write lock; a concurrent rotation of
                # the same token waits here and then finds no row to delete.
                if not core.session.delete_by_token(old_token):
                    return False
                core.session.create(
                    new_session.token,
                    new_session.user_id,
                    isodatetime.to_timestamp(new_session.expires_at)
                )
                return True

    def delete_expired_sessions(self, now: datetime) -> int:
        with _store_errors("delete_expired_sessions"):
            with get_core(atomic=True) as core:
                return core.session.delete_expired(isodatetime.to_timestamp(now))


# ============================================================================
# In-memory implementation
# ============================================================================


class InMemoryCredentialStore:
    """Dict-backed CredentialStore.

    One lock guards all state, so each method is a single atomic step, the
    same guarantee the SQLite store gets from its indexes and transactions.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._users_by_id: dict[str, UserRecord] = {}
        self._user_ids_by_email: dict[str, str] = {}
        self._sessions: dict[str, RefreshSession] = {}

    def find_user_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            user_id = self._user_ids_by_email.get(email)
            return self._users_by_id.get(user_id) if user_id else None

    def find_user_by_id(self, user_id: str) -> UserRecord | None:
        with self._lock:
            return self._users_by_id.get(user_id)

    def insert_user(self, email: str, password_hash: str) -> UserRecord:
        with self._lock:
            if email in self._user_ids_by_email:
                raise DuplicateRecord("Email already registered", {"field": "email"})
            user = UserRecord(
                id=uid.generate_uuid(),
                email=email,
                password_hash=password_hash,
                created_at=isodatetime.from_unix(isodatetime.now_unix()),
            )
            self._users_by_id[user.id] = user
            self._user_ids_by_email[email] = user.id
            return user

    def delete_user(self, user_id: str) -> None:
        """Remove a user and their sessions (administrative action)."""
        with self._lock:
            user = self._users_by_id.pop(user_id, None)
            if user is not None:
                self._user_ids_by_email.pop(user.email, None)
            self._sessions = {
                token: session for token, session in self._sessions.items()
                if session.user_id != user_id
            }

    def find_session_by_token(self, token: str) -> RefreshSession | None:
        with self._lock:
            return self._sessions.get(token)

    def insert_session(self, session: RefreshSession) -> None:
        with self._lock:
            if session.token in self._sessions:
                raise DuplicateRecord("Refresh token already stored")
            self._sessions[session.token] = session

    def delete_session_by_token(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def rotate_session(self, old_token: str, new_session: RefreshSession) -> bool:
        with self._lock:
            if self._sessions.pop(old_token, None) is None:
                return False
            self._sessions[new_session.token] = new_session
            return True

    def delete_expired_sessions(self, now: datetime) -> int:
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
            for token in expired:
                del self._sessions[token]
            return len(expired)

    def sessions_for_user(self, user_id: str) -> list[RefreshSession]:
        """All stored sessions of a user (expired or not)."""
        with self._lock:
            return [s for s in self._sessions.values() if s.user_id == user_id]


def get_credential_store() -> SqliteCredentialStore:
    """Credential store used by request handlers."""
    return SqliteCredentialStore()
