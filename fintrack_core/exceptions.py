"""Exception hierarchy for FinTrack Core.

Every error raised on purpose by the application derives from FinTrackError
and carries a human-readable message plus an optional details dict. The
Flask error handlers in main.py turn these into the JSON error envelope.

The authentication errors are deliberately coarse. Callers can tell a bad
password from an expired session, but never an unknown email from a wrong
password, nor a forged access token from an expired one.
"""


class FinTrackError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ResourceNotFound(FinTrackError):
    """Requested resource does not exist (or belongs to another user)."""


class ValidationError(FinTrackError):
    """Request data failed validation."""


class DatabaseError(FinTrackError):
    """Persistence layer failure."""


class DuplicateRecord(DatabaseError):
    """A unique constraint rejected an insert."""


class EmailInUse(FinTrackError):
    """Registration attempted with an email that already has an account."""


class AuthenticationError(FinTrackError):
    """Base class for authentication failures (HTTP 401)."""


class InvalidCredentials(AuthenticationError):
    """Unknown email or wrong password. The two are never distinguished."""


class MissingToken(AuthenticationError):
    """No refresh token was supplied."""


class SessionExpired(AuthenticationError):
    """Refresh session is absent, rotated away, revoked or past its expiry."""


class InvalidToken(AuthenticationError):
    """Refresh token signature or claims did not verify."""


class Unauthorized(AuthenticationError):
    """Access token missing, invalid, expired, or its user no longer exists."""
