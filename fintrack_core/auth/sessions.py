"""Session lifecycle: register, login, refresh (rotation) and logout.

SessionManager is a stateless orchestrator over a CredentialStore and a
TokenCodec. All durable state lives in the store; a refresh token is usable
only while its RefreshSession row exists and has not expired.

Lifecycle of one refresh token value:

    issued --refresh--> rotated   (row replaced by the new token's row)
           --logout---> revoked   (row deleted)
           --time-----> expired   (expires_at reached; row pruned lazily)

All three end states deny further refreshes permanently, even though the
token's signature keeps verifying until its exp claim passes.

Rotation is a single store operation (rotate_session). When two requests
present the same token at once, the store lets exactly one of them delete
the old row; the other gets SessionExpired. Refreshes of different tokens
of the same user do not interact.
"""

import logging
from dataclasses import dataclass

import jwt
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..config import settings
from ..exceptions import (
    DuplicateRecord,
    EmailInUse,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
    SessionExpired,
    ValidationError,
)
from ..utils import isodatetime
from . import service
from .schemas import TokenResponse, UserCreate, UserLogin, UserResponse
from .store import CredentialStore, RefreshSession, get_credential_store
from .token import IssuedToken, TokenCodec, TokenKind

logger = logging.getLogger(__name__)


def token_hint(token: str) -> str:
    """Loggable fingerprint of a token (last 8 signature characters).

    Full tokens never go to the logs.
    """
    return f"...{token[-8:]}"


@dataclass(frozen=True)
class SessionTokens:
    """Result of a session-issuing operation."""

    access: IssuedToken
    refresh: IssuedToken
    user: UserResponse | None = None

    def to_response(self) -> TokenResponse:
        return TokenResponse(
            access_token=self.access.token,
            expires_at=self.access.expires_at,
            refresh_token=self.refresh.token,
            refresh_expires_at=self.refresh.expires_at,
            user=self.user,
        )


class SessionManager:
    """Orchestrates session-mutating operations against the store.

    Args:
        store: Credential store (users and refresh sessions)
        codec: Token codec; its clock is also used for session expiry checks
    """

    def __init__(self, store: CredentialStore, codec: TokenCodec):
        self._store = store
        self._codec = codec

    # ========================================================================
    # Public operations
    # ========================================================================

    def register(self, email: str, password: str) -> SessionTokens:
        """Create an account and open its first session.

        Raises:
            ValidationError: If email or password is blank
            EmailInUse: If the email already has an account, including when a
                concurrent registration wins the race to the unique index
        """
        data = _parse(UserCreate, email=email, password=password)

        if self._store.find_user_by_email(data.email) is not None:
            logger.warning(f"Registration rejected, email in use: {data.email}")
            raise EmailInUse("Email already in use", {"email": data.email})

        password_hash = service.hash_password(data.password)
        try:
            user = self._store.insert_user(data.email, password_hash)
        except DuplicateRecord:
            logger.warning(f"Registration lost race on unique email: {data.email}")
            raise EmailInUse("Email already in use", {"email": data.email})

        access, refresh = self._open_session(user.id)
        logger.info(f"User registered: {user.id}")
        return SessionTokens(access=access, refresh=refresh, user=user.public())

    def login(self, email: str, password: str) -> SessionTokens:
        """Verify credentials and open an additional session.

        Existing sessions of the user stay valid (one per device).

        Raises:
            ValidationError: If email or password is blank
            InvalidCredentials: If the email is unknown or the password is wrong
        """
        data = _parse(UserLogin, email=email, password=password)

        user = self._store.find_user_by_email(data.email)
        if user is None:
            service.burn_password_check(data.password)
            logger.warning(f"Failed login attempt for email: {data.email}")
            raise InvalidCredentials("Invalid email or password")

        if not service.verify_password(data.password, user.password_hash):
            logger.warning(f"Failed login attempt for email: {data.email}")
            raise InvalidCredentials("Invalid email or password")

        self.prune_expired()
        access, refresh = self._open_session(user.id)
        logger.info(f"Successful login: {user.id}")
        return SessionTokens(access=access, refresh=refresh, user=user.public())

    def refresh(self, refresh_token: str | None) -> SessionTokens:
        """Exchange a refresh token for a new access/refresh pair.

        The presented token is consumed: its row is replaced by the new
        token's row, so presenting it again fails.

        Raises:
            MissingToken: If no token was supplied
            SessionExpired: If no live session row matches the token
            InvalidToken: If the token fails signature or claim checks
        """
        if not refresh_token:
            raise MissingToken("Refresh token required")

        session = self._store.find_session_by_token(refresh_token)
        if session is None:
            logger.warning(f"Refresh rejected, no session: {token_hint(refresh_token)}")
            raise SessionExpired("Refresh token expired")

        if session.is_expired(self._now()):
            self._store.delete_session_by_token(refresh_token)
            logger.warning(f"Refresh rejected, session expired: {token_hint(refresh_token)}")
            raise SessionExpired("Refresh token expired")

        try:
            payload = self._codec.verify(refresh_token, TokenKind.REFRESH)
        except jwt.ExpiredSignatureError:
            self._store.delete_session_by_token(refresh_token)
            logger.warning(f"Refresh rejected, token expired: {token_hint(refresh_token)}")
            raise SessionExpired("Refresh token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Refresh rejected, invalid token {token_hint(refresh_token)}: {e}")
            raise InvalidToken("Invalid refresh token")

        if payload.sub != session.user_id:
            logger.warning(f"Refresh rejected, subject mismatch: {token_hint(refresh_token)}")
            raise InvalidToken("Invalid refresh token")

        access = self._codec.issue_access_token(session.user_id)
        refresh = self._codec.issue_refresh_token(session.user_id)
        rotated = self._store.rotate_session(
            refresh_token,
            RefreshSession(token=refresh.token, user_id=session.user_id, expires_at=refresh.expires_at)
        )
        if not rotated:
            # A concurrent refresh consumed the token between lookup and rotation
            logger.warning(f"Refresh rejected, already rotated: {token_hint(refresh_token)}")
            raise SessionExpired("Refresh token expired")

        logger.info(f"Session refreshed for user {session.user_id}")
        return SessionTokens(access=access, refresh=refresh)

    def logout(self, refresh_token: str | None) -> bool:
        """Revoke the session of a refresh token.

        Idempotent: a missing, unknown or already revoked token is not an
        error. Returns whether a session row was actually removed.
        """
        if not refresh_token:
            return False

        revoked = self._store.delete_session_by_token(refresh_token)
        if revoked:
            logger.info(f"Session revoked: {token_hint(refresh_token)}")
        return revoked

    def prune_expired(self) -> int:
        """Delete every expired session row. Returns the number removed."""
        removed = self._store.delete_expired_sessions(self._now())
        if removed:
            logger.info(f"Pruned {removed} expired session(s)")
        return removed

    # ========================================================================
    # Helpers
    # ========================================================================

    def _now(self):
        return isodatetime.from_unix(self._codec.now())

    def _open_session(self, user_id: str) -> tuple[IssuedToken, IssuedToken]:
        """Issue a token pair and persist the refresh token as a new session."""
        access = self._codec.issue_access_token(user_id)
        refresh = self._codec.issue_refresh_token(user_id)
        self._store.insert_session(
            RefreshSession(token=refresh.token, user_id=user_id, expires_at=refresh.expires_at)
        )
        return access, refresh


def _parse(model: type[BaseModel], **fields) -> BaseModel:
    """Validate raw operation input into a schema, raising our ValidationError."""
    try:
        return model(**fields)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid request data",
            {"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        )


def get_session_manager() -> SessionManager:
    """Session manager wired to the application store and settings."""
    return SessionManager(get_credential_store(), TokenCodec.from_settings(settings))
