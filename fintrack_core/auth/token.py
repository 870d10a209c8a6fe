"""JWT token codec.

Issues and verifies the two token classes used by sessions:

- access tokens: short-lived, presented as `Authorization: Bearer <token>`
- refresh tokens: long-lived, exchanged at /auth/refresh for a new pair

Each class is signed with its own secret, so a leaked access secret cannot
mint refresh tokens and vice versa. The payload holds only the user ID and
token bookkeeping claims (type, jti, iat, exp).

Verification raises PyJWT's own exceptions; callers map them:

- jwt.ExpiredSignatureError: exp claim is at or before the current time
- jwt.InvalidTokenError: bad signature, malformed token, missing claims,
  or a token of the other class
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable

import jwt

from ..utils import isodatetime, uid
from .schemas import TokenPayload

REQUIRED_CLAIMS = ["sub", "type", "jti", "iat", "exp"]


class TokenKind(str, Enum):
    """Token class; selects the signing secret and the expected type claim."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed token and its expiry."""

    token: str
    expires_at: datetime


class TokenCodec:
    """Signs and verifies access and refresh tokens.

    Args:
        access_secret: HMAC secret for access tokens
        refresh_secret: HMAC secret for refresh tokens (must differ)
        access_ttl: Access token validity window
        refresh_ttl: Refresh token validity window
        algorithm: JWT signing algorithm
        clock: Returns the current time as unix seconds
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
        clock: Callable[[], int] = isodatetime.now_unix,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Token secrets must be non-empty")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh secrets must be different")

        self._secrets = {
            TokenKind.ACCESS: access_secret,
            TokenKind.REFRESH: refresh_secret,
        }
        self._ttls = {
            TokenKind.ACCESS: int(access_ttl.total_seconds()),
            TokenKind.REFRESH: int(refresh_ttl.total_seconds()),
        }
        self._algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings) -> "TokenCodec":
        """Build a codec from application settings."""
        return cls(
            access_secret=settings.jwt_access_secret,
            refresh_secret=settings.jwt_refresh_secret,
            access_ttl=timedelta(minutes=settings.access_token_expiry_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expiry_days),
            algorithm=settings.jwt_algorithm,
        )

    @property
    def refresh_ttl(self) -> int:
        """Refresh token validity window in seconds."""
        return self._ttls[TokenKind.REFRESH]

    def now(self) -> int:
        """Current time according to this codec's clock (unix seconds)."""
        return self._clock()

    def issue_access_token(self, user_id: str) -> IssuedToken:
        """Sign a short-lived access token for user_id."""
        return self._issue(user_id, TokenKind.ACCESS)

    def issue_refresh_token(self, user_id: str) -> IssuedToken:
        """Sign a long-lived refresh token for user_id."""
        return self._issue(user_id, TokenKind.REFRESH)

    def verify(self, token: str, kind: TokenKind) -> TokenPayload:
        """Verify signature, claims and expiry of a token of the given kind.

        Returns:
            Decoded claims

        Raises:
            jwt.ExpiredSignatureError: If the token's exp is at or before now
            jwt.InvalidTokenError: For any other verification failure
        """
        # Expiry is checked against our own clock below, not PyJWT's
        payload = jwt.decode(
            token,
            self._secrets[kind],
            algorithms=[self._algorithm],
            options={"require": REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False},
        )

        if payload.get("type") != kind.value:
            raise jwt.InvalidTokenError(f"Expected a {kind.value} token")

        if not isinstance(payload["exp"], int) or not isinstance(payload["sub"], str):
            raise jwt.InvalidTokenError("Malformed claims")

        if payload["exp"] <= self._clock():
            raise jwt.ExpiredSignatureError("Signature has expired")

        return TokenPayload(**{claim: payload[claim] for claim in REQUIRED_CLAIMS})

    def _issue(self, user_id: str, kind: TokenKind) -> IssuedToken:
        iat = self._clock()
        exp = iat + self._ttls[kind]
        payload = {
            "sub": user_id,
            "type": kind.value,
            # Unique per token, so two tokens issued in the same second differ
            "jti": uid.generate_hex(),
            "iat": iat,
            "exp": exp,
        }
        token = jwt.encode(payload, self._secrets[kind], algorithm=self._algorithm)
        return IssuedToken(token=token, expires_at=isodatetime.from_unix(exp))
