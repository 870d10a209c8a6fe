"""Authentication gate for protected endpoints.

- authenticate() - resolve an access token to a stored user
- _authenticate_request() - read the bearer token of the current request
- @auth_required - run the gate before a view

The gate is read-only: it never touches refresh sessions and never writes.
Every failure (no token, bad signature, wrong token class, expired token,
user gone) raises the same Unauthorized error. The specific reason is only
logged, so clients cannot tell which case applies.
"""

import logging
from functools import wraps

import jwt
from flask import g, request

from ..config import settings
from ..exceptions import Unauthorized
from .store import CredentialStore, UserRecord, get_credential_store
from .token import TokenCodec, TokenKind

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Authentication required"


def authenticate(access_token: str | None, codec: TokenCodec, store: CredentialStore) -> UserRecord:
    """
    Resolve an access token to the user it was issued for.

    Args:
        access_token: Raw bearer token (may be None or empty)
        codec: Codec holding the access secret
        store: Credential store used to confirm the user still exists

    Returns:
        The stored user

    Raises:
        Unauthorized: For any failure
    """
    if not access_token:
        logger.warning("Access rejected: no token")
        raise Unauthorized(UNAUTHORIZED_MESSAGE)

    try:
        payload = codec.verify(access_token, TokenKind.ACCESS)
    except jwt.ExpiredSignatureError:
        logger.warning("Access rejected: token expired")
        raise Unauthorized(UNAUTHORIZED_MESSAGE)
    except jwt.InvalidTokenError as e:
        logger.warning(f"Access rejected: invalid token: {e}")
        raise Unauthorized(UNAUTHORIZED_MESSAGE)

    user = store.find_user_by_id(payload.sub)
    if user is None:
        logger.warning(f"Access rejected: user {payload.sub} no longer exists")
        raise Unauthorized(UNAUTHORIZED_MESSAGE)

    return user


def _bearer_token() -> str | None:
    """Extract the token from `Authorization: Bearer <token>`, or None."""
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        return None
    return parts[1]


def _authenticate_request() -> UserRecord:
    """
    Authenticate the current request.

    Stores the resolved identity in flask.g for the rest of the request:
    - g.user_id: User ID (UUID)
    - g.user_email: Email
    - g.user: The UserRecord itself

    Raises:
        Unauthorized: If the request carries no valid access token

    Called by the @auth_required decorator and by the api_v1 blueprint's
    before_request handler.
    """
    user = authenticate(
        _bearer_token(),
        TokenCodec.from_settings(settings),
        get_credential_store()
    )

    g.user_id = user.id
    g.user_email = user.email
    g.user = user
    logger.debug(f"Access granted for user {user.id}")
    return user


def auth_required(f):
    """
    Decorator to require a valid access token for endpoint access.

    Example:
    ```python
    @auth_bp.get("/auth/me")
    @auth_required
    def me():
        return jsonify({"id": g.user_id})
    ```
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return wrapper
