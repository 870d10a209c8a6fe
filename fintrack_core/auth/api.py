"""Authentication API endpoints for FinTrack Core.

These endpoints handle the session lifecycle and return JSON responses:
- POST /auth/register - Create account, open first session
- POST /auth/login - Open an additional session
- POST /auth/refresh - Rotate a refresh token into a new token pair
- POST /auth/logout - Revoke a refresh token's session
- GET /auth/me - Current user (requires access token)

The refresh token is returned in the body and also set as an HttpOnly,
SameSite=Strict cookie. /auth/refresh and /auth/logout read the cookie
first and fall back to a `refresh_token` field in the JSON body.
"""

import logging

from flask import Blueprint, Response, g, jsonify, request

from ..api.validation import validate_request
from ..config import settings
from .decorators import auth_required
from .schemas import UserCreate, UserLogin
from .sessions import SessionTokens, get_session_manager

logger = logging.getLogger(__name__)


# Create blueprint
auth_bp = Blueprint("auth", __name__)


# ============================================================================
# Refresh token transport
# ============================================================================


def _presented_refresh_token() -> str | None:
    """Refresh token from the cookie, else from the JSON body."""
    cookie_token = request.cookies.get(settings.refresh_cookie_name)
    if cookie_token:
        return cookie_token
    body = request.get_json(silent=True)
    if isinstance(body, dict) and isinstance(body.get("refresh_token"), str):
        return body["refresh_token"]
    return None


def _set_refresh_cookie(response: Response, tokens: SessionTokens) -> Response:
    response.set_cookie(
        settings.refresh_cookie_name,
        tokens.refresh.token,
        max_age=settings.refresh_token_expiry_days * 24 * 60 * 60,
        path=settings.refresh_cookie_path,
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite="Strict",
    )
    return response


def _token_response(tokens: SessionTokens, status: int):
    body = tokens.to_response().model_dump(mode="json", exclude_none=True)
    response = jsonify(body)
    response.status_code = status
    return _set_refresh_cookie(response, tokens)


# ============================================================================
# Session Endpoints
# ============================================================================


@auth_bp.route("/auth/register", methods=["POST"])
@validate_request
def register(data: UserCreate):
    """
    Create an account and return its first token pair.

    Example request:
    ```json
    {"email": "a@x.com", "password": "secret"}
    ```

    Example response (201):
    ```json
    {
        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
        "token_type": "bearer",
        "expires_at": "2026-10-19T10:45:00Z",
        "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
        "refresh_expires_at": "2026-10-26T10:30:00Z",
        "user": {"id": "550e8400-...", "email": "a@x.com", "created_at": "2026-10-19T10:30:00Z"}
    }
    ```

    Raises:
        ValidationError: Missing email or password (400)
        EmailInUse: Email already registered (409)
    """
    tokens = get_session_manager().register(data.email, data.password)
    return _token_response(tokens, 201)


@auth_bp.route("/auth/login", methods=["POST"])
@validate_request
def login(data: UserLogin):
    """
    Authenticate and return a new token pair.

    Accepts both JSON and form data. Other sessions of the same user stay
    valid.

    Raises:
        InvalidCredentials: Unknown email or wrong password (401)
    """
    tokens = get_session_manager().login(data.email, data.password)
    return _token_response(tokens, 200)


@auth_bp.route("/auth/refresh", methods=["POST"])
def refresh():
    """
    Exchange a refresh token for a new access/refresh pair.

    The presented refresh token stops working as soon as this succeeds.

    Raises:
        MissingToken: No refresh token in cookie or body (401)
        SessionExpired: Token rotated away, revoked or expired (401)
        InvalidToken: Token signature or claims invalid (401)
    """
    tokens = get_session_manager().refresh(_presented_refresh_token())
    return _token_response(tokens, 200)


@auth_bp.route("/auth/logout", methods=["POST"])
def logout():
    """
    Revoke the presented refresh token's session and clear the cookie.

    Always succeeds; logging out twice (or with no token) is not an error.

    Example response:
    ```json
    {"message": "Logged out"}
    ```
    """
    get_session_manager().logout(_presented_refresh_token())

    response = jsonify({"message": "Logged out"})
    response.delete_cookie(
        settings.refresh_cookie_name,
        path=settings.refresh_cookie_path,
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite="Strict",
    )
    return response, 200


# ============================================================================
# User Profile Endpoints
# ============================================================================


@auth_bp.route("/auth/me", methods=["GET"])
@auth_required
def get_current_user():
    """
    Get current user info.

    Requires: Authorization: Bearer <access token>
    """
    return jsonify(g.user.public().model_dump(mode="json")), 200
