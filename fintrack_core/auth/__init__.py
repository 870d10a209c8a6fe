"""Authentication module for FinTrack Core.

This module provides the session lifecycle and its supporting pieces:
- Schema validation for auth operations
- Access/refresh token signing and verification (TokenCodec)
- Password hashing and verification
- Credential store (users and refresh sessions)
- Session manager (register, login, refresh rotation, logout)
- Authentication gate for protected endpoints

Auth endpoints (top-level routes, not under /api/v1/):
- POST /auth/register - Create account and first session
- POST /auth/login - Authenticate and return a token pair
- POST /auth/refresh - Rotate a refresh token
- POST /auth/logout - Revoke a refresh token
- GET /auth/me - Get current user info
"""

from . import schemas, token

__all__ = ["schemas", "token"]
