"""Pydantic schemas for authentication requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class UserBase(BaseModel):
    """Shared user fields."""

    email: str = Field(..., description="Account email (normalized to lowercase)")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Trim and lowercase the email; blank is rejected."""
        v = v.strip().lower()
        if not v:
            raise ValueError("Email is required")
        return v


class UserCreate(UserBase):
    """Registration request."""

    password: str = Field(..., description="Plain text password")

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class UserLogin(UserBase):
    """Login request.

    No length cap: an over-long password simply fails to match.
    """

    password: str = Field(..., description="Plain text password")

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class UserResponse(BaseModel):
    """Public view of a user. Never carries the password hash."""

    id: str
    email: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TokenPayload(BaseModel):
    """Decoded claims of a verified token."""

    sub: str = Field(..., description="User ID")
    type: str = Field(..., description="'access' or 'refresh'")
    jti: str = Field(..., description="Unique token ID")
    iat: int
    exp: int


class TokenResponse(BaseModel):
    """Tokens returned by register, login and refresh."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime
    user: UserResponse | None = None
