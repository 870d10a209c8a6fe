"""Configuration management using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_path: str = "./data/fintrack.db"
    # Seconds a connection waits on a locked database before failing
    database_timeout: float = 5.0
    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000"]
    default_currency: str = "USD"

    # JWT Configuration
    # Access and refresh tokens are signed with independent secrets
    jwt_access_secret: str = "change-me-access-secret-use-env-var"
    jwt_refresh_secret: str = "change-me-refresh-secret-use-env-var"
    jwt_algorithm: str = "HS256"
    access_token_expiry_minutes: int = 15
    refresh_token_expiry_days: int = 7

    # Refresh token cookie
    refresh_cookie_name: str = "refresh_token"
    refresh_cookie_path: str = "/auth"
    refresh_cookie_secure: bool = False

    # Bcrypt work factor (higher = more secure but slower)
    # For tests, use 4 for faster execution while maintaining functionality
    bcrypt_work_factor: int = 12

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )


settings = Settings()
