"""Password hashing and verification.

bcrypt salts every hash, so the same password never hashes twice to the
same value, and checkpw compares in constant time.
"""

import logging
from functools import lru_cache

import bcrypt

from ..config import settings
from .schemas.auth import MAX_PASSWORD_BYTES

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured work factor."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_work_factor)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plain text password against a bcrypt hash.

    Returns False instead of raising for malformed hashes and for
    passwords longer than bcrypt accepts. Older bcrypt releases truncate
    those to 72 bytes instead of refusing them, so they are turned away here.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Password check rejected: {e}")
        return False


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    return bcrypt.hashpw(b"fintrack-dummy-password", bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def burn_password_check(password: str) -> None:
    """Spend one bcrypt check on a throwaway hash.

    Called when a login names an unknown email, so the response takes as
    long as a wrong-password login and does not reveal which emails exist.
    """
    verify_password(password, _dummy_hash(settings.bcrypt_work_factor))
