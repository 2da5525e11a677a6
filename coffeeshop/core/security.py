"""
Security Helpers

Password hashing, bearer token issuance/verification and reset OTP codes.

Passwords are stored as ``pbkdf2_sha256$<iterations>$<salt>$<hash>``.
Tokens are HS256 JWTs carrying the user id in ``sub``.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from coffeeshop.core.config import get_settings
from coffeeshop.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000
HASH_PREFIX = "pbkdf2_sha256"


# =============================================================================
# PASSWORDS
# =============================================================================

def _pbkdf2(password: str, salt: str, iterations: int) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations
    )
    return base64.b64encode(digest).decode("ascii")


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_hex(16)
    encoded = _pbkdf2(password, salt, PBKDF2_ITERATIONS)
    return f"{HASH_PREFIX}${PBKDF2_ITERATIONS}${salt}${encoded}"


def verify_password(password: str, hashed: str) -> bool:
    """Check a plain password against a stored hash."""
    try:
        algorithm, iterations, salt, expected = hashed.split("$", 3)
    except ValueError:
        return False
    if algorithm != HASH_PREFIX:
        return False
    actual = _pbkdf2(password, salt, int(iterations))
    return hmac.compare_digest(actual, expected)


# =============================================================================
# BEARER TOKENS
# =============================================================================

def create_access_token(user_id: int, now: Optional[datetime] = None) -> str:
    """
    Issue a signed bearer token for a user.

    Args:
        user_id: Id of the authenticated user
        now: Issue time (defaults to the current UTC time)

    Returns:
        Encoded JWT, valid for ``TOKEN_EXPIRE_HOURS``
    """
    settings = get_settings()
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.token_expire_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """
    Verify a bearer token and return the user id it carries.

    Raises:
        AuthenticationError: If the token is malformed, tampered or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
        return int(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except (jwt.InvalidTokenError, KeyError, ValueError) as e:
        logger.debug(f"Rejected bearer token: {e}")
        raise AuthenticationError("Invalid token")


# =============================================================================
# PASSWORD RESET OTP
# =============================================================================

def generate_otp() -> str:
    """Return a 6-digit numeric code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


def otp_expiry(now: Optional[datetime] = None) -> datetime:
    """Expiry timestamp for an OTP issued at ``now``."""
    issued_at = now or datetime.now(timezone.utc)
    return issued_at + timedelta(minutes=get_settings().otp_expire_minutes)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
