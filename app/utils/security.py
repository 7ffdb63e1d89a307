"""
WealthDesk - Security Utilities

Password hashing, JWT token management, and security helpers.
"""

import secrets
import string
import time
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
RESET_TOKEN_TYPE = "reset"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storing."""
    return pwd_context.hash(password)


def generate_random_password(length: int = 12) -> str:
    """
    Generate a secure random password.

    Args:
        length: Password length (minimum 8)

    Returns:
        A random password with uppercase, lowercase, digits, and special chars
    """
    if length < 8:
        length = 8

    # Ensure at least one of each required character type
    password_chars = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice("!@#$%^&*"),
    ]

    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    password_chars.extend(secrets.choice(alphabet) for _ in range(length - 4))

    secrets.SystemRandom().shuffle(password_chars)

    return ''.join(password_chars)


def _encode(data: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.utcnow() + expires_delta, "type": token_type})
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed session token.

    Args:
        data: Session payload (userId, roleName, clientId, moduleAccess, ...)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    return _encode(
        data,
        ACCESS_TOKEN_TYPE,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_password_reset_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived token that authorises one password reset for ``email``."""
    return _encode(
        {"email": email},
        RESET_TOKEN_TYPE,
        expires_delta or timedelta(minutes=settings.reset_token_expire_minutes),
    )


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token string

    Returns:
        Token payload dict or None if the signature or expiry check fails
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[dict]:
    """Verify a session token and return its payload."""
    payload = decode_token(token)
    if payload and payload.get("type") == ACCESS_TOKEN_TYPE:
        return payload
    return None


def access_token_expired(token: str) -> bool:
    """True when ``token`` is a correctly signed session token whose ``exp`` has passed."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError:
        return False
    exp = payload.get("exp")
    return payload.get("type") == ACCESS_TOKEN_TYPE and exp is not None and exp <= time.time()


def verify_password_reset_token(token: str) -> Optional[dict]:
    """Verify a password reset token and return its payload."""
    payload = decode_token(token)
    if payload and payload.get("type") == RESET_TOKEN_TYPE and payload.get("email"):
        return payload
    return None
