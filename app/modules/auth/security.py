"""Password hashing and access token helpers.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs carrying the
user id in an ``id`` claim and expiring after ``settings.jwt_expires_days``.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from app.config import settings


class InvalidTokenError(Exception):
    """Raised when a token cannot be decoded, is expired, or carries no user id."""

    pass


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of *password* against a stored bcrypt hash.

    A malformed hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        return False


def create_access_token(user_id: str, now: Optional[datetime] = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "id": user_id,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(days=settings.jwt_expires_days)).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Validate *token* and return the user id it was issued for.

    Both ``{"id": ...}`` and the nested ``{"user": {"id": ...}}`` claim layouts
    are understood.

    Raises:
        InvalidTokenError: bad signature, expired, or no user id claim.
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e
    nested = claims.get("user")
    user_id = nested.get("id") if isinstance(nested, dict) else None
    user_id = user_id or claims.get("id")
    if not user_id:
        raise InvalidTokenError("Token carries no user id")
    return str(user_id)
