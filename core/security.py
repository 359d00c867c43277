"""
Security utilities: JWT issue/verify for admin actors and password hashing.
Tokens carry the actor's role data so the gates need no database lookup.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from core.config import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def create_access_token(
    subject: str | int,
    role: str | None = None,
    roles: Iterable[str] | None = None,
    permissions: Mapping[str, bool] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Issue a signed access token. 'sub' is the actor id; role claims are optional
    and copied verbatim into the Actor by the auth dependency.
    """
    settings = get_settings()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES))
    payload: dict[str, Any] = {"sub": str(subject), "exp": expire, "iat": now}
    if role is not None:
        payload["role"] = role
    if roles is not None:
        payload["roles"] = list(roles)
    if permissions is not None:
        payload["permissions"] = dict(permissions)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT. Raises ExpiredSignatureError / JWTError."""
    settings = get_settings()
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def verify_token(token: str) -> dict[str, Any] | None:
    """Verify JWT and return payload or None."""
    try:
        return decode_token(token)
    except JWTError:
        return None


def hash_password(plain: str) -> str:
    """Hash password for storage. Use with verify_password on login."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)
