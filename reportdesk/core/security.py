"""Password hashing and bearer tokens.

Tokens carry the user id in ``sub`` and the role in ``role``; the role claim
is informational (logging) and is never trusted for authorisation, which
always re-reads the user row.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext

from reportdesk.core.settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

FALLBACK_TOKEN_LIFETIME = timedelta(hours=1)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognised hash format, e.g. a placeholder on a seeded row.
        return False


def token_lifetime() -> timedelta:
    minutes = settings.access_token_expire_minutes
    return timedelta(minutes=minutes) if minutes > 0 else FALLBACK_TOKEN_LIFETIME


def create_access_token(
    subject: int | str,
    *,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "sub": str(subject),
        "iat": issued_at,
        "exp": issued_at + (expires_delta or token_lifetime()),
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.algorithm],
        options={"require_exp": True, "require_sub": True},
    )
