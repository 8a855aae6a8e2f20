"""
Password hashing and bearer-token helpers.

Passwords are hashed with bcrypt through passlib's ``CryptContext``; access
tokens are HS256 JWTs whose ``sub`` claim is the username.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from invest_track.core.config import settings
from invest_track.core.exceptions import AuthenticationException

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token for ``subject`` (the username)."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": subject, "exp": expire}
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Validate ``token`` and return its subject.

    Raises :class:`AuthenticationException` for a bad signature, an expired
    token or a missing ``sub`` claim.
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as exc:
        raise AuthenticationException("Invalid or expired token") from exc

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationException("Invalid or expired token")
    return subject
