"""Password hashing and JWT token management."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from todo_api.config import get_settings

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    user_id: int,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """Create a signed bearer token for ``user_id``.

    Extra keyword arguments are added to the payload as-is (the testing
    harness uses this to tag short-lived tokens).
    """
    auth = get_settings().auth
    if expires_delta is None:
        expires_delta = timedelta(hours=auth.expires_hours)

    payload = {
        **claims,
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, auth.secret, algorithm=auth.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a token. Raises ``JWTError`` if invalid or expired."""
    auth = get_settings().auth
    return jwt.decode(token, auth.secret, algorithms=[auth.algorithm])


def get_user_id_from_token(token: str) -> int:
    payload = decode_token(token)
    subject = payload.get("sub")
    if subject is None:
        raise JWTError("Token missing 'sub' claim")
    try:
        return int(subject)
    except ValueError as e:
        raise JWTError("Token 'sub' claim is not a user id") from e
