"""
Session token creation / verification (JWT via python-jose).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from casebook.core.config import settings

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


def session_max_age_seconds() -> int:
    return settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60


def create_session_token(
    open_id: str,
    name: str = "",
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.SESSION_EXPIRE_DAYS)
    )
    return jwt.encode(
        {"exp": expire, "sub": open_id, "name": name, "type": "session"},
        _SECRET,
        algorithm=_ALGORITHM,
    )


def decode_session_token(token: str) -> dict | None:
    """Return payload dict if *session* token is valid, else ``None``."""
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
        if payload.get("type") != "session" or not payload.get("sub"):
            return None
        return payload
    except JWTError:
        return None
