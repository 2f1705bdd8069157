"""Access token helpers used to identify the caller of manual actions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from quest_notify.config import get_settings
from quest_notify.domain.entities import Caller

ALGORITHM = "HS256"


def create_access_token(
    subject: str,
    *,
    family_id: str | None = None,
    role: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": subject, "exp": expire}
    if family_id:
        claims["family_id"] = family_id
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def caller_from_token(token: str) -> Caller:
    """Return the :class:`Caller` described by a verified access token."""

    payload = decode_access_token(token)
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise ValueError("Could not validate credentials")
    return Caller(
        uid=subject,
        family_id=payload.get("family_id"),
        role=payload.get("role"),
    )


__all__ = ["create_access_token", "decode_access_token", "caller_from_token"]
