"""Domain entity representing a registered delivery address."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .notification_types import Channel

ROLE_CHILD = "child"
ROLE_PARENT = "parent"
ROLE_ADMIN = "admin"

PARENT_ROLES = (ROLE_ADMIN, ROLE_PARENT)


def recipient_roles(role: str | None) -> tuple[str, ...] | None:
    """Return the token roles addressed by ``role``; ``None`` addresses everyone.

    Administrators are parents too, so ``parent`` expands to both roles.
    """

    if not role:
        return None
    if role == ROLE_PARENT:
        return PARENT_ROLES
    return (role,)


@dataclass
class DeviceToken:
    """Push token (or email address / phone number) owned by a family member."""

    token: str
    user_id: str
    family_id: str | None
    user_role: str
    channel: Channel = Channel.PUSH
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = [
    "DeviceToken",
    "ROLE_CHILD",
    "ROLE_PARENT",
    "ROLE_ADMIN",
    "PARENT_ROLES",
    "recipient_roles",
]
