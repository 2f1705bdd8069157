"""Domain entity describing a normalized request to notify someone."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from quest_notify.domain.errors import ValidationError

from .notification_types import NotificationType


@dataclass
class NotificationRequest:
    """What should be said, about what, and to whom.

    ``user_id`` addresses a single member. Without it the request targets the
    family: every member holding a preference for ``type`` (minus
    ``exclude_users``), or, when ``recipient_role`` is given, the family-wide
    preference and only the devices registered with that role.
    """

    type: NotificationType
    title: str
    message: str
    user_id: str | None = None
    family_id: str | None = None
    recipient_role: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    scheduled_time: datetime | None = None
    expires_at: datetime | None = None
    exclude_users: list[str] = field(default_factory=list)
    actionable: bool = False
    action_url: str | None = None

    def __post_init__(self) -> None:
        errors: list[str] = []
        if not self.user_id and not self.family_id:
            errors.append("Either user ID or family ID is required")
        if not isinstance(self.type, NotificationType):
            try:
                self.type = NotificationType(self.type)
            except ValueError:
                errors.append("Valid notification type is required")
        if not self.title:
            errors.append("Title is required")
        if errors:
            raise ValidationError(errors)


__all__ = ["NotificationRequest"]
