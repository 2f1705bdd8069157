"""Domain entity describing a notification preference."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .notification_types import Channel, Frequency, NotificationType, Priority

DEFAULT_QUIET_HOURS_START = "22:00"
DEFAULT_QUIET_HOURS_END = "07:00"


@dataclass
class NotificationPreference:
    """Settings deciding whether and how one owner hears about one notification type.

    The owner is the user when ``user_id`` is set, otherwise the family, so
    family-wide preferences leave ``user_id`` empty.
    """

    id: int | None
    type: NotificationType
    user_id: str | None = None
    family_id: str | None = None
    enabled: bool = True
    channels: list[Channel] = field(default_factory=lambda: [Channel.IN_APP])
    frequency: Frequency = Frequency.IMMEDIATE
    priority: Priority = Priority.MEDIUM
    quiet_hours: bool = True
    quiet_hours_start: str = DEFAULT_QUIET_HOURS_START
    quiet_hours_end: str = DEFAULT_QUIET_HOURS_END
    advance_hours: int = 0
    scheduled_hour: int | None = None
    scheduled_day: int | None = None
    last_sent: datetime | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def owner_id(self) -> str:
        """Return the identifier that, together with ``type``, identifies the record."""

        owner = self.user_id or self.family_id
        if not owner:
            raise ValueError("Preference has neither user nor family owner")
        return owner

    @property
    def is_family_wide(self) -> bool:
        return self.user_id is None and self.family_id is not None


__all__ = [
    "NotificationPreference",
    "DEFAULT_QUIET_HOURS_START",
    "DEFAULT_QUIET_HOURS_END",
]
