"""Domain entity representing a notification and its delivery lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from quest_notify.domain.errors import InvalidTransitionError

from .notification_types import Channel, NotificationStatus, NotificationType, Priority

_TRANSITIONS: dict[NotificationStatus, frozenset[NotificationStatus]] = {
    NotificationStatus.PENDING: frozenset(
        {NotificationStatus.SENT, NotificationStatus.FAILED, NotificationStatus.CANCELLED}
    ),
    NotificationStatus.SENT: frozenset(
        {NotificationStatus.DELIVERED, NotificationStatus.FAILED}
    ),
    NotificationStatus.DELIVERED: frozenset({NotificationStatus.READ}),
    NotificationStatus.READ: frozenset(),
    NotificationStatus.FAILED: frozenset(),
    NotificationStatus.CANCELLED: frozenset(),
}

_FROZEN_WHEN_EXPIRED = frozenset({NotificationStatus.PENDING, NotificationStatus.FAILED})


def can_transition(current: NotificationStatus, target: NotificationStatus) -> bool:
    """Return ``True`` when the lifecycle allows moving from ``current`` to ``target``."""

    return target in _TRANSITIONS[current]


@dataclass
class Notification:
    """A message for one user, or for a whole family, and its delivery state."""

    id: str
    type: NotificationType
    title: str
    message: str
    user_id: str | None = None
    family_id: str | None = None
    recipient_role: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    channels: list[Channel] = field(default_factory=lambda: [Channel.IN_APP])
    priority: Priority = Priority.MEDIUM
    status: NotificationStatus = NotificationStatus.PENDING
    scheduled_for: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    read_at: datetime | None = None
    failed_at: datetime | None = None
    failure_reason: str | None = None
    expires_at: datetime | None = None
    actionable: bool = False
    action_url: str | None = None
    action_data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    @property
    def is_family_wide(self) -> bool:
        return self.user_id is None and self.family_id is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def is_due(self, now: datetime) -> bool:
        """Return ``True`` when the notification should be dispatched at ``now``."""

        if self.status is not NotificationStatus.PENDING or self.is_expired(now):
            return False
        return self.scheduled_for is None or self.scheduled_for <= now

    def mark_sent(self, now: datetime) -> "Notification":
        self._transition(NotificationStatus.SENT, now)
        self.sent_at = now
        return self

    def mark_delivered(self, now: datetime) -> "Notification":
        self._transition(NotificationStatus.DELIVERED, now)
        self.delivered_at = now
        return self

    def mark_read(self, now: datetime) -> "Notification":
        self._transition(NotificationStatus.READ, now)
        self.read_at = now
        return self

    def mark_failed(self, reason: str, now: datetime) -> "Notification":
        self._transition(NotificationStatus.FAILED, now)
        self.failed_at = now
        self.failure_reason = reason
        return self

    def cancel(self, now: datetime) -> "Notification":
        self._transition(NotificationStatus.CANCELLED, now)
        return self

    def _transition(self, target: NotificationStatus, now: datetime) -> None:
        if not can_transition(self.status, target):
            raise InvalidTransitionError(self.id, self.status.value, target.value)
        if self.status in _FROZEN_WHEN_EXPIRED and self.is_expired(now):
            raise InvalidTransitionError(self.id, f"{self.status.value} (expired)", target.value)
        self.status = target


__all__ = ["Notification", "can_transition"]
