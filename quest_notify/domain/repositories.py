"""Storage contracts the notification core depends on.

The SQLAlchemy implementations live in ``quest_notify.infrastructure.repositories``;
anything honouring these signatures (an in-memory fake, another database) can be
injected instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from quest_notify.domain.entities import (
    Channel,
    DeviceToken,
    Notification,
    NotificationPreference,
    NotificationType,
    ReminderLogEntry,
)


class PreferenceRepository(ABC):
    """Keyed store of preferences, one per ``(owner_id, type)``."""

    @abstractmethod
    def get(self, owner_id: str, notification_type: NotificationType) -> NotificationPreference | None:
        ...

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> Sequence[NotificationPreference]:
        ...

    @abstractmethod
    def list_for_family(
        self, family_id: str, notification_type: NotificationType
    ) -> Sequence[NotificationPreference]:
        """Return member and family-wide preferences of ``family_id`` for a type."""

    @abstractmethod
    def create(self, preference: NotificationPreference) -> NotificationPreference:
        ...

    @abstractmethod
    def update(self, preference: NotificationPreference) -> NotificationPreference:
        """Persist the settings of ``preference`` and bump its version.

        The write only happens while the stored version still equals
        ``preference.version``; otherwise :class:`StaleVersionError` is raised.
        ``last_sent`` is left untouched, it only changes through
        :meth:`compare_and_set_last_sent`.
        """

    @abstractmethod
    def compare_and_set_last_sent(
        self,
        owner_id: str,
        notification_type: NotificationType,
        *,
        expected_version: int,
        last_sent: datetime,
    ) -> bool:
        """Store ``last_sent`` only if the stored version still equals ``expected_version``."""


class NotificationRepository(ABC):
    """Keyed store of notifications."""

    @abstractmethod
    def get(self, notification_id: str) -> Notification | None:
        ...

    @abstractmethod
    def create(self, notification: Notification) -> Notification:
        ...

    @abstractmethod
    def update(self, notification: Notification) -> Notification:
        ...

    @abstractmethod
    def claim_for_delivery(self, notification_id: str, now: datetime) -> Notification | None:
        """Atomically move a pending, unexpired notification to ``sent``; ``None`` otherwise."""

    @abstractmethod
    def cancel_pending(self, notification_id: str, now: datetime) -> Notification | None:
        """Atomically move a pending, unexpired notification to ``cancelled``."""

    @abstractmethod
    def list_pending(self) -> Sequence[Notification]:
        ...

    @abstractmethod
    def list_for_user(self, user_id: str, *, limit: int | None = 50) -> Sequence[Notification]:
        ...

    @abstractmethod
    def list_created_between(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        family_id: str | None = None,
    ) -> Sequence[Notification]:
        ...


class DeviceTokenRepository(ABC):
    """Keyed store of device tokens."""

    @abstractmethod
    def get(self, token: str) -> DeviceToken | None:
        ...

    @abstractmethod
    def save(self, device_token: DeviceToken) -> DeviceToken:
        """Insert or replace the registration identified by ``device_token.token``."""

    @abstractmethod
    def list_active_for_user(self, user_id: str, channel: Channel) -> Sequence[DeviceToken]:
        ...

    @abstractmethod
    def list_active_for_family(
        self,
        family_id: str,
        channel: Channel,
        *,
        roles: Sequence[str] | None = None,
    ) -> Sequence[DeviceToken]:
        ...

    @abstractmethod
    def deactivate(self, tokens: Sequence[str], now: datetime) -> int:
        """Mark ``tokens`` inactive in one write and return how many rows changed."""


class ReminderLogRepository(ABC):
    """Durable idempotency log for scheduled reminders."""

    @abstractmethod
    def get(self, key: str) -> ReminderLogEntry | None:
        ...

    @abstractmethod
    def claim(self, entry: ReminderLogEntry) -> bool:
        """Write ``entry`` unless its key exists; return ``True`` when this call wrote it."""

    @abstractmethod
    def release(self, key: str) -> None:
        """Forget a claimed key so that a later pass may retry it."""


__all__ = [
    "PreferenceRepository",
    "NotificationRepository",
    "DeviceTokenRepository",
    "ReminderLogRepository",
]
