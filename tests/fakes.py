"""In-memory repositories and transports used by the core tests."""

from __future__ import annotations

import copy
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from quest_notify.domain import repositories as contracts
from quest_notify.domain.entities import (
    Channel,
    DeviceToken,
    Notification,
    NotificationPreference,
    NotificationStatus,
    NotificationType,
    ReminderLogEntry,
)
from quest_notify.domain.errors import InvalidTransitionError, StaleVersionError
from quest_notify.infrastructure.transports import (
    MulticastPayload,
    MulticastResponse,
    MulticastTransport,
    SendResponse,
)


class InMemoryPreferenceRepository(contracts.PreferenceRepository):
    def __init__(self) -> None:
        self.items: dict[tuple[str, NotificationType], NotificationPreference] = {}
        self._next_id = 1

    def add(self, preference: NotificationPreference) -> NotificationPreference:
        return self.create(preference)

    def get(self, owner_id, notification_type):
        item = self.items.get((owner_id, NotificationType(notification_type)))
        return copy.deepcopy(item)

    def list_for_owner(self, owner_id):
        return [copy.deepcopy(p) for (owner, _), p in self.items.items() if owner == owner_id]

    def list_for_family(self, family_id, notification_type):
        return [
            copy.deepcopy(p)
            for p in self.items.values()
            if p.family_id == family_id and p.type == notification_type
        ]

    def create(self, preference):
        stored = replace(preference, id=self._next_id, version=0)
        self._next_id += 1
        self.items[(stored.owner_id, stored.type)] = stored
        return copy.deepcopy(stored)

    def update(self, preference):
        key = (preference.owner_id, preference.type)
        current = self.items.get(key)
        if current is None:
            raise ValueError("Notification preference not found")
        if current.version != preference.version:
            raise StaleVersionError(preference.owner_id, preference.type.value, preference.version)
        stored = replace(preference, last_sent=current.last_sent, version=current.version + 1)
        self.items[key] = stored
        return copy.deepcopy(stored)

    def compare_and_set_last_sent(self, owner_id, notification_type, *, expected_version, last_sent):
        key = (owner_id, NotificationType(notification_type))
        current = self.items.get(key)
        if current is None or current.version != expected_version:
            return False
        self.items[key] = replace(current, last_sent=last_sent, version=current.version + 1)
        return True


class InMemoryNotificationRepository(contracts.NotificationRepository):
    def __init__(self) -> None:
        self.items: dict[str, Notification] = {}

    def get(self, notification_id):
        return copy.deepcopy(self.items.get(notification_id))

    def create(self, notification):
        self.items[notification.id] = copy.deepcopy(notification)
        return copy.deepcopy(notification)

    def update(self, notification):
        if notification.id not in self.items:
            raise ValueError(f"Notification with id {notification.id} not found")
        self.items[notification.id] = copy.deepcopy(notification)
        return copy.deepcopy(notification)

    def _transition(self, notification_id, now, target):
        current = self.items.get(notification_id)
        if current is None or current.status is not NotificationStatus.PENDING:
            return None
        try:
            if target is NotificationStatus.SENT:
                current.mark_sent(now)
            else:
                current.cancel(now)
        except InvalidTransitionError:
            return None
        return copy.deepcopy(current)

    def claim_for_delivery(self, notification_id, now):
        return self._transition(notification_id, now, NotificationStatus.SENT)

    def cancel_pending(self, notification_id, now):
        return self._transition(notification_id, now, NotificationStatus.CANCELLED)

    def list_pending(self):
        return [
            copy.deepcopy(n)
            for n in self.items.values()
            if n.status is NotificationStatus.PENDING
        ]

    def list_for_user(self, user_id, *, limit=50):
        items = [copy.deepcopy(n) for n in self.items.values() if n.user_id == user_id]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items[:limit] if limit is not None else items

    def list_created_between(self, start=None, end=None, *, family_id=None):
        return [
            copy.deepcopy(n)
            for n in self.items.values()
            if (start is None or n.created_at >= start)
            and (end is None or n.created_at <= end)
            and (family_id is None or n.family_id == family_id)
        ]


class InMemoryDeviceTokenRepository(contracts.DeviceTokenRepository):
    def __init__(self, tokens: Sequence[DeviceToken] = ()) -> None:
        self.items: dict[str, DeviceToken] = {token.token: token for token in tokens}
        self.deactivate_calls: list[list[str]] = []

    def get(self, token):
        return self.items.get(token)

    def save(self, device_token):
        self.items[device_token.token] = device_token
        return device_token

    def list_active_for_user(self, user_id, channel):
        return [
            t for t in self.items.values()
            if t.user_id == user_id and t.channel == channel and t.active
        ]

    def list_active_for_family(self, family_id, channel, *, roles=None):
        return [
            t for t in self.items.values()
            if t.family_id == family_id
            and t.channel == channel
            and t.active
            and (roles is None or t.user_role in roles)
        ]

    def deactivate(self, tokens, now: datetime) -> int:
        self.deactivate_calls.append(list(tokens))
        changed = 0
        for token in tokens:
            item = self.items.get(token)
            if item is not None and item.active:
                self.items[token] = replace(item, active=False, updated_at=now)
                changed += 1
        return changed


class InMemoryReminderLogRepository(contracts.ReminderLogRepository):
    def __init__(self) -> None:
        self.items: dict[str, ReminderLogEntry] = {}

    def get(self, key):
        return self.items.get(key)

    def claim(self, entry):
        if entry.key in self.items:
            return False
        self.items[entry.key] = entry
        return True

    def release(self, key):
        self.items.pop(key, None)


class RecordingTransport(MulticastTransport):
    """Transport answering each token from ``failures`` (token -> error code)."""

    def __init__(self, failures: dict[str, str] | None = None) -> None:
        self.failures = dict(failures or {})
        self.calls: list[tuple[list[str], MulticastPayload]] = []

    async def send_multicast(self, tokens, payload):
        self.calls.append((list(tokens), payload))
        return MulticastResponse(
            [
                SendResponse(success=False, error_code=self.failures[token])
                if token in self.failures
                else SendResponse(success=True)
                for token in tokens
            ]
        )


class ExplodingTransport(MulticastTransport):
    async def send_multicast(self, tokens, payload):
        raise RuntimeError("provider down")


def push_token(token: str, user_id: str, *, family_id: str = "fam-1", role: str = "child") -> DeviceToken:
    return DeviceToken(
        token=token,
        user_id=user_id,
        family_id=family_id,
        user_role=role,
        channel=Channel.PUSH,
    )


def make_preference(
    notification_type: NotificationType = NotificationType.QUEST_COMPLETION,
    *,
    user_id: str | None = "child-1",
    family_id: str | None = "fam-1",
    **overrides,
) -> NotificationPreference:
    values = {
        "id": None,
        "type": notification_type,
        "user_id": user_id,
        "family_id": family_id,
        "channels": [Channel.IN_APP, Channel.PUSH],
    }
    values.update(overrides)
    return NotificationPreference(**values)
