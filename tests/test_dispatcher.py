"""Tests for delivering due notifications through their channels."""

from __future__ import annotations

import threading
import time
from datetime import timedelta

import pytest
from fakes import (
    ExplodingTransport,
    InMemoryDeviceTokenRepository,
    InMemoryNotificationRepository,
    InMemoryPreferenceRepository,
    RecordingTransport,
    make_preference,
    push_token,
)

from quest_notify.application.use_cases.notifications import (
    DeliveryDispatcher,
    DeliveryOutcome,
    PreferenceStore,
    classify_failure,
    default_preference_table,
)
from quest_notify.domain.entities import (
    Channel,
    Notification,
    NotificationStatus,
    NotificationType,
    Priority,
)
from quest_notify.domain.errors import DeliveryError, TokenInvalidError


def _notification(notification_id: str = "n-1", **overrides) -> Notification:
    values = {
        "id": notification_id,
        "type": NotificationType.LEVEL_UP,
        "title": "Level Up!",
        "message": "Level 4",
        "user_id": "child-1",
        "family_id": "fam-1",
        "channels": [Channel.PUSH],
        "priority": Priority.HIGH,
    }
    values.update(overrides)
    return Notification(**values)


def _dispatcher(notifications, tokens, transport, noon, **kwargs) -> DeliveryDispatcher:
    return DeliveryDispatcher(
        notifications,
        tokens,
        {Channel.PUSH: transport},
        clock=lambda: noon,
        **kwargs,
    )


def test_classify_failure_detects_permanently_invalid_tokens() -> None:
    assert isinstance(
        classify_failure("t", "messaging/registration-token-not-registered"), TokenInvalidError
    )
    assert isinstance(classify_failure("t", "invalid-registration-token"), TokenInvalidError)
    failure = classify_failure("t", "messaging/internal-error")
    assert isinstance(failure, DeliveryError)
    assert not isinstance(failure, TokenInvalidError)


@pytest.mark.anyio
async def test_invalid_token_is_deactivated_and_others_kept(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification(created_at=noon))
    tokens = InMemoryDeviceTokenRepository(
        [push_token(f"token-{index}", "child-1") for index in range(4)]
    )
    transport = RecordingTransport(
        {"token-2": "messaging/registration-token-not-registered"}
    )

    result = await _dispatcher(notifications, tokens, transport, noon).dispatch(
        notifications.get("n-1")
    )

    assert result.outcome is DeliveryOutcome.DELIVERED
    assert result.success_count == 3
    assert result.deactivated_tokens == 1
    assert tokens.deactivate_calls == [["token-2"]]
    assert [t.token for t in tokens.items.values() if not t.active] == ["token-2"]
    stored = notifications.get("n-1")
    assert stored.status is NotificationStatus.DELIVERED
    assert stored.sent_at == noon
    assert stored.delivered_at == noon


@pytest.mark.anyio
async def test_transient_failures_never_deactivate_tokens(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification(created_at=noon))
    tokens = InMemoryDeviceTokenRepository([push_token("token-0", "child-1")])
    transport = RecordingTransport({"token-0": "messaging/internal-error"})

    result = await _dispatcher(notifications, tokens, transport, noon).dispatch(
        notifications.get("n-1")
    )

    assert result.outcome is DeliveryOutcome.FAILED
    assert tokens.deactivate_calls == []
    stored = notifications.get("n-1")
    assert stored.status is NotificationStatus.FAILED
    assert "messaging/internal-error" in stored.failure_reason


@pytest.mark.anyio
async def test_notification_without_tokens_is_skipped_and_stays_pending(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification(created_at=noon))
    transport = RecordingTransport()

    result = await _dispatcher(
        notifications, InMemoryDeviceTokenRepository(), transport, noon
    ).dispatch(notifications.get("n-1"))

    assert result.outcome is DeliveryOutcome.SKIPPED
    assert transport.calls == []
    assert notifications.get("n-1").status is NotificationStatus.PENDING


@pytest.mark.anyio
async def test_in_app_counts_as_a_successful_delivery(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification(channels=[Channel.IN_APP], created_at=noon))

    result = await _dispatcher(
        notifications, InMemoryDeviceTokenRepository(), RecordingTransport(), noon
    ).dispatch(notifications.get("n-1"))

    assert result.outcome is DeliveryOutcome.DELIVERED
    assert result.success_count == 1


@pytest.mark.anyio
async def test_parent_notification_targets_parent_and_admin_tokens(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(
        _notification(user_id=None, recipient_role="parent", created_at=noon)
    )
    tokens = InMemoryDeviceTokenRepository(
        [
            push_token("child-token", "child-1", role="child"),
            push_token("parent-token", "parent-1", role="parent"),
            push_token("admin-token", "parent-2", role="admin"),
            push_token("other-family", "parent-3", family_id="fam-2", role="parent"),
        ]
    )
    transport = RecordingTransport()

    await _dispatcher(notifications, tokens, transport, noon).dispatch(notifications.get("n-1"))

    ((sent_tokens, payload),) = transport.calls
    assert sorted(sent_tokens) == ["admin-token", "parent-token"]
    assert payload.data["notification_id"] == "n-1"
    assert payload.data["type"] == "level_up"


@pytest.mark.anyio
async def test_transport_exception_marks_only_that_notification_failed(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification("n-1", created_at=noon))
    notifications.create(_notification("n-2", user_id="child-2", created_at=noon))
    tokens = InMemoryDeviceTokenRepository(
        [push_token("token-1", "child-1"), push_token("token-2", "child-2")]
    )
    dispatcher = DeliveryDispatcher(
        notifications,
        tokens,
        {Channel.PUSH: ExplodingTransport()},
        clock=lambda: noon,
    )

    report = await dispatcher.dispatch_many([notifications.get("n-1"), notifications.get("n-2")])

    assert report.failed == 2
    assert report.errors == 0
    assert tokens.deactivate_calls == []


@pytest.mark.anyio
async def test_claimed_notification_is_not_delivered_twice(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification(created_at=noon))
    tokens = InMemoryDeviceTokenRepository([push_token("token-1", "child-1")])
    transport = RecordingTransport()
    dispatcher = _dispatcher(notifications, tokens, transport, noon)
    pending = notifications.get("n-1")

    report = await dispatcher.dispatch_many([pending, pending])
    again = await dispatcher.dispatch(pending)

    assert report.delivered == 1
    assert again.outcome is DeliveryOutcome.SKIPPED
    assert len(transport.calls) == 1


@pytest.mark.anyio
async def test_expired_notification_is_not_claimed(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(
        _notification(created_at=noon, expires_at=noon - timedelta(minutes=1))
    )
    tokens = InMemoryDeviceTokenRepository([push_token("token-1", "child-1")])

    result = await _dispatcher(notifications, tokens, RecordingTransport(), noon).dispatch(
        notifications.get("n-1")
    )

    assert result.reason == "not-pending"


@pytest.mark.anyio
async def test_successful_delivery_records_last_sent(noon) -> None:
    repository = InMemoryPreferenceRepository()
    repository.add(make_preference(NotificationType.LEVEL_UP))
    store = PreferenceStore(repository, default_preference_table())
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification(created_at=noon))
    tokens = InMemoryDeviceTokenRepository([push_token("token-1", "child-1")])

    await _dispatcher(
        notifications, tokens, RecordingTransport(), noon, preferences=store
    ).dispatch(notifications.get("n-1"))

    assert store.get("child-1", NotificationType.LEVEL_UP).last_sent == noon


@pytest.mark.anyio
async def test_dispatch_pending_only_picks_due_notifications(noon) -> None:
    notifications = InMemoryNotificationRepository()
    notifications.create(_notification("due", created_at=noon))
    notifications.create(
        _notification("later", created_at=noon, scheduled_for=noon + timedelta(hours=1))
    )
    tokens = InMemoryDeviceTokenRepository([push_token("token-1", "child-1")])

    report = await _dispatcher(
        notifications, tokens, RecordingTransport(), noon
    ).dispatch_pending(noon)

    assert report.delivered == 1
    assert notifications.get("later").status is NotificationStatus.PENDING


class ThreadRecordingNotificationRepository(InMemoryNotificationRepository):
    """Remember the thread of every call and whether two calls overlapped."""

    def __init__(self) -> None:
        super().__init__()
        self.threads: set[int] = set()
        self.overlapped = False
        self._busy = threading.Lock()

    def _record(self) -> None:
        self.threads.add(threading.get_ident())
        if not self._busy.acquire(blocking=False):
            self.overlapped = True
            return
        time.sleep(0.01)
        self._busy.release()

    def claim_for_delivery(self, notification_id, now):
        self._record()
        return super().claim_for_delivery(notification_id, now)

    def update(self, notification):
        self._record()
        return super().update(notification)


@pytest.mark.anyio
async def test_repository_calls_leave_the_event_loop_one_at_a_time(noon) -> None:
    notifications = ThreadRecordingNotificationRepository()
    for index in range(4):
        notifications.create(_notification(f"n-{index}", created_at=noon))
    tokens = InMemoryDeviceTokenRepository([push_token("token-1", "child-1")])

    report = await _dispatcher(
        notifications, tokens, RecordingTransport(), noon
    ).dispatch_many([notifications.get(f"n-{index}") for index in range(4)])

    assert report.delivered == 4
    assert threading.get_ident() not in notifications.threads
    assert notifications.overlapped is False
