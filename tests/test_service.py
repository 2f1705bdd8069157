"""Tests for the notification service entry points."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fakes import (
    InMemoryDeviceTokenRepository,
    InMemoryNotificationRepository,
    InMemoryPreferenceRepository,
    RecordingTransport,
    make_preference,
    push_token,
)

from quest_notify.application.use_cases.notifications import (
    DeliveryDispatcher,
    NotificationService,
    PreferenceStore,
    default_preference_table,
    send_custom_notification,
)
from quest_notify.domain.entities import (
    Caller,
    Channel,
    NotificationRequest,
    NotificationStatus,
    NotificationType,
)
from quest_notify.domain.errors import CallerError, InvalidTransitionError, ValidationError


@pytest.fixture
def notifications() -> InMemoryNotificationRepository:
    return InMemoryNotificationRepository()


@pytest.fixture
def preferences() -> InMemoryPreferenceRepository:
    repository = InMemoryPreferenceRepository()
    for user_id in ("child-1", "child-2", "parent-1"):
        repository.add(make_preference(NotificationType.CUSTOM, user_id=user_id))
        repository.add(make_preference(NotificationType.FAMILY_GOAL, user_id=user_id))
    repository.add(make_preference(NotificationType.QUEST_COMPLETION, user_id=None))
    return repository


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def service(notifications, preferences, transport, noon) -> NotificationService:
    store = PreferenceStore(preferences, default_preference_table())
    tokens = InMemoryDeviceTokenRepository(
        [push_token("token-child", "child-1"), push_token("token-parent", "parent-1", role="parent")]
    )
    dispatcher = DeliveryDispatcher(
        notifications,
        tokens,
        {Channel.PUSH: transport},
        preferences=store,
        clock=lambda: noon,
    )
    return NotificationService(
        preferences=store,
        notifications=notifications,
        dispatcher=dispatcher,
        clock=lambda: noon,
    )


def test_family_request_fans_out_to_members(service) -> None:
    created = service.submit(
        NotificationRequest(
            type=NotificationType.FAMILY_GOAL,
            family_id="fam-1",
            title="Family Goal Progress!",
            message="Halfway there",
            exclude_users=["child-2"],
        )
    )

    assert sorted(n.user_id for n in created) == ["child-1", "parent-1"]


def test_role_request_uses_the_family_wide_preference(service) -> None:
    (created,) = service.submit(
        NotificationRequest(
            type=NotificationType.QUEST_COMPLETION,
            family_id="fam-1",
            recipient_role="parent",
            title="Quest Completed!",
            message="Mia finished",
        )
    )

    assert created.user_id is None
    assert created.recipient_role == "parent"


def test_request_without_recipient_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc_info:
        NotificationRequest(type=NotificationType.CUSTOM, title="", message="")

    assert exc_info.value.errors == [
        "Either user ID or family ID is required",
        "Title is required",
    ]


@pytest.mark.anyio
async def test_full_lifecycle_pending_to_read(service, notifications, noon) -> None:
    (created,) = service.submit(
        NotificationRequest(
            type=NotificationType.CUSTOM, user_id="child-1", title="Hello", message="Hi"
        )
    )

    report = await service.deliver_due([created])
    read = service.mark_read(created.id, Caller(uid="child-1"), noon + timedelta(minutes=1))

    assert report.delivered == 1
    assert read.status is NotificationStatus.READ
    assert read.read_at == noon + timedelta(minutes=1)


def test_mark_read_requires_delivery_first(service) -> None:
    (created,) = service.submit(
        NotificationRequest(type=NotificationType.CUSTOM, user_id="child-1", title="Hello", message="")
    )

    with pytest.raises(InvalidTransitionError):
        service.mark_read(created.id, Caller(uid="child-1"))


def test_cancel_pending_notification(service, notifications) -> None:
    (created,) = service.submit(
        NotificationRequest(type=NotificationType.CUSTOM, user_id="child-1", title="Hello", message="")
    )

    cancelled = service.cancel(created.id, Caller(uid="child-1"))

    assert cancelled.status is NotificationStatus.CANCELLED
    assert notifications.get(created.id).status is NotificationStatus.CANCELLED


@pytest.mark.anyio
async def test_claimed_notification_cannot_be_cancelled(service) -> None:
    (created,) = service.submit(
        NotificationRequest(type=NotificationType.CUSTOM, user_id="child-1", title="Hello", message="")
    )
    await service.deliver_due([created])

    with pytest.raises(InvalidTransitionError):
        service.cancel(created.id, Caller(uid="child-1"))


def test_other_users_cannot_touch_a_notification(service) -> None:
    (created,) = service.submit(
        NotificationRequest(type=NotificationType.CUSTOM, user_id="child-1", title="Hello", message="")
    )

    with pytest.raises(CallerError):
        service.cancel(created.id, Caller(uid="child-2", family_id="fam-1"))
    with pytest.raises(ValueError, match="not found"):
        service.cancel("missing", Caller(uid="child-1"))


def test_custom_notification_requires_a_caller(service) -> None:
    with pytest.raises(CallerError) as exc_info:
        send_custom_notification(
            service, None, {"target_type": "child", "target_id": "child-1", "title": "Hi"}
        )

    assert exc_info.value.unauthenticated is True


def test_custom_notification_rejects_unknown_target(service) -> None:
    caller = Caller(uid="parent-1", family_id="fam-1", role="parent")

    with pytest.raises(CallerError) as exc_info:
        send_custom_notification(
            service, caller, {"target_type": "school", "target_id": "x", "title": "Hi"}
        )

    assert exc_info.value.unauthenticated is False
    assert str(exc_info.value) == 'Invalid target type. Must be "child", "family", or "user"'


def test_custom_notification_to_child(service, notifications) -> None:
    caller = Caller(uid="parent-1", family_id="fam-1", role="parent")

    result = send_custom_notification(
        service,
        caller,
        {
            "target_type": "child",
            "target_id": "child-1",
            "title": "Dinner time",
            "body": "Come downstairs",
            "custom_data": {"room": "kitchen"},
        },
    )

    assert result["success"] is True
    assert result["message"] == "Notification sent successfully"
    (notification_id,) = result["notification_ids"]
    stored = notifications.get(notification_id)
    assert stored.type is NotificationType.CUSTOM
    assert stored.data == {"room": "kitchen", "type": "custom", "sent_by": "parent-1"}


def test_custom_notification_to_family_fans_out(service) -> None:
    caller = Caller(uid="parent-1", family_id="fam-1", role="parent")

    result = send_custom_notification(
        service,
        caller,
        {"target_type": "family", "target_id": "fam-1", "title": "Movie night"},
    )

    assert len(result["notification_ids"]) == 3
