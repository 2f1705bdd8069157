"""Tests for delivery statistics."""

from __future__ import annotations

from datetime import timedelta

from quest_notify.application.use_cases.notifications import compute_stats
from quest_notify.domain.entities import (
    Channel,
    Notification,
    NotificationStatus,
    NotificationType,
    Priority,
)


def _notification(index: int, status: NotificationStatus, noon, **overrides) -> Notification:
    values = {
        "id": f"n-{index}",
        "type": NotificationType.QUEST_COMPLETION,
        "title": "Done",
        "message": "",
        "user_id": "child-1",
        "channels": [Channel.IN_APP, Channel.PUSH],
        "priority": Priority.MEDIUM,
        "status": status,
        "created_at": noon,
    }
    values.update(overrides)
    return Notification(**values)


def test_delivery_and_read_rates(noon) -> None:
    statuses = (
        [NotificationStatus.SENT] * 4
        + [NotificationStatus.DELIVERED] * 3
        + [NotificationStatus.READ] * 3
    )
    notifications = [
        _notification(
            index,
            status,
            noon,
            sent_at=noon,
            delivered_at=noon + timedelta(seconds=4)
            if status is not NotificationStatus.SENT
            else None,
        )
        for index, status in enumerate(statuses)
    ]

    stats = compute_stats(notifications)

    assert stats.total == 10
    assert stats.delivery_rate == 60.0
    assert stats.read_rate == 50.0
    assert stats.average_delivery_time == 4.0
    assert stats.by_status == {"sent": 4, "delivered": 3, "read": 3}
    assert stats.by_channel == {"in_app": 10, "push": 10}


def test_rates_are_zero_without_sent_notifications(noon) -> None:
    stats = compute_stats(
        [
            _notification(1, NotificationStatus.PENDING, noon),
            _notification(2, NotificationStatus.CANCELLED, noon),
        ]
    )

    assert stats.delivery_rate == 0.0
    assert stats.read_rate == 0.0
    assert stats.average_delivery_time == 0.0


def test_empty_input_yields_empty_stats() -> None:
    stats = compute_stats([])

    assert stats.total == 0
    assert stats.by_type == {}


def test_date_range_bounds_are_inclusive(noon) -> None:
    notifications = [
        _notification(1, NotificationStatus.PENDING, noon, created_at=noon - timedelta(days=1)),
        _notification(2, NotificationStatus.PENDING, noon, created_at=noon),
        _notification(3, NotificationStatus.PENDING, noon, created_at=noon + timedelta(days=1)),
    ]

    stats = compute_stats(notifications, (noon, noon + timedelta(days=1)))

    assert stats.total == 2
