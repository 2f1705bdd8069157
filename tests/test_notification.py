"""Tests for the notification lifecycle rules."""

from __future__ import annotations

from datetime import timedelta

import pytest

from quest_notify.domain.entities import Notification, NotificationStatus, NotificationType
from quest_notify.domain.errors import InvalidTransitionError


def _notification(**overrides) -> Notification:
    values = {
        "id": "n-1",
        "type": NotificationType.LEVEL_UP,
        "title": "Level Up!",
        "message": "Level 4",
        "user_id": "child-1",
    }
    values.update(overrides)
    return Notification(**values)


def test_mark_sent_stamps_sent_at(noon) -> None:
    notification = _notification().mark_sent(noon)

    assert notification.status is NotificationStatus.SENT
    assert notification.sent_at == noon
    with pytest.raises(InvalidTransitionError):
        notification.cancel(noon)


def test_expired_pending_notification_is_frozen(noon) -> None:
    notification = _notification(expires_at=noon - timedelta(minutes=1))

    with pytest.raises(InvalidTransitionError, match="expired"):
        notification.mark_sent(noon)
    with pytest.raises(InvalidTransitionError):
        notification.cancel(noon)
    assert notification.status is NotificationStatus.PENDING


def test_cancel_only_from_pending(noon) -> None:
    notification = _notification().cancel(noon)

    assert notification.status is NotificationStatus.CANCELLED
    with pytest.raises(InvalidTransitionError):
        notification.mark_sent(noon)
