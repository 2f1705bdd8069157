"""Pending-queue ordering for the delivery dispatcher."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from quest_notify.domain.entities import Notification
from quest_notify.utils import ensure_app_timezone


def get_pending(notifications: Iterable[Notification], now: datetime) -> list[Notification]:
    """Return the notifications due at ``now``, highest priority first.

    Cancelled, expired and future-scheduled notifications are dropped silently.
    Within one priority tier the oldest notification comes first.
    """

    now = ensure_app_timezone(now)
    due = [notification for notification in notifications if notification.is_due(now)]
    return sorted(
        due,
        key=lambda notification: (
            -notification.priority.rank,
            ensure_app_timezone(notification.created_at) or now,
        ),
    )


__all__ = ["get_pending"]
