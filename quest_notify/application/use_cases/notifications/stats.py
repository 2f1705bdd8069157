"""Delivery statistics computed from historical notifications."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from quest_notify.domain.entities import Notification, NotificationStatus
from quest_notify.utils import ensure_app_timezone

_SENT_STATUSES = frozenset(
    {NotificationStatus.SENT, NotificationStatus.DELIVERED, NotificationStatus.READ}
)
_DELIVERED_STATUSES = frozenset({NotificationStatus.DELIVERED, NotificationStatus.READ})


@dataclass
class NotificationStats:
    """Aggregated counters and rates; rates are percentages and times are seconds."""

    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    by_channel: dict[str, int] = field(default_factory=dict)
    delivery_rate: float = 0.0
    read_rate: float = 0.0
    average_delivery_time: float = 0.0


def _in_range(
    notification: Notification, start: datetime | None, end: datetime | None
) -> bool:
    created_at = ensure_app_timezone(notification.created_at)
    if created_at is None:
        return start is None and end is None
    if start is not None and created_at < start:
        return False
    if end is not None and created_at > end:
        return False
    return True


def compute_stats(
    notifications: Iterable[Notification],
    date_range: tuple[datetime | None, datetime | None] | None = None,
) -> NotificationStats:
    """Tally ``notifications`` created within ``date_range`` (inclusive bounds)."""

    selected = list(notifications)
    if date_range is not None:
        start, end = (ensure_app_timezone(bound) for bound in date_range)
        selected = [n for n in selected if _in_range(n, start, end)]

    by_status: Counter[str] = Counter()
    by_type: Counter[str] = Counter()
    by_priority: Counter[str] = Counter()
    by_channel: Counter[str] = Counter()
    for notification in selected:
        by_status[notification.status.value] += 1
        by_type[notification.type.value] += 1
        by_priority[notification.priority.value] += 1
        for channel in notification.channels:
            by_channel[channel.value] += 1

    sent = sum(1 for n in selected if n.status in _SENT_STATUSES)
    delivered = sum(1 for n in selected if n.status in _DELIVERED_STATUSES)
    read = by_status[NotificationStatus.READ.value]

    delivery_times = [
        (ensure_app_timezone(n.delivered_at) - ensure_app_timezone(n.sent_at)).total_seconds()
        for n in selected
        if n.status in _DELIVERED_STATUSES and n.sent_at and n.delivered_at
    ]

    return NotificationStats(
        total=len(selected),
        by_status=dict(by_status),
        by_type=dict(by_type),
        by_priority=dict(by_priority),
        by_channel=dict(by_channel),
        delivery_rate=(delivered / sent * 100) if sent else 0.0,
        read_rate=(read / delivered * 100) if delivered else 0.0,
        average_delivery_time=(
            sum(delivery_times) / len(delivery_times) if delivery_times else 0.0
        ),
    )


__all__ = ["NotificationStats", "compute_stats"]
