"""Decide whether, when and how a request should become a notification.

All checks run against the matched :class:`NotificationPreference`. Times of day
(quiet hours, scheduled hours and days) are evaluated in the application timezone,
and weekdays count from Sunday as ``0``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from quest_notify.domain.entities import (
    Channel,
    Frequency,
    NotificationPreference,
    NotificationRequest,
    Priority,
)
from quest_notify.utils import ensure_app_timezone

from .validators import parse_time_of_day

_THROTTLE_WINDOWS: dict[Frequency, timedelta] = {
    Frequency.HOURLY: timedelta(hours=1),
    Frequency.DAILY: timedelta(hours=24),
    Frequency.WEEKLY: timedelta(days=7),
}


class DispatchOutcome(str, Enum):
    SUPPRESS = "suppress"
    DELAY = "delay"
    SEND_NOW = "send_now"


@dataclass(frozen=True)
class DispatchDecision:
    """Outcome of resolving a request against a preference."""

    outcome: DispatchOutcome
    channels: tuple[Channel, ...] = ()
    priority: Priority | None = None
    scheduled_for: datetime | None = None
    reason: str | None = None

    @property
    def should_create(self) -> bool:
        return self.outcome is not DispatchOutcome.SUPPRESS


def weekday_index(value: datetime) -> int:
    """Return the weekday of ``value`` with Sunday as ``0`` and Saturday as ``6``."""

    return value.isoweekday() % 7


def is_in_quiet_hours(now: datetime, preference: NotificationPreference) -> bool:
    """Return ``True`` when ``now`` falls inside the preference's quiet window.

    A window whose start is later than its end wraps past midnight. Both bounds
    are inclusive.
    """

    local_now = ensure_app_timezone(now)
    start = parse_time_of_day(preference.quiet_hours_start)
    end = parse_time_of_day(preference.quiet_hours_end)
    current = local_now.hour * 100 + local_now.minute

    if start > end:
        return current >= start or current <= end
    return start <= current <= end


def should_dispatch(
    preference: NotificationPreference,
    now: datetime,
    last_sent: datetime | None,
) -> bool:
    """Return ``True`` when the preference allows sending at ``now``."""

    return _suppression_reason(preference, now, last_sent) is None


def should_send_scheduled(preference: NotificationPreference, now: datetime) -> bool:
    """Return ``True`` when a fixed-time digest governed by ``preference`` is due at ``now``."""

    if not preference.enabled:
        return False

    local_now = ensure_app_timezone(now)
    if preference.scheduled_hour is not None and local_now.hour != preference.scheduled_hour:
        return False
    if preference.scheduled_day is not None and weekday_index(local_now) != preference.scheduled_day:
        return False

    return should_dispatch(preference, now, preference.last_sent)


def resolve(
    preference: NotificationPreference | None,
    request: NotificationRequest,
    now: datetime,
) -> DispatchDecision:
    """Resolve ``request`` into a suppress, delay or send-now decision.

    Channels and priority always come from the preference.
    """

    if preference is None:
        return DispatchDecision(DispatchOutcome.SUPPRESS, reason="no-preference")

    reason = _suppression_reason(preference, now, preference.last_sent)
    if reason is not None:
        return DispatchDecision(DispatchOutcome.SUPPRESS, reason=reason)

    channels = tuple(preference.channels)
    if preference.advance_hours > 0 and request.scheduled_time is not None:
        scheduled_for = ensure_app_timezone(request.scheduled_time) - timedelta(
            hours=preference.advance_hours
        )
        if scheduled_for > ensure_app_timezone(now):
            return DispatchDecision(
                DispatchOutcome.DELAY,
                channels=channels,
                priority=preference.priority,
                scheduled_for=scheduled_for,
            )
        return DispatchDecision(
            DispatchOutcome.SEND_NOW,
            channels=channels,
            priority=preference.priority,
            scheduled_for=scheduled_for,
        )

    return DispatchDecision(
        DispatchOutcome.SEND_NOW, channels=channels, priority=preference.priority
    )


def _suppression_reason(
    preference: NotificationPreference,
    now: datetime,
    last_sent: datetime | None,
) -> str | None:
    if not preference.enabled:
        return "disabled"
    if preference.frequency is Frequency.NEVER:
        return "frequency-never"
    if preference.quiet_hours and is_in_quiet_hours(now, preference):
        return "quiet-hours"
    if last_sent is None or preference.frequency is Frequency.IMMEDIATE:
        return None

    elapsed = ensure_app_timezone(now) - ensure_app_timezone(last_sent)
    if elapsed < _THROTTLE_WINDOWS[preference.frequency]:
        return "throttled"
    return None


__all__ = [
    "DispatchOutcome",
    "DispatchDecision",
    "weekday_index",
    "is_in_quiet_hours",
    "should_dispatch",
    "should_send_scheduled",
    "resolve",
]
