"""Default preference table applied when an owner is provisioned."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from quest_notify.domain.entities import Channel, Frequency, NotificationType, Priority


@dataclass(frozen=True)
class PreferenceDefaults:
    """Initial values for one notification type."""

    channels: tuple[Channel, ...]
    frequency: Frequency
    priority: Priority
    quiet_hours: bool
    enabled: bool = True
    advance_hours: int = 0
    scheduled_hour: int | None = None
    scheduled_day: int | None = None


DefaultPreferenceTable = Mapping[NotificationType, PreferenceDefaults]


def default_preference_table() -> DefaultPreferenceTable:
    """Return the read-only table of defaults used to provision new owners."""

    in_app = (Channel.IN_APP,)
    in_app_push = (Channel.IN_APP, Channel.PUSH)
    table = {
        NotificationType.QUEST_REMINDER: PreferenceDefaults(
            in_app_push, Frequency.DAILY, Priority.MEDIUM, True, advance_hours=2
        ),
        NotificationType.QUEST_COMPLETION: PreferenceDefaults(
            in_app, Frequency.IMMEDIATE, Priority.LOW, False
        ),
        NotificationType.LEVEL_UP: PreferenceDefaults(
            in_app_push, Frequency.IMMEDIATE, Priority.HIGH, False
        ),
        NotificationType.BADGE_EARNED: PreferenceDefaults(
            in_app_push, Frequency.IMMEDIATE, Priority.MEDIUM, False
        ),
        NotificationType.ACHIEVEMENT: PreferenceDefaults(
            in_app_push, Frequency.IMMEDIATE, Priority.MEDIUM, False
        ),
        NotificationType.STREAK_WARNING: PreferenceDefaults(
            in_app_push, Frequency.DAILY, Priority.HIGH, True, advance_hours=3
        ),
        NotificationType.STREAK_MILESTONE: PreferenceDefaults(
            in_app_push, Frequency.IMMEDIATE, Priority.HIGH, False
        ),
        NotificationType.FAMILY_GOAL: PreferenceDefaults(
            in_app, Frequency.IMMEDIATE, Priority.MEDIUM, True
        ),
        NotificationType.REWARD_AVAILABLE: PreferenceDefaults(
            in_app, Frequency.IMMEDIATE, Priority.LOW, True
        ),
        NotificationType.PENALTY_APPLIED: PreferenceDefaults(
            in_app_push, Frequency.IMMEDIATE, Priority.HIGH, False
        ),
        NotificationType.PARENT_APPROVAL: PreferenceDefaults(
            in_app_push, Frequency.IMMEDIATE, Priority.MEDIUM, True
        ),
        NotificationType.DAILY_MOTIVATION: PreferenceDefaults(
            in_app_push, Frequency.DAILY, Priority.LOW, True, scheduled_hour=8
        ),
        NotificationType.DAILY_SUMMARY: PreferenceDefaults(
            in_app, Frequency.DAILY, Priority.LOW, True, scheduled_hour=19
        ),
        NotificationType.WEEKLY_REPORT: PreferenceDefaults(
            (Channel.IN_APP, Channel.EMAIL),
            Frequency.WEEKLY,
            Priority.LOW,
            True,
            scheduled_hour=10,
            scheduled_day=0,
        ),
        NotificationType.SYSTEM_UPDATE: PreferenceDefaults(
            in_app, Frequency.IMMEDIATE, Priority.LOW, True
        ),
        NotificationType.CUSTOM: PreferenceDefaults(
            in_app_push, Frequency.IMMEDIATE, Priority.MEDIUM, False
        ),
    }
    return MappingProxyType(table)


__all__ = ["PreferenceDefaults", "DefaultPreferenceTable", "default_preference_table"]
