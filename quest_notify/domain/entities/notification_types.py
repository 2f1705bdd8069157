"""Enumerations shared by notification entities."""

from __future__ import annotations

from enum import Enum


class NotificationType(str, Enum):
    """Kinds of notification a user can hold a preference for."""

    QUEST_REMINDER = "quest_reminder"
    QUEST_COMPLETION = "quest_completion"
    LEVEL_UP = "level_up"
    BADGE_EARNED = "badge_earned"
    STREAK_WARNING = "streak_warning"
    STREAK_MILESTONE = "streak_milestone"
    FAMILY_GOAL = "family_goal"
    REWARD_AVAILABLE = "reward_available"
    PENALTY_APPLIED = "penalty_applied"
    PARENT_APPROVAL = "parent_approval"
    ACHIEVEMENT = "achievement"
    DAILY_MOTIVATION = "daily_motivation"
    DAILY_SUMMARY = "daily_summary"
    WEEKLY_REPORT = "weekly_report"
    SYSTEM_UPDATE = "system_update"
    CUSTOM = "custom"


class Channel(str, Enum):
    """Delivery channels a notification can be routed through."""

    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"


TOKEN_CHANNELS = (Channel.PUSH, Channel.EMAIL, Channel.SMS)


class Frequency(str, Enum):
    """Throttling policy applied between two notifications of the same type."""

    IMMEDIATE = "immediate"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"


class Priority(str, Enum):
    """Notification priority; ``rank`` orders the pending queue."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}


class NotificationStatus(str, Enum):
    """Lifecycle states of a notification."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"
    CANCELLED = "cancelled"


__all__ = [
    "NotificationType",
    "Channel",
    "TOKEN_CHANNELS",
    "Frequency",
    "Priority",
    "NotificationStatus",
]
