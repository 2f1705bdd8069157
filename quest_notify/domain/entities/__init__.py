"""Domain entities exposed by the application."""

from .caller import Caller
from .device_token import (
    PARENT_ROLES,
    ROLE_ADMIN,
    ROLE_CHILD,
    ROLE_PARENT,
    DeviceToken,
    recipient_roles,
)
from .notification import Notification, can_transition
from .notification_request import NotificationRequest
from .notification_types import (
    TOKEN_CHANNELS,
    Channel,
    Frequency,
    NotificationStatus,
    NotificationType,
    Priority,
)
from .preference import (
    DEFAULT_QUIET_HOURS_END,
    DEFAULT_QUIET_HOURS_START,
    NotificationPreference,
)
from .reminder_log import ReminderLogEntry, reminder_key

__all__ = [
    "Caller",
    "DeviceToken",
    "PARENT_ROLES",
    "ROLE_ADMIN",
    "ROLE_CHILD",
    "ROLE_PARENT",
    "recipient_roles",
    "Notification",
    "can_transition",
    "NotificationRequest",
    "TOKEN_CHANNELS",
    "Channel",
    "Frequency",
    "NotificationStatus",
    "NotificationType",
    "Priority",
    "DEFAULT_QUIET_HOURS_END",
    "DEFAULT_QUIET_HOURS_START",
    "NotificationPreference",
    "ReminderLogEntry",
    "reminder_key",
]
