"""Repository implementations backed by SQLAlchemy sessions."""

from .device_token_repository import DeviceTokenRepository
from .notification_repository import NotificationRepository
from .preference_repository import PreferenceRepository
from .reminder_log_repository import ReminderLogRepository

__all__ = [
    "DeviceTokenRepository",
    "NotificationRepository",
    "PreferenceRepository",
    "ReminderLogRepository",
]
