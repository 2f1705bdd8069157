"""ORM models used by the application infrastructure."""

from .device_token import DeviceTokenModel
from .notification import NotificationModel
from .preference import NotificationPreferenceModel
from .reminder_log import ReminderLogModel

__all__ = [
    "DeviceTokenModel",
    "NotificationModel",
    "NotificationPreferenceModel",
    "ReminderLogModel",
]
