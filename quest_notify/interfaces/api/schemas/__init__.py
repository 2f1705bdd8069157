from .device_token import DeviceTokenRead, DeviceTokenRegister
from .notification import (
    CustomNotificationRequest,
    CustomNotificationResponse,
    DispatchSummary,
    EventIngestResponse,
    NotificationAck,
    NotificationRead,
    NotificationStatsRead,
)
from .preference import PreferenceRead, PreferenceUpdate
from .task import (
    ChildActivityPayload,
    DailyMotivationRequest,
    DigestRequest,
    FamilySummaryPayload,
    PassReportRead,
    QuestReminderRequest,
    UpcomingQuestPayload,
)

__all__ = [
    "DeviceTokenRead",
    "DeviceTokenRegister",
    "CustomNotificationRequest",
    "CustomNotificationResponse",
    "DispatchSummary",
    "EventIngestResponse",
    "NotificationAck",
    "NotificationRead",
    "NotificationStatsRead",
    "PreferenceRead",
    "PreferenceUpdate",
    "ChildActivityPayload",
    "DailyMotivationRequest",
    "DigestRequest",
    "FamilySummaryPayload",
    "PassReportRead",
    "QuestReminderRequest",
    "UpcomingQuestPayload",
]
