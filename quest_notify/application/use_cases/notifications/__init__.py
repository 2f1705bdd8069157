"""Notification engine: preferences, resolution, scheduling and delivery."""

from .defaults import PreferenceDefaults, default_preference_table
from .dispatcher import (
    DeliveryDispatcher,
    DeliveryOutcome,
    DeliveryResult,
    DispatchReport,
    classify_failure,
)
from .factory import NotificationFactory, get_template, render_template
from .ingest import EventIngestor
from .preferences import PreferenceStore
from .reminders import (
    MOTIVATION_MESSAGES,
    ChildActivity,
    FamilySummary,
    PassReport,
    UpcomingQuest,
    motivation_message,
    run_daily_motivation,
    run_digests,
    run_quest_reminders,
)
from .resolver import (
    DispatchDecision,
    DispatchOutcome,
    is_in_quiet_hours,
    resolve,
    should_dispatch,
    should_send_scheduled,
)
from .scheduler import get_pending
from .service import NotificationService, send_custom_notification
from .stats import NotificationStats, compute_stats
from .validators import validate_preference_data

__all__ = [
    "PreferenceDefaults",
    "default_preference_table",
    "DeliveryDispatcher",
    "DeliveryOutcome",
    "DeliveryResult",
    "DispatchReport",
    "classify_failure",
    "NotificationFactory",
    "get_template",
    "render_template",
    "EventIngestor",
    "PreferenceStore",
    "MOTIVATION_MESSAGES",
    "ChildActivity",
    "FamilySummary",
    "PassReport",
    "UpcomingQuest",
    "motivation_message",
    "run_daily_motivation",
    "run_digests",
    "run_quest_reminders",
    "DispatchDecision",
    "DispatchOutcome",
    "is_in_quiet_hours",
    "resolve",
    "should_dispatch",
    "should_send_scheduled",
    "get_pending",
    "NotificationService",
    "send_custom_notification",
    "NotificationStats",
    "compute_stats",
    "validate_preference_data",
]
