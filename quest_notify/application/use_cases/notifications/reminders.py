"""Scheduled passes: quest deadline reminders, family digests and morning messages.

All passes are safe to run concurrently or repeatedly. Each reminder claims its
idempotency key in the reminder log before anything is sent, so a duplicate
pass finds the key and skips it; a failed send releases the key again.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal

from quest_notify.domain.entities import (
    NotificationRequest,
    NotificationType,
    ReminderLogEntry,
    reminder_key,
)
from quest_notify.domain.events import SummaryDueEvent
from quest_notify.domain.repositories import ReminderLogRepository
from quest_notify.utils import ensure_app_timezone

from .resolver import should_send_scheduled
from .service import NotificationService

logger = logging.getLogger(__name__)

QUEST_STATUS_AVAILABLE = "available"
REMINDER_URGENT = "urgent"
REMINDER_DAILY = "daily"

_DIGEST_TYPES = {
    "daily": NotificationType.DAILY_SUMMARY,
    "weekly": NotificationType.WEEKLY_REPORT,
}

MOTIVATION_TITLE = "Good Morning! 🌟"
MOTIVATION_MESSAGES = (
    "Ready for another awesome day, {name}? Your quests await! 🌟",
    "Good morning, {name}! What amazing things will you accomplish today? 🚀",
    "Rise and shine, {name}! Time to level up with some fun quests! ⭐",
    "Hello {name}! Your XP is waiting to grow - let's get started! 💪",
    "Morning, {name}! Today is perfect for completing some quests! 🎯",
)


@dataclass(frozen=True)
class UpcomingQuest:
    quest_id: str
    title: str
    due_date: datetime
    assigned_to: tuple[str, ...] = ()
    family_id: str | None = None
    status: str = QUEST_STATUS_AVAILABLE


@dataclass(frozen=True)
class FamilySummary:
    """Activity totals of one family for the digest period."""

    family_id: str
    quests_completed: int
    xp_earned: int
    period: Literal["daily", "weekly"] = "daily"


@dataclass(frozen=True)
class ChildActivity:
    """Recent activity of one child, used to personalise the morning message."""

    child_id: str
    name: str
    family_id: str | None = None
    completions_yesterday: int = 0
    streak_length: int = 0
    active: bool = True


@dataclass
class PassReport:
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    notification_ids: list[str] = field(default_factory=list)


def _reminder_content(quest: UpcomingQuest, reminder_type: str, now: datetime) -> tuple[str, str]:
    if reminder_type == REMINDER_URGENT:
        seconds = (ensure_app_timezone(quest.due_date) - now).total_seconds()
        hours = max(1, math.ceil(seconds / 3600))
        suffix = "" if hours == 1 else "s"
        return "Quest Due Soon! ⏰", f'"{quest.title}" is due in {hours} hour{suffix}!'
    return (
        "Quest Reminder 📝",
        f'Don\'t forget about your quest: "{quest.title}" - due tomorrow!',
    )


def run_quest_reminders(
    service: NotificationService,
    reminder_log: ReminderLogRepository,
    quests: Iterable[UpcomingQuest],
    now: datetime,
    *,
    urgent_hours: int = 2,
    window_hours: int = 24,
) -> PassReport:
    """Remind assignees of available quests due within ``window_hours``.

    Quests due within ``urgent_hours`` get an urgent reminder, the others a
    daily one. At most one reminder of each kind is sent per quest and day.
    """

    now = ensure_app_timezone(now)
    urgent_limit = now + timedelta(hours=urgent_hours)
    window_limit = now + timedelta(hours=window_hours)
    report = PassReport()

    for quest in quests:
        due_date = ensure_app_timezone(quest.due_date)
        if quest.status != QUEST_STATUS_AVAILABLE or not now <= due_date <= window_limit:
            continue
        if not quest.assigned_to:
            report.skipped += 1
            continue

        reminder_type = REMINDER_URGENT if due_date <= urgent_limit else REMINDER_DAILY
        key = reminder_key(quest.quest_id, reminder_type, now.date())
        entry = ReminderLogEntry(
            key=key,
            subject_id=quest.quest_id,
            kind=NotificationType.QUEST_REMINDER.value,
            sub_type=reminder_type,
            assigned_to=list(quest.assigned_to),
            sent_at=now,
        )
        if not reminder_log.claim(entry):
            logger.debug("Reminder %s already handled; skipping", key)
            report.skipped += 1
            continue

        title, message = _reminder_content(quest, reminder_type, now)
        try:
            for child_id in quest.assigned_to:
                created = service.submit(
                    NotificationRequest(
                        type=NotificationType.QUEST_REMINDER,
                        user_id=child_id,
                        family_id=quest.family_id,
                        title=title,
                        message=message,
                        data={
                            "quest_id": quest.quest_id,
                            "child_id": child_id,
                            "reminder_type": reminder_type,
                        },
                        actionable=True,
                        action_url=f"/quests/{quest.quest_id}",
                    ),
                    now,
                )
                report.notification_ids.extend(item.id for item in created)
        except Exception:
            logger.exception("Error sending reminder for quest %s", quest.quest_id)
            reminder_log.release(key)
            report.failed += 1
            continue
        report.sent += 1

    logger.info("Quest reminder pass completed. Sent %s reminders.", report.sent)
    return report


def run_digests(
    service: NotificationService,
    reminder_log: ReminderLogRepository,
    summaries: Iterable[FamilySummary],
    now: datetime,
) -> PassReport:
    """Send the daily summary or weekly report of each family that had activity.

    The family-wide preference decides the hour and day; a family without that
    preference receives nothing.
    """

    now = ensure_app_timezone(now)
    report = PassReport()

    for summary in summaries:
        notification_type = _DIGEST_TYPES[summary.period]
        preference = service.preferences.get(summary.family_id, notification_type)
        if summary.quests_completed == 0 or preference is None:
            report.skipped += 1
            continue
        if not should_send_scheduled(preference, now):
            report.skipped += 1
            continue

        key = reminder_key(summary.family_id, notification_type.value, now.date())
        entry = ReminderLogEntry(
            key=key,
            subject_id=summary.family_id,
            kind=notification_type.value,
            sub_type=summary.period,
            sent_at=now,
        )
        if not reminder_log.claim(entry):
            report.skipped += 1
            continue

        event = SummaryDueEvent(
            family_id=summary.family_id,
            period=summary.period,
            quests_completed=summary.quests_completed,
            xp_earned=summary.xp_earned,
        )
        try:
            created = service.ingest_event(event, now)
        except Exception:
            logger.exception("Error sending %s digest to family %s", summary.period, summary.family_id)
            reminder_log.release(key)
            report.failed += 1
            continue
        report.notification_ids.extend(item.id for item in created)
        report.sent += 1

    logger.info("Digest pass completed. Sent %s summaries.", report.sent)
    return report


def motivation_message(
    child: ChildActivity, choose: Callable[[Sequence[str]], str] = random.choice
) -> str:
    """Return the morning message for ``child``.

    Yesterday's completions win over an active streak; without either a
    generic message is picked with ``choose``.
    """

    if child.completions_yesterday > 0:
        return f"Great job yesterday, {child.name}! Ready to keep the momentum going today? 🔥"
    if child.streak_length > 0:
        return (
            f"Keep your {child.streak_length}-day streak alive, {child.name}! "
            "You're doing amazing! 🔥"
        )
    return choose(MOTIVATION_MESSAGES).format(name=child.name)


def run_daily_motivation(
    service: NotificationService,
    reminder_log: ReminderLogRepository,
    children: Iterable[ChildActivity],
    now: datetime,
    *,
    choose: Callable[[Sequence[str]], str] = random.choice,
) -> PassReport:
    """Send the morning message to every active child, at most once per day.

    The child's own preference decides the hour; a child without that
    preference receives nothing.
    """

    now = ensure_app_timezone(now)
    report = PassReport()

    for child in children:
        if not child.active:
            continue
        preference = service.preferences.get(child.child_id, NotificationType.DAILY_MOTIVATION)
        if preference is None or not should_send_scheduled(preference, now):
            report.skipped += 1
            continue

        key = reminder_key(child.child_id, NotificationType.DAILY_MOTIVATION.value, now.date())
        entry = ReminderLogEntry(
            key=key,
            subject_id=child.child_id,
            kind=NotificationType.DAILY_MOTIVATION.value,
            sub_type="morning",
            assigned_to=[child.child_id],
            sent_at=now,
        )
        if not reminder_log.claim(entry):
            report.skipped += 1
            continue

        request = NotificationRequest(
            type=NotificationType.DAILY_MOTIVATION,
            user_id=child.child_id,
            family_id=child.family_id,
            title=MOTIVATION_TITLE,
            message=motivation_message(child, choose),
            data={"child_id": child.child_id, "type": NotificationType.DAILY_MOTIVATION.value},
        )
        try:
            created = service.submit(request, now)
        except Exception:
            logger.exception("Error sending motivation to child %s", child.child_id)
            reminder_log.release(key)
            report.failed += 1
            continue
        report.notification_ids.extend(item.id for item in created)
        report.sent += 1

    logger.info("Daily motivation pass completed. Sent %s messages.", report.sent)
    return report


__all__ = [
    "UpcomingQuest",
    "FamilySummary",
    "ChildActivity",
    "PassReport",
    "MOTIVATION_MESSAGES",
    "motivation_message",
    "run_quest_reminders",
    "run_digests",
    "run_daily_motivation",
    "REMINDER_URGENT",
    "REMINDER_DAILY",
]
