"""Endpoints triggering the scheduled notification passes (called by cron)."""

from __future__ import annotations

from anyio import from_thread
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quest_notify.application.use_cases.notifications import (
    ChildActivity,
    FamilySummary,
    NotificationService,
    PassReport,
    UpcomingQuest,
    run_daily_motivation,
    run_digests,
    run_quest_reminders,
)
from quest_notify.config import get_settings
from quest_notify.domain.entities import Caller
from quest_notify.infrastructure.database import get_db
from quest_notify.infrastructure.repositories import ReminderLogRepository
from quest_notify.interfaces.api.dependencies import get_current_caller, get_notification_service
from quest_notify.interfaces.api.routes_helpers import deliver_created, report_to_summary
from quest_notify.interfaces.api.schemas import (
    DailyMotivationRequest,
    DigestRequest,
    DispatchSummary,
    PassReportRead,
    QuestReminderRequest,
)
from quest_notify.utils import ensure_app_timezone, now_in_app_timezone

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _deliver_report(service: NotificationService, report: PassReport) -> None:
    created = [service.notifications.get(item) for item in report.notification_ids]
    deliver_created(service, [item for item in created if item is not None])


def _to_read(report: PassReport) -> PassReportRead:
    return PassReportRead(
        sent=report.sent,
        skipped=report.skipped,
        failed=report.failed,
        notification_ids=report.notification_ids,
    )


@router.post("/dispatch", response_model=DispatchSummary)
def dispatch_pending(
    _: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service),
) -> DispatchSummary:
    """Deliver every stored notification that is due now."""

    report = from_thread.run(service.dispatch_pending)
    return report_to_summary(report)


@router.post("/quest-reminders", response_model=PassReportRead)
def send_quest_reminders(
    payload: QuestReminderRequest,
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> PassReportRead:
    settings = get_settings()
    quests = [
        UpcomingQuest(
            quest_id=quest.quest_id,
            title=quest.title,
            due_date=ensure_app_timezone(quest.due_date),
            assigned_to=tuple(quest.assigned_to),
            family_id=quest.family_id,
            status=quest.status,
        )
        for quest in payload.quests
    ]
    report = run_quest_reminders(
        service,
        ReminderLogRepository(db),
        quests,
        ensure_app_timezone(payload.now) or now_in_app_timezone(),
        urgent_hours=settings.urgent_reminder_hours,
        window_hours=settings.reminder_window_hours,
    )
    _deliver_report(service, report)
    return _to_read(report)


@router.post("/digests", response_model=PassReportRead)
def send_digests(
    payload: DigestRequest,
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> PassReportRead:
    summaries = [
        FamilySummary(
            family_id=summary.family_id,
            quests_completed=summary.quests_completed,
            xp_earned=summary.xp_earned,
            period=summary.period,
        )
        for summary in payload.summaries
    ]
    report = run_digests(
        service,
        ReminderLogRepository(db),
        summaries,
        ensure_app_timezone(payload.now) or now_in_app_timezone(),
    )
    _deliver_report(service, report)
    return _to_read(report)


@router.post("/daily-motivation", response_model=PassReportRead)
def send_daily_motivation(
    payload: DailyMotivationRequest,
    _: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> PassReportRead:
    children = [
        ChildActivity(
            child_id=child.child_id,
            name=child.name,
            family_id=child.family_id,
            completions_yesterday=child.completions_yesterday,
            streak_length=child.streak_length,
            active=child.active,
        )
        for child in payload.children
    ]
    report = run_daily_motivation(
        service,
        ReminderLogRepository(db),
        children,
        ensure_app_timezone(payload.now) or now_in_app_timezone(),
    )
    _deliver_report(service, report)
    return _to_read(report)
