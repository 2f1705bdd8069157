"""Run one scheduled notification pass; meant to be invoked from cron."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import anyio
from sqlalchemy.exc import SQLAlchemyError

from quest_notify.application.use_cases.notifications import (
    ChildActivity,
    FamilySummary,
    UpcomingQuest,
    run_daily_motivation,
    run_digests,
    run_quest_reminders,
)
from quest_notify.config import get_settings
from quest_notify.infrastructure.database import SessionLocal, initialize_database
from quest_notify.infrastructure.repositories import ReminderLogRepository
from quest_notify.interfaces.api.dependencies import build_notification_service
from quest_notify.interfaces.api.schemas import (
    DailyMotivationRequest,
    DigestRequest,
    QuestReminderRequest,
)
from quest_notify.utils import ensure_app_timezone, now_in_app_timezone


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the scheduled pass."""

    parser = argparse.ArgumentParser(
        description="Run a scheduled pass of the Quest Notify engine.",
    )
    parser.add_argument(
        "task",
        choices=("dispatch", "quest-reminders", "digests", "daily-motivation"),
        help="Pass to run",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="JSON file with the quests, family summaries or child activity of the pass",
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args()


def _deliver(service, notification_ids: list[str]) -> None:
    created = [service.notifications.get(item) for item in notification_ids]
    anyio.run(service.deliver_due, [item for item in created if item is not None])


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.task != "dispatch" and args.input is None:
        raise SystemExit(f"--input is required for the {args.task} pass.")

    initialize_database()
    settings = get_settings()
    session = SessionLocal()
    try:
        service = build_notification_service(session)
        if args.task == "dispatch":
            report = anyio.run(service.dispatch_pending)
            print(
                f"Delivered {report.delivered}, failed {report.failed}, "
                f"skipped {report.skipped}, errors {report.errors}"
            )
            return

        raw = args.input.read_text(encoding="utf-8")
        if args.task == "quest-reminders":
            request = QuestReminderRequest.model_validate_json(raw)
            quests = [
                UpcomingQuest(
                    quest_id=quest.quest_id,
                    title=quest.title,
                    due_date=ensure_app_timezone(quest.due_date),
                    assigned_to=tuple(quest.assigned_to),
                    family_id=quest.family_id,
                    status=quest.status,
                )
                for quest in request.quests
            ]
            pass_report = run_quest_reminders(
                service,
                ReminderLogRepository(session),
                quests,
                ensure_app_timezone(request.now) or now_in_app_timezone(),
                urgent_hours=settings.urgent_reminder_hours,
                window_hours=settings.reminder_window_hours,
            )
        elif args.task == "daily-motivation":
            request = DailyMotivationRequest.model_validate_json(raw)
            children = [
                ChildActivity(
                    child_id=child.child_id,
                    name=child.name,
                    family_id=child.family_id,
                    completions_yesterday=child.completions_yesterday,
                    streak_length=child.streak_length,
                    active=child.active,
                )
                for child in request.children
            ]
            pass_report = run_daily_motivation(
                service,
                ReminderLogRepository(session),
                children,
                ensure_app_timezone(request.now) or now_in_app_timezone(),
            )
        else:
            request = DigestRequest.model_validate_json(raw)
            summaries = [
                FamilySummary(
                    family_id=summary.family_id,
                    quests_completed=summary.quests_completed,
                    xp_earned=summary.xp_earned,
                    period=summary.period,
                )
                for summary in request.summaries
            ]
            pass_report = run_digests(
                service,
                ReminderLogRepository(session),
                summaries,
                ensure_app_timezone(request.now) or now_in_app_timezone(),
            )

        _deliver(service, pass_report.notification_ids)
        print(
            f"Sent {pass_report.sent}, skipped {pass_report.skipped}, "
            f"failed {pass_report.failed}"
        )
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Database error during the {args.task} pass: {exc}") from exc
    finally:
        session.close()


if __name__ == "__main__":
    main()
