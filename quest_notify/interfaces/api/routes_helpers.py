"""Helper utilities shared across API route handlers."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from anyio import from_thread
from fastapi import HTTPException, status

from quest_notify.application.use_cases.notifications import DispatchReport, NotificationService
from quest_notify.domain.entities import Notification, NotificationPreference
from quest_notify.domain.errors import (
    CallerError,
    InvalidTransitionError,
    StaleVersionError,
    ValidationError,
)

from .schemas import DispatchSummary, NotificationRead, PreferenceRead

logger = logging.getLogger(__name__)


def notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        type=notification.type.value,
        title=notification.title,
        message=notification.message,
        user_id=notification.user_id,
        family_id=notification.family_id,
        recipient_role=notification.recipient_role,
        data=notification.data or {},
        channels=[channel.value for channel in notification.channels],
        priority=notification.priority.value,
        status=notification.status.value,
        scheduled_for=notification.scheduled_for,
        sent_at=notification.sent_at,
        delivered_at=notification.delivered_at,
        read_at=notification.read_at,
        failed_at=notification.failed_at,
        failure_reason=notification.failure_reason,
        expires_at=notification.expires_at,
        actionable=notification.actionable,
        action_url=notification.action_url,
        created_at=notification.created_at,
    )


def preference_to_schema(preference: NotificationPreference) -> PreferenceRead:
    return PreferenceRead(
        id=preference.id,
        type=preference.type.value,
        user_id=preference.user_id,
        family_id=preference.family_id,
        enabled=preference.enabled,
        channels=[channel.value for channel in preference.channels],
        frequency=preference.frequency.value,
        priority=preference.priority.value,
        quiet_hours=preference.quiet_hours,
        quiet_hours_start=preference.quiet_hours_start,
        quiet_hours_end=preference.quiet_hours_end,
        advance_hours=preference.advance_hours,
        scheduled_hour=preference.scheduled_hour,
        scheduled_day=preference.scheduled_day,
        last_sent=preference.last_sent,
        updated_at=preference.updated_at,
    )


def report_to_summary(report: DispatchReport) -> DispatchSummary:
    return DispatchSummary(
        delivered=report.delivered,
        failed=report.failed,
        skipped=report.skipped,
        errors=report.errors,
    )


def deliver_created(
    service: NotificationService, created: Sequence[Notification]
) -> DispatchReport:
    """Deliver the due notifications among ``created`` from a sync route handler."""

    if not created:
        return DispatchReport()
    return from_thread.run(service.deliver_due, list(created))


def raise_http_error(exc: Exception, *, caller_status: int = status.HTTP_400_BAD_REQUEST) -> None:
    """Translate a domain error raised by a use case into an ``HTTPException``.

    ``caller_status`` is used for authenticated callers rejected by the use case.
    """

    if isinstance(exc, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors
        ) from exc
    if isinstance(exc, CallerError):
        status_code = (
            status.HTTP_401_UNAUTHORIZED if exc.unauthenticated else caller_status
        )
        raise HTTPException(status_code=status_code, detail=str(exc)) from exc
    if isinstance(exc, (InvalidTransitionError, StaleVersionError)):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ValueError):
        detail = str(exc)
        status_code = status.HTTP_400_BAD_REQUEST
        if detail.endswith("not found"):
            status_code = status.HTTP_404_NOT_FOUND
        raise HTTPException(status_code=status_code, detail=detail) from exc
    raise exc
