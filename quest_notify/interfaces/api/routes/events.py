"""Endpoints receiving activity events from the quest, streak and goal producers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from quest_notify.application.use_cases.notifications import NotificationService
from quest_notify.domain.errors import ValidationError
from quest_notify.domain.events import NotificationEvent, parse_activity_event
from quest_notify.interfaces.api.dependencies import get_notification_service
from quest_notify.interfaces.api.routes_helpers import (
    deliver_created,
    raise_http_error,
    report_to_summary,
)
from quest_notify.interfaces.api.schemas import EventIngestResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventIngestResponse, status_code=status.HTTP_202_ACCEPTED)
def ingest_activity_event(
    payload: dict[str, Any] = Body(...),
    service: NotificationService = Depends(get_notification_service),
) -> EventIngestResponse:
    """Turn an activity event into notifications and deliver the ones already due."""

    try:
        event = parse_activity_event(payload)
        created = service.ingest_event(event)
    except (ValidationError, ValueError) as exc:
        raise_http_error(exc)

    report = deliver_created(service, created)
    logger.info("Event %s produced %s notifications", event.kind, len(created))
    return EventIngestResponse(
        notification_ids=[notification.id for notification in created],
        dispatch=report_to_summary(report),
    )


@router.post(
    "/notification", response_model=EventIngestResponse, status_code=status.HTTP_202_ACCEPTED
)
def ingest_notification_request(
    payload: NotificationEvent,
    service: NotificationService = Depends(get_notification_service),
) -> EventIngestResponse:
    """Accept a pre-built notification request."""

    try:
        created = service.ingest_event(payload)
    except (ValidationError, ValueError) as exc:
        raise_http_error(exc)

    report = deliver_created(service, created)
    return EventIngestResponse(
        notification_ids=[notification.id for notification in created],
        dispatch=report_to_summary(report),
    )
