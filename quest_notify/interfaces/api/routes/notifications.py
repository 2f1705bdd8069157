"""Endpoints and websocket handler for notifications."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import ValidationError as PydanticValidationError

from quest_notify.application.use_cases.notifications import (
    NotificationService,
    send_custom_notification,
)
from quest_notify.domain.entities import Caller, NotificationStatus
from quest_notify.domain.errors import CallerError, InvalidTransitionError
from quest_notify.infrastructure.database import SessionLocal
from quest_notify.infrastructure.notifications import notification_manager, serialize_notification
from quest_notify.infrastructure.security import caller_from_token
from quest_notify.interfaces.api.dependencies import (
    build_notification_service,
    get_current_caller,
    get_notification_service,
    get_optional_caller,
    require_parent,
)
from quest_notify.interfaces.api.routes_helpers import (
    deliver_created,
    notification_to_schema,
    raise_http_error,
)
from quest_notify.interfaces.api.schemas import (
    CustomNotificationRequest,
    CustomNotificationResponse,
    NotificationAck,
    NotificationRead,
    NotificationStatsRead,
)
from quest_notify.utils import ensure_app_timezone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

_UNREAD_STATUSES = frozenset({NotificationStatus.SENT, NotificationStatus.DELIVERED})


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service),
) -> list[NotificationRead]:
    """Return the most recent notifications addressed to the caller."""

    notifications = service.list_for_user(caller.uid, limit=limit)
    return [notification_to_schema(notification) for notification in notifications]


@router.get("/stats", response_model=NotificationStatsRead)
def read_stats(
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    caller: Caller = Depends(require_parent),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationStatsRead:
    """Return delivery statistics of the caller's family."""

    if start is not None and end is not None and start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="start must not be after end"
        )
    stats = service.stats(
        family_id=caller.family_id,
        start=ensure_app_timezone(start),
        end=ensure_app_timezone(end),
    )
    return NotificationStatsRead(
        total=stats.total,
        by_status=stats.by_status,
        by_type=stats.by_type,
        by_priority=stats.by_priority,
        by_channel=stats.by_channel,
        delivery_rate=stats.delivery_rate,
        read_rate=stats.read_rate,
        average_delivery_time=stats.average_delivery_time,
    )


@router.post(
    "/custom",
    response_model=CustomNotificationResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_custom(
    payload: CustomNotificationRequest,
    caller: Caller | None = Depends(get_optional_caller),
    service: NotificationService = Depends(get_notification_service),
) -> CustomNotificationResponse:
    """Send a manual notification to a child, a user or a whole family."""

    try:
        result = send_custom_notification(service, caller, payload.model_dump())
    except (CallerError, ValueError) as exc:
        raise_http_error(exc)

    created = [service.notifications.get(item) for item in result["notification_ids"]]
    deliver_created(service, [item for item in created if item is not None])
    return CustomNotificationResponse(**result)


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: str,
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    try:
        notification = service.mark_read(notification_id, caller)
    except (CallerError, ValueError) as exc:
        raise_http_error(exc, caller_status=status.HTTP_403_FORBIDDEN)
    return notification_to_schema(notification)


@router.post("/{notification_id}/cancel", response_model=NotificationRead)
def cancel_notification(
    notification_id: str,
    caller: Caller = Depends(get_current_caller),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    """Cancel a notification that has not been picked up for delivery yet."""

    try:
        notification = service.cancel(notification_id, caller)
    except (CallerError, ValueError) as exc:
        raise_http_error(exc, caller_status=status.HTTP_403_FORBIDDEN)
    return notification_to_schema(notification)


def _acknowledge(caller: Caller, ids: list[str]) -> int:
    session = SessionLocal()
    acknowledged = 0
    try:
        service = build_notification_service(session)
        for notification_id in dict.fromkeys(ids):
            try:
                service.mark_read(notification_id, caller)
            except (CallerError, InvalidTransitionError, ValueError) as exc:
                logger.debug("Ignoring ack of notification %s: %s", notification_id, exc)
                continue
            acknowledged += 1
    finally:
        session.close()
    return acknowledged


def _unread_for(caller: Caller) -> list[dict]:
    session = SessionLocal()
    try:
        notifications = build_notification_service(session).list_for_user(caller.uid)
    finally:
        session.close()
    return [
        serialize_notification(notification)
        for notification in notifications
        if notification.status in _UNREAD_STATUSES
    ]


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated caller."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    try:
        caller = caller_from_token(token)
        pending_notifications = _unread_for(caller)
    except ValueError:
        await websocket.close(code=1008)
        return

    await notification_manager.connect(
        caller.uid, websocket, family_id=caller.family_id, role=caller.role
    )
    try:
        if pending_notifications:
            await websocket.send_json({"type": "init", "data": pending_notifications})
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict):
                continue

            if message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message.get("type") == "ack":
                try:
                    ack = NotificationAck.model_validate(message)
                except PydanticValidationError:
                    continue
                acknowledged = _acknowledge(caller, ack.ids)
                await websocket.send_json({"type": "ack", "data": {"read": acknowledged}})
    except WebSocketDisconnect:
        notification_manager.disconnect(caller.uid, websocket)
    except Exception:
        notification_manager.disconnect(caller.uid, websocket)
        raise
