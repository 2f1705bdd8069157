"""Entry points tying ingestion, resolution, persistence and delivery together."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from quest_notify.domain.entities import (
    Caller,
    Notification,
    NotificationRequest,
    NotificationStatus,
    NotificationType,
)
from quest_notify.domain.errors import CallerError, InvalidTransitionError
from quest_notify.domain.events import ActivityEvent
from quest_notify.domain.repositories import NotificationRepository
from quest_notify.utils import now_in_app_timezone

from .dispatcher import DeliveryDispatcher, DispatchReport
from .factory import NotificationFactory
from .ingest import EventIngestor
from .preferences import PreferenceStore
from .scheduler import get_pending
from .stats import NotificationStats, compute_stats

logger = logging.getLogger(__name__)

CUSTOM_TARGET_TYPES = ("child", "family", "user")


class NotificationService:
    """Create notifications from requests and events, and deliver the due ones."""

    def __init__(
        self,
        *,
        preferences: PreferenceStore,
        notifications: NotificationRepository,
        dispatcher: DeliveryDispatcher | None = None,
        ingestor: EventIngestor | None = None,
        factory: NotificationFactory | None = None,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self.preferences = preferences
        self.notifications = notifications
        self.dispatcher = dispatcher
        self._ingestor = ingestor or EventIngestor()
        self._factory = factory or NotificationFactory()
        self._clock = clock

    def submit(self, request: NotificationRequest, now: datetime | None = None) -> list[Notification]:
        """Resolve ``request`` against the recipients' preferences and store the results.

        A request naming ``user_id`` uses that member's preference. A family
        request with a ``recipient_role`` uses the family-wide preference and
        stays a single family notification; without a role it fans out to every
        member holding a preference for the type.
        """

        now = now or self._clock()
        if request.user_id:
            preference = self.preferences.get(request.user_id, request.type)
            created = [self._factory.create(request, preference, now)]
        elif request.recipient_role:
            preference = self.preferences.get(request.family_id, request.type)
            created = [self._factory.create(request, preference, now)]
        else:
            preferences = self.preferences.list_for_family(request.family_id, request.type)
            created = self._factory.create_family_notifications(request, preferences, now)

        stored = [self.notifications.create(item) for item in created if item is not None]
        if not stored:
            logger.info(
                "Request %s for %s produced no notification",
                request.type.value,
                request.user_id or request.family_id,
            )
        return stored

    def ingest_event(
        self, event: ActivityEvent | dict[str, Any], now: datetime | None = None
    ) -> list[Notification]:
        now = now or self._clock()
        created: list[Notification] = []
        for request in self._ingestor.ingest(event):
            created.extend(self.submit(request, now))
        return created

    async def deliver_due(
        self, notifications: Iterable[Notification], now: datetime | None = None
    ) -> DispatchReport:
        """Dispatch the notifications of ``notifications`` that are already due."""

        if self.dispatcher is None:
            return DispatchReport()
        due = get_pending(notifications, now or self._clock())
        return await self.dispatcher.dispatch_many(due)

    async def dispatch_pending(self, now: datetime | None = None) -> DispatchReport:
        if self.dispatcher is None:
            return DispatchReport()
        return await self.dispatcher.dispatch_pending(now)

    def list_for_user(self, user_id: str, *, limit: int | None = 50) -> Sequence[Notification]:
        return self.notifications.list_for_user(user_id, limit=limit)

    def mark_read(
        self, notification_id: str, caller: Caller, now: datetime | None = None
    ) -> Notification:
        """Mark a delivered notification as read by its recipient."""

        notification = self._get_for_caller(notification_id, caller)
        notification.mark_read(now or self._clock())
        return self.notifications.update(notification)

    def cancel(self, notification_id: str, caller: Caller, now: datetime | None = None) -> Notification:
        """Cancel a pending notification; once dispatch has claimed it this fails."""

        current = self._get_for_caller(notification_id, caller)
        now = now or self._clock()
        cancelled = self.notifications.cancel_pending(notification_id, now)
        if cancelled is None:
            latest = self.notifications.get(notification_id) or current
            status = latest.status.value
            if latest.is_expired(now):
                status = f"{status} (expired)"
            raise InvalidTransitionError(latest.id, status, NotificationStatus.CANCELLED.value)
        return cancelled

    def stats(
        self,
        *,
        family_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> NotificationStats:
        notifications = self.notifications.list_created_between(start, end, family_id=family_id)
        return compute_stats(notifications)

    def _get_for_caller(self, notification_id: str, caller: Caller) -> Notification:
        notification = self.notifications.get(notification_id)
        if notification is None:
            raise ValueError("Notification not found")
        if notification.user_id:
            allowed = notification.user_id == caller.uid
        else:
            allowed = bool(caller.family_id) and notification.family_id == caller.family_id
        if not allowed:
            raise CallerError("Notification does not belong to the caller")
        return notification


def send_custom_notification(
    service: NotificationService,
    caller: Caller | None,
    payload: Mapping[str, Any],
) -> dict[str, Any]:
    """Create a manual notification for a child, a user or a whole family.

    Raises :class:`CallerError` for an unauthenticated caller or an unknown
    ``target_type``; malformed content raises :class:`ValidationError`.
    """

    if caller is None or not caller.uid:
        raise CallerError("Authentication required", unauthenticated=True)

    target_type = payload.get("target_type")
    target_id = payload.get("target_id")
    if target_type not in CUSTOM_TARGET_TYPES:
        raise CallerError('Invalid target type. Must be "child", "family", or "user"')

    notification_type = payload.get("notification_type") or NotificationType.CUSTOM.value
    data = {
        **(payload.get("custom_data") or {}),
        "type": notification_type,
        "sent_by": caller.uid,
    }

    if target_type == "family":
        request = NotificationRequest(
            type=notification_type,
            title=payload.get("title") or "",
            message=payload.get("body") or "",
            family_id=target_id,
            data=data,
        )
    else:
        request = NotificationRequest(
            type=notification_type,
            title=payload.get("title") or "",
            message=payload.get("body") or "",
            user_id=target_id,
            family_id=caller.family_id,
            data=data,
        )

    created = service.submit(request)
    logger.info(
        "Custom %s notification from %s to %s %s created %s records",
        notification_type,
        caller.uid,
        target_type,
        target_id,
        len(created),
    )
    return {
        "success": True,
        "message": "Notification sent successfully",
        "notification_ids": [notification.id for notification in created],
    }


__all__ = ["NotificationService", "send_custom_notification", "CUSTOM_TARGET_TYPES"]
