"""Utility helpers to push notifications to websocket subscribers."""

from __future__ import annotations

import asyncio
from typing import Any

from anyio import from_thread

from quest_notify.domain.entities import Notification, recipient_roles

from .manager import NotificationConnectionManager, notification_manager


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


class NotificationPublisher:
    """Serialize notifications and deliver them to connected recipients."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    async def publish(self, notification: Notification) -> int:
        """Deliver ``notification`` to its connected recipients.

        Returns the number of websocket connections reached.
        """

        message = {"type": "notification", "data": serialize_notification(notification)}
        delivered = 0
        for user_id in self._recipients(notification):
            delivered += await self._manager.send_to_user(user_id, dict(message))
        return delivered

    def dispatch(self, user_id: str, *, event_type: str, payload: dict[str, Any]) -> None:
        """Schedule a realtime ``event_type`` message for ``user_id`` from sync code."""

        message = {"type": event_type, "data": payload}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            from_thread.start_soon(self._manager.send_to_user, user_id, message)
        else:
            loop.create_task(self._manager.send_to_user(user_id, message))

    def _recipients(self, notification: Notification) -> list[str]:
        if notification.user_id:
            return [notification.user_id]
        if not notification.family_id:
            return []
        return self._manager.family_members(
            notification.family_id, roles=recipient_roles(notification.recipient_role)
        )


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "type": notification.type.value,
        "user_id": notification.user_id,
        "family_id": notification.family_id,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data or {},
        "priority": notification.priority.value,
        "status": notification.status.value,
        "actionable": notification.actionable,
        "action_url": notification.action_url,
        "created_at": _iso(notification.created_at),
        "read_at": _iso(notification.read_at),
    }


notification_publisher = NotificationPublisher(notification_manager)


__all__ = ["NotificationPublisher", "notification_publisher", "serialize_notification"]
