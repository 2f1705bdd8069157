"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Subscriber:
    family_id: str | None
    role: str | None


class NotificationConnectionManager:
    """Manage active websocket connections grouped by user and family."""

    def __init__(self) -> None:
        self._connections: DefaultDict[str, Set[WebSocket]] = defaultdict(set)
        self._subscribers: dict[str, _Subscriber] = {}

    async def connect(
        self,
        user_id: str,
        websocket: WebSocket,
        *,
        family_id: str | None = None,
        role: str | None = None,
    ) -> None:
        """Accept the websocket connection and register it for ``user_id``."""

        await websocket.accept()
        self._connections[user_id].add(websocket)
        self._subscribers[user_id] = _Subscriber(family_id=family_id, role=role)

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Remove ``websocket`` from the pool for ``user_id``."""

        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(user_id, None)
            self._subscribers.pop(user_id, None)

    def family_members(
        self, family_id: str, *, roles: Iterable[str] | None = None
    ) -> list[str]:
        """Return connected users of ``family_id``, optionally restricted to ``roles``."""

        allowed = set(roles) if roles is not None else None
        return [
            user_id
            for user_id, subscriber in self._subscribers.items()
            if subscriber.family_id == family_id
            and (allowed is None or subscriber.role in allowed)
        ]

    async def send_to_user(self, user_id: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every active connection for ``user_id``.

        Returns how many connections received it.
        """

        delivered = 0
        for connection in list(self._connections.get(user_id, set())):
            try:
                await connection.send_json(message)
            except Exception:  # pragma: no cover - closed sockets are dropped
                logger.debug("Dropping closed websocket for user %s", user_id)
                self.disconnect(user_id, connection)
            else:
                delivered += 1
        return delivered


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
