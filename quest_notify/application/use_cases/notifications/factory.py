"""Materialize notifications from requests and the preferences that govern them."""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any
from uuid import uuid4

from quest_notify.domain.entities import (
    Notification,
    NotificationPreference,
    NotificationRequest,
    NotificationStatus,
    NotificationType,
)
from quest_notify.utils import ensure_app_timezone

from .resolver import resolve

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

_TEMPLATES: dict[NotificationType, dict[str, Any]] = {
    NotificationType.QUEST_REMINDER: {
        "title": "Quest Reminder",
        "message": 'Don\'t forget to complete "{questTitle}" before {deadline}!',
        "actionable": True,
        "action_url": "/quests/{questId}",
    },
    NotificationType.LEVEL_UP: {
        "title": "Level Up!",
        "message": "Congratulations! You've reached level {newLevel} - {levelTitle}!",
        "actionable": True,
        "action_url": "/profile",
    },
    NotificationType.BADGE_EARNED: {
        "title": "New Badge Earned!",
        "message": 'You\'ve earned the "{badgeName}" badge! {badgeDescription}',
        "actionable": True,
        "action_url": "/badges",
    },
    NotificationType.STREAK_WARNING: {
        "title": "Streak at Risk!",
        "message": (
            "Your {streakLength}-day streak will break in {hoursRemaining} hours. "
            "Complete a quest to keep it going!"
        ),
        "actionable": True,
        "action_url": "/quests",
    },
    NotificationType.FAMILY_GOAL: {
        "title": "Family Goal Update",
        "message": "{goalTitle}: {progressMessage}",
        "actionable": True,
        "action_url": "/family-goals/{goalId}",
    },
}


def render_template(template: str, values: Mapping[str, Any]) -> str:
    """Substitute ``{key}`` placeholders; unknown or empty keys are left untouched."""

    def _replace(match: re.Match[str]) -> str:
        value = values.get(match.group(1))
        if value is None or value == "":
            return match.group(0)
        return str(value)

    return _PLACEHOLDER.sub(_replace, template)


def get_template(
    notification_type: NotificationType, values: Mapping[str, Any]
) -> dict[str, Any] | None:
    """Return the rendered title, message and action of a built-in template."""

    template = _TEMPLATES.get(NotificationType(notification_type))
    if template is None:
        return None
    return {
        "title": render_template(template["title"], values),
        "message": render_template(template["message"], values),
        "actionable": template["actionable"],
        "action_url": render_template(template["action_url"], values),
    }


class NotificationFactory:
    """Build pending :class:`Notification` records once the resolver allows them."""

    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._id_factory = id_factory or (lambda: uuid4().hex)

    def create(
        self,
        request: NotificationRequest,
        preference: NotificationPreference | None,
        now: datetime,
        *,
        user_id: str | None = None,
    ) -> Notification | None:
        """Return a new notification, or ``None`` when the preference suppresses it.

        ``user_id`` overrides the request's recipient during family fan-out.
        """

        decision = resolve(preference, request, now)
        if not decision.should_create:
            return None

        recipient = user_id if user_id is not None else request.user_id
        return Notification(
            id=self._id_factory(),
            type=request.type,
            title=request.title,
            message=request.message,
            user_id=recipient,
            family_id=request.family_id,
            recipient_role=None if recipient else request.recipient_role,
            data=copy.deepcopy(request.data),
            channels=list(decision.channels),
            priority=decision.priority,
            status=NotificationStatus.PENDING,
            scheduled_for=decision.scheduled_for,
            expires_at=ensure_app_timezone(request.expires_at),
            actionable=request.actionable,
            action_url=request.action_url,
            action_data=copy.deepcopy(request.data.get("action_data") or {}),
            created_at=ensure_app_timezone(now),
        )

    def create_family_notifications(
        self,
        request: NotificationRequest,
        preferences: Iterable[NotificationPreference],
        now: datetime,
    ) -> list[Notification]:
        """Fan a family request out to every member holding a matching preference."""

        excluded = set(request.exclude_users)
        notifications: list[Notification] = []
        for preference in preferences:
            if preference.type != request.type or preference.family_id != request.family_id:
                continue
            if preference.user_id is None or preference.user_id in excluded:
                continue
            notification = self.create(request, preference, now, user_id=preference.user_id)
            if notification is not None:
                notifications.append(notification)
        return notifications


__all__ = [
    "NotificationFactory",
    "render_template",
    "get_template",
]
