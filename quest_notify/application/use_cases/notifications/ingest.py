"""Turn typed activity events into notification requests."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from quest_notify.domain.entities import ROLE_PARENT, NotificationRequest, NotificationType
from quest_notify.domain.events import (
    ActivityEvent,
    FamilyGoalUpdatedEvent,
    LevelUpEvent,
    NotificationEvent,
    PenaltyAppliedEvent,
    QuestCompletedEvent,
    StreakUpdatedEvent,
    SummaryDueEvent,
    parse_activity_event,
)

from .milestones import (
    crossed_xp_milestones,
    first_goal_milestone,
    goal_percentage,
    is_first_completion,
    reached_streak_milestone,
    streak_just_broken,
)

logger = logging.getLogger(__name__)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class EventIngestor:
    """Normalize activity events into zero or more :class:`NotificationRequest` values.

    Cumulative metrics (XP, streak length, goal percentage) only yield a request
    when the update crosses a milestone, so replaying an update never repeats a
    celebration.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, Callable[[Any], list[NotificationRequest]]] = {
            QuestCompletedEvent: self._quest_completed,
            LevelUpEvent: self._level_up,
            StreakUpdatedEvent: self._streak_updated,
            PenaltyAppliedEvent: self._penalty_applied,
            FamilyGoalUpdatedEvent: self._family_goal_updated,
            SummaryDueEvent: self._summary_due,
            NotificationEvent: self._passthrough,
        }

    def ingest(self, event: ActivityEvent | dict[str, Any]) -> list[NotificationRequest]:
        if isinstance(event, dict):
            event = parse_activity_event(event)
        handler = self._handlers[type(event)]
        requests = handler(event)
        logger.debug("Event %s produced %s notification requests", event.kind, len(requests))
        return requests

    def _quest_completed(self, event: QuestCompletedEvent) -> list[NotificationRequest]:
        requests = [
            NotificationRequest(
                type=NotificationType.QUEST_COMPLETION,
                user_id=event.child_id,
                family_id=event.family_id,
                title="Quest Completed! 🎉",
                message=(
                    f'Great job completing "{event.quest_title}"! '
                    f"You earned {event.xp_earned} XP."
                ),
                data={
                    "event": "quest_completion",
                    "quest_id": event.quest_id,
                    "child_id": event.child_id,
                    "xp_earned": event.xp_earned,
                },
            )
        ]
        if event.family_id:
            requests.append(
                NotificationRequest(
                    type=NotificationType.QUEST_COMPLETION,
                    family_id=event.family_id,
                    recipient_role=ROLE_PARENT,
                    title="Quest Completed! ✅",
                    message=(
                        f'{event.child_name} completed "{event.quest_title}" '
                        f"and earned {event.xp_earned} XP!"
                    ),
                    data={
                        "event": "child_achievement",
                        "quest_id": event.quest_id,
                        "child_id": event.child_id,
                        "child_name": event.child_name,
                        "quest_title": event.quest_title,
                        "xp_earned": event.xp_earned,
                    },
                )
            )

        if is_first_completion(event.prior_completions):
            requests.append(
                NotificationRequest(
                    type=NotificationType.ACHIEVEMENT,
                    user_id=event.child_id,
                    family_id=event.family_id,
                    title="First Quest Complete! 🌟",
                    message="Congratulations on completing your very first quest!",
                    data={
                        "event": "first_achievement",
                        "achievement_type": "first_quest",
                        "child_id": event.child_id,
                    },
                )
            )

        for milestone in crossed_xp_milestones(event.total_xp, event.xp_earned):
            requests.append(
                NotificationRequest(
                    type=NotificationType.ACHIEVEMENT,
                    user_id=event.child_id,
                    family_id=event.family_id,
                    title="XP Milestone Reached! 🏆",
                    message=f"Amazing! You've earned {milestone} total XP!",
                    data={
                        "event": "xp_milestone",
                        "achievement_type": "xp_milestone",
                        "milestone": milestone,
                        "child_id": event.child_id,
                    },
                )
            )
        return requests

    def _level_up(self, event: LevelUpEvent) -> list[NotificationRequest]:
        if event.new_level <= event.old_level:
            return []

        requests = [
            NotificationRequest(
                type=NotificationType.LEVEL_UP,
                user_id=event.child_id,
                family_id=event.family_id,
                title="Level Up! 🚀",
                message=f"Congratulations! You've reached level {event.new_level}!",
                data={
                    "event": "level_up",
                    "child_id": event.child_id,
                    "old_level": event.old_level,
                    "new_level": event.new_level,
                },
                action_url="/profile",
            )
        ]
        if event.family_id:
            requests.append(
                NotificationRequest(
                    type=NotificationType.LEVEL_UP,
                    family_id=event.family_id,
                    recipient_role=ROLE_PARENT,
                    title="Level Up Achievement! 🌟",
                    message=f"{event.child_name} has reached level {event.new_level}!",
                    data={
                        "event": "child_level_up",
                        "child_id": event.child_id,
                        "child_name": event.child_name,
                        "new_level": event.new_level,
                    },
                )
            )
        return requests

    def _streak_updated(self, event: StreakUpdatedEvent) -> list[NotificationRequest]:
        if streak_just_broken(event.was_broken, event.broken):
            return [
                NotificationRequest(
                    type=NotificationType.STREAK_WARNING,
                    user_id=event.child_id,
                    family_id=event.family_id,
                    title="Streak Broken 💔",
                    message=(
                        f"Your {event.current_length}-day streak has been broken. "
                        "Don't give up - start a new one today!"
                    ),
                    data={
                        "event": "streak_broken",
                        "streak_id": event.streak_id,
                        "child_id": event.child_id,
                        "streak_length": event.current_length,
                    },
                )
            ]

        if event.broken:
            return []

        milestone = reached_streak_milestone(event.current_length, event.previous_length)
        if milestone is None:
            return []
        return [
            NotificationRequest(
                type=NotificationType.STREAK_MILESTONE,
                user_id=event.child_id,
                family_id=event.family_id,
                title="Streak Milestone! 🔥",
                message=f"Amazing! You've maintained your streak for {milestone} days!",
                data={
                    "event": "streak_milestone",
                    "streak_id": event.streak_id,
                    "child_id": event.child_id,
                    "streak_length": milestone,
                },
            )
        ]

    def _penalty_applied(self, event: PenaltyAppliedEvent) -> list[NotificationRequest]:
        requests = [
            NotificationRequest(
                type=NotificationType.PENALTY_APPLIED,
                user_id=event.child_id,
                family_id=event.family_id,
                title="Penalty Applied ⚠️",
                message=(
                    f"A penalty has been applied: {event.rule_name}. "
                    "You have 24 hours to appeal if needed."
                ),
                data={
                    "event": "penalty_applied",
                    "penalty_id": event.penalty_id,
                    "child_id": event.child_id,
                    "penalty_type": event.penalty_type,
                },
                actionable=True,
            )
        ]
        if event.family_id:
            requests.append(
                NotificationRequest(
                    type=NotificationType.PENALTY_APPLIED,
                    family_id=event.family_id,
                    recipient_role=ROLE_PARENT,
                    title="Penalty Applied 📋",
                    message=f'Penalty "{event.rule_name}" was applied to {event.child_name}',
                    data={
                        "event": "penalty_applied_parent",
                        "penalty_id": event.penalty_id,
                        "child_id": event.child_id,
                        "child_name": event.child_name,
                        "penalty_type": event.penalty_type,
                    },
                )
            )
        return requests

    def _family_goal_updated(self, event: FamilyGoalUpdatedEvent) -> list[NotificationRequest]:
        if event.completed and not event.was_completed:
            return [
                NotificationRequest(
                    type=NotificationType.FAMILY_GOAL,
                    family_id=event.family_id,
                    title="Family Goal Achieved! 🏆",
                    message=f"Congratulations! Your family completed the goal: {event.title}",
                    data={
                        "event": "family_goal_completed",
                        "goal_id": event.goal_id,
                        "goal_title": event.title,
                    },
                    action_url=f"/family-goals/{event.goal_id}",
                )
            ]

        if event.previous_progress is None:
            return []

        milestone = first_goal_milestone(
            goal_percentage(event.previous_progress, event.target_value),
            goal_percentage(event.current_progress, event.target_value),
        )
        if milestone is None:
            return []
        return [
            NotificationRequest(
                type=NotificationType.FAMILY_GOAL,
                family_id=event.family_id,
                title="Family Goal Progress! 📈",
                message=f"Your family is {milestone}% of the way to completing: {event.title}",
                data={
                    "event": "family_goal_progress",
                    "goal_id": event.goal_id,
                    "goal_title": event.title,
                    "progress": milestone,
                },
                action_url=f"/family-goals/{event.goal_id}",
            )
        ]

    def _summary_due(self, event: SummaryDueEvent) -> list[NotificationRequest]:
        if event.quests_completed == 0:
            return []

        quests = _plural(event.quests_completed, "quest")
        if event.period == "weekly":
            notification_type = NotificationType.WEEKLY_REPORT
            title = "Weekly Report 📊"
            message = f"Your family completed {quests} this week and earned {event.xp_earned} XP!"
        else:
            notification_type = NotificationType.DAILY_SUMMARY
            title = "Daily Summary 📊"
            message = f"Your family completed {quests} today and earned {event.xp_earned} XP!"

        return [
            NotificationRequest(
                type=notification_type,
                family_id=event.family_id,
                recipient_role=ROLE_PARENT,
                title=title,
                message=message,
                data={
                    "event": notification_type.value,
                    "family_id": event.family_id,
                    "quests_completed": event.quests_completed,
                    "xp_earned": event.xp_earned,
                },
            )
        ]

    def _passthrough(self, event: NotificationEvent) -> list[NotificationRequest]:
        return [
            NotificationRequest(
                type=event.type,
                title=event.title,
                message=event.message,
                user_id=event.user_id,
                family_id=event.family_id,
                recipient_role=event.recipient_role,
                data=dict(event.data),
                scheduled_time=event.scheduled_time,
                expires_at=event.expires_at,
                exclude_users=list(event.exclude_users),
                actionable=event.actionable,
                action_url=event.action_url,
            )
        ]


__all__ = ["EventIngestor"]
