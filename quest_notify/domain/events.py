"""Typed activity events accepted from the domain-event producers.

Each producer payload carries a ``kind`` tag selecting one variant; every
variant declares the fields it requires so malformed events are rejected at
ingestion instead of producing half-filled notifications.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from quest_notify.domain.errors import ValidationError
from quest_notify.utils import normalize_instant

from .entities import NotificationType


class _Event(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class QuestCompletedEvent(_Event):
    """A child completed a quest."""

    kind: Literal["quest_completed"] = "quest_completed"
    child_id: str = Field(..., min_length=1)
    child_name: str = Field(..., min_length=1)
    family_id: str | None = None
    quest_id: str = Field(..., min_length=1)
    quest_title: str = Field(..., min_length=1)
    xp_earned: int = Field(default=0, ge=0)
    total_xp: int = Field(..., ge=0, description="Child's XP total after this completion")
    prior_completions: int = Field(
        ..., ge=0, description="Completions recorded for the child before this one"
    )


class LevelUpEvent(_Event):
    kind: Literal["level_up"] = "level_up"
    child_id: str = Field(..., min_length=1)
    child_name: str = Field(..., min_length=1)
    family_id: str | None = None
    old_level: int = Field(default=1, ge=1)
    new_level: int = Field(..., ge=1)


class StreakUpdatedEvent(_Event):
    """A streak changed; ``previous_length`` is ``None`` for a new streak."""

    kind: Literal["streak_updated"] = "streak_updated"
    streak_id: str = Field(..., min_length=1)
    child_id: str = Field(..., min_length=1)
    family_id: str | None = None
    previous_length: int | None = Field(default=None, ge=0)
    current_length: int = Field(..., ge=0)
    was_broken: bool | None = None
    broken: bool = False


class PenaltyAppliedEvent(_Event):
    kind: Literal["penalty_applied"] = "penalty_applied"
    penalty_id: str = Field(..., min_length=1)
    child_id: str = Field(..., min_length=1)
    child_name: str = Field(..., min_length=1)
    family_id: str | None = None
    rule_name: str = Field(..., min_length=1)
    penalty_type: str | None = None


class FamilyGoalUpdatedEvent(_Event):
    """Progress on a family goal; ``previous_progress`` is ``None`` for a new goal."""

    kind: Literal["family_goal_updated"] = "family_goal_updated"
    goal_id: str = Field(..., min_length=1)
    family_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    previous_progress: float | None = Field(default=None, ge=0)
    current_progress: float = Field(default=0, ge=0)
    target_value: float = Field(default=1, gt=0)
    was_completed: bool = False
    completed: bool = False


class SummaryDueEvent(_Event):
    kind: Literal["summary_due"] = "summary_due"
    family_id: str = Field(..., min_length=1)
    period: Literal["daily", "weekly"] = "daily"
    quests_completed: int = Field(default=0, ge=0)
    xp_earned: int = Field(default=0, ge=0)


class NotificationEvent(_Event):
    """Pre-built notification request passed straight through ingestion."""

    kind: Literal["notification"] = "notification"
    type: NotificationType
    title: str = Field(..., min_length=1)
    message: str = ""
    user_id: str | None = None
    family_id: str | None = None
    recipient_role: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    scheduled_time: datetime | None = None
    expires_at: datetime | None = None
    exclude_users: list[str] = Field(default_factory=list)
    actionable: bool = False
    action_url: str | None = None

    @field_validator("scheduled_time", "expires_at", mode="before")
    @classmethod
    def _normalize_instant(cls, value: Any) -> Any:
        if value is None or isinstance(value, (datetime, str)):
            return normalize_instant(value)
        return value


ActivityEvent = Annotated[
    Union[
        QuestCompletedEvent,
        LevelUpEvent,
        StreakUpdatedEvent,
        PenaltyAppliedEvent,
        FamilyGoalUpdatedEvent,
        SummaryDueEvent,
        NotificationEvent,
    ],
    Field(discriminator="kind"),
]

_EVENT_ADAPTER: TypeAdapter[ActivityEvent] = TypeAdapter(ActivityEvent)


def parse_activity_event(payload: Any) -> ActivityEvent:
    """Validate ``payload`` into its event variant.

    Raises :class:`ValidationError` with one message per offending field.
    """

    try:
        return _EVENT_ADAPTER.validate_python(payload)
    except PydanticValidationError as exc:
        messages = [
            f"{'.'.join(str(part) for part in error['loc']) or 'event'}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ValidationError(messages) from exc


__all__ = [
    "ActivityEvent",
    "QuestCompletedEvent",
    "LevelUpEvent",
    "StreakUpdatedEvent",
    "PenaltyAppliedEvent",
    "FamilyGoalUpdatedEvent",
    "SummaryDueEvent",
    "NotificationEvent",
    "parse_activity_event",
]
