"""Schemas for the scheduled task endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class UpcomingQuestPayload(BaseModel):
    quest_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    due_date: datetime
    assigned_to: list[str] = Field(default_factory=list)
    family_id: str | None = None
    status: str = "available"


class QuestReminderRequest(BaseModel):
    quests: list[UpcomingQuestPayload] = Field(default_factory=list)
    now: datetime | None = None


class FamilySummaryPayload(BaseModel):
    family_id: str = Field(..., min_length=1)
    quests_completed: int = Field(default=0, ge=0)
    xp_earned: int = Field(default=0, ge=0)
    period: Literal["daily", "weekly"] = "daily"


class DigestRequest(BaseModel):
    summaries: list[FamilySummaryPayload] = Field(default_factory=list)
    now: datetime | None = None


class ChildActivityPayload(BaseModel):
    child_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    family_id: str | None = None
    completions_yesterday: int = Field(default=0, ge=0)
    streak_length: int = Field(default=0, ge=0)
    active: bool = True


class DailyMotivationRequest(BaseModel):
    children: list[ChildActivityPayload] = Field(default_factory=list)
    now: datetime | None = None


class PassReportRead(BaseModel):
    sent: int
    skipped: int
    failed: int
    notification_ids: list[str] = Field(default_factory=list)


__all__ = [
    "UpcomingQuestPayload",
    "QuestReminderRequest",
    "FamilySummaryPayload",
    "ChildActivityPayload",
    "DailyMotivationRequest",
    "DigestRequest",
    "PassReportRead",
]
