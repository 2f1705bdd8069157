"""Schemas for notification preference endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PreferenceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None
    type: str
    user_id: str | None
    family_id: str | None
    enabled: bool
    channels: list[str]
    frequency: str
    priority: str
    quiet_hours: bool
    quiet_hours_start: str
    quiet_hours_end: str
    advance_hours: int
    scheduled_hour: int | None = None
    scheduled_day: int | None = None
    last_sent: datetime | None = None
    updated_at: datetime | None = None


class PreferenceUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool | None = None
    channels: list[str] | None = None
    frequency: str | None = None
    priority: str | None = None
    quiet_hours: bool | None = None
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    advance_hours: int | None = None
    scheduled_hour: int | None = Field(default=None, description="Hour of day, 0-23")
    scheduled_day: int | None = Field(default=None, description="Day of week, 0 is Sunday")


__all__ = ["PreferenceRead", "PreferenceUpdate"]
