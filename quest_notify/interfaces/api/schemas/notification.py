"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    message: str
    user_id: str | None = None
    family_id: str | None = None
    recipient_role: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    channels: list[str] = Field(default_factory=list)
    priority: str
    status: str
    scheduled_for: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None
    read_at: datetime | None = None
    failed_at: datetime | None = None
    failure_reason: str | None = None
    expires_at: datetime | None = None
    actionable: bool = False
    action_url: str | None = None
    created_at: datetime | None = None


class CustomNotificationRequest(BaseModel):
    """Payload used by a parent to send a manual notification."""

    target_type: str = Field(..., description="child, family or user")
    target_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    body: str = ""
    notification_type: str | None = None
    custom_data: dict[str, Any] = Field(default_factory=dict)


class CustomNotificationResponse(BaseModel):
    success: bool
    message: str
    notification_ids: list[str] = Field(default_factory=list)


class NotificationStatsRead(BaseModel):
    """Counters and rates for a set of notifications; rates are percentages."""

    total: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    by_priority: dict[str, int]
    by_channel: dict[str, int]
    delivery_rate: float
    read_rate: float
    average_delivery_time: float = Field(..., description="Average seconds from sent to delivered")


class DispatchSummary(BaseModel):
    delivered: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0


class EventIngestResponse(BaseModel):
    """Notifications created by an ingested event and what their delivery did."""

    notification_ids: list[str] = Field(default_factory=list)
    dispatch: DispatchSummary = Field(default_factory=DispatchSummary)


class NotificationAck(BaseModel):
    """Websocket message acknowledging (reading) notifications."""

    type: Literal["ack"]
    ids: list[str] = Field(..., min_length=1)


__all__ = [
    "NotificationRead",
    "CustomNotificationRequest",
    "CustomNotificationResponse",
    "NotificationStatsRead",
    "DispatchSummary",
    "EventIngestResponse",
    "NotificationAck",
]
