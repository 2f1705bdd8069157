"""Schemas for device token registration."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DeviceTokenRegister(BaseModel):
    token: str = Field(..., min_length=1, max_length=512)
    channel: str = "push"


class DeviceTokenRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    user_id: str
    family_id: str | None
    user_role: str
    channel: str
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = ["DeviceTokenRegister", "DeviceTokenRead"]
