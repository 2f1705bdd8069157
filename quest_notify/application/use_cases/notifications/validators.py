"""Validation helpers for preference and event configuration."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from quest_notify.domain.entities import Channel, Frequency, NotificationType, Priority
from quest_notify.domain.errors import ValidationError

_TIME_PATTERN = re.compile(r"^(?P<hours>\d{1,2}):(?P<minutes>\d{2})$")

UPDATABLE_FIELDS = frozenset(
    {
        "enabled",
        "channels",
        "frequency",
        "priority",
        "quiet_hours",
        "quiet_hours_start",
        "quiet_hours_end",
        "advance_hours",
        "scheduled_hour",
        "scheduled_day",
    }
)


def parse_time_of_day(value: str) -> int:
    """Encode ``"HH:MM"`` as the integer ``HH * 100 + MM``."""

    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid time of day: {value!r}")
    hours = int(match.group("hours"))
    minutes = int(match.group("minutes"))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 100 + minutes


def _is_member(enum_cls: type, value: Any) -> bool:
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


def validate_preference_data(data: Mapping[str, Any], *, partial: bool = False) -> list[str]:
    """Return the list of problems found in ``data``; empty when it is valid.

    ``partial`` skips the owner and type checks, for updates of an existing record.
    """

    errors: list[str] = []

    if not partial:
        if not data.get("user_id") and not data.get("family_id"):
            errors.append("Either user ID or family ID is required")
        if not data.get("type") or not _is_member(NotificationType, data.get("type")):
            errors.append("Valid notification type is required")

    if "channels" in data:
        channels = data["channels"]
        if not isinstance(channels, (list, tuple, set, frozenset)):
            errors.append("Channels must be an array")
        elif any(not _is_member(Channel, channel) for channel in channels):
            errors.append("Channels must be one of: " + ", ".join(c.value for c in Channel))

    if data.get("frequency") is not None and not _is_member(Frequency, data["frequency"]):
        errors.append("Valid frequency is required")

    priority = data.get("priority")
    if priority is not None and not _is_member(Priority, str(priority).lower()):
        errors.append("Valid priority is required")

    for key in ("quiet_hours_start", "quiet_hours_end"):
        if data.get(key) is not None:
            try:
                parse_time_of_day(data[key])
            except ValueError:
                errors.append(f"{key} must use the HH:MM format")

    advance_hours = data.get("advance_hours")
    if advance_hours is not None and (
        not isinstance(advance_hours, int) or isinstance(advance_hours, bool) or advance_hours < 0
    ):
        errors.append("advance_hours must be a non-negative integer")

    scheduled_hour = data.get("scheduled_hour")
    if scheduled_hour is not None and (
        not isinstance(scheduled_hour, int) or not 0 <= scheduled_hour <= 23
    ):
        errors.append("scheduled_hour must be between 0 and 23")

    scheduled_day = data.get("scheduled_day")
    if scheduled_day is not None and (
        not isinstance(scheduled_day, int) or not 0 <= scheduled_day <= 6
    ):
        errors.append("scheduled_day must be between 0 (Sunday) and 6 (Saturday)")

    if partial:
        unknown = sorted(set(data) - UPDATABLE_FIELDS)
        if unknown:
            errors.append("Unknown preference fields: " + ", ".join(unknown))

    return errors


def ensure_valid_preference_data(data: Mapping[str, Any], *, partial: bool = False) -> None:
    """Raise :class:`ValidationError` listing every problem found in ``data``."""

    errors = validate_preference_data(data, partial=partial)
    if errors:
        raise ValidationError(errors)


__all__ = [
    "UPDATABLE_FIELDS",
    "parse_time_of_day",
    "validate_preference_data",
    "ensure_valid_preference_data",
]
