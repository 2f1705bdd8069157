"""Domain entity describing an already processed scheduled reminder."""

from dataclasses import dataclass, field
from datetime import date, datetime


def reminder_key(subject_id: str, reminder_type: str, day: date) -> str:
    """Return the idempotency key of one reminder for one subject and day."""

    return f"{subject_id}_{reminder_type}_{day.isoformat()}"


@dataclass
class ReminderLogEntry:
    """Durable record proving a scheduled reminder or digest was handled.

    ``subject_id`` is the quest for reminders, the family for digests and the
    child for morning messages.
    """

    key: str
    subject_id: str
    kind: str
    sub_type: str
    assigned_to: list[str] = field(default_factory=list)
    sent_at: datetime | None = None


__all__ = ["ReminderLogEntry", "reminder_key"]
