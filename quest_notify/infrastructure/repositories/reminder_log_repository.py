"""Persistence helpers for the reminder idempotency log."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quest_notify.domain import repositories as contracts
from quest_notify.domain.entities import ReminderLogEntry
from quest_notify.infrastructure.models import ReminderLogModel
from quest_notify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

logger = logging.getLogger(__name__)


class ReminderLogRepository(contracts.ReminderLogRepository):
    """Claim reminder keys through primary-key inserts."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> ReminderLogEntry | None:
        model = self.session.get(ReminderLogModel, key)
        if model is None:
            return None
        return ReminderLogEntry(
            key=model.key,
            subject_id=model.subject_id,
            kind=model.kind,
            sub_type=model.sub_type,
            assigned_to=list(model.assigned_to or []),
            sent_at=ensure_app_timezone(model.sent_at),
        )

    def claim(self, entry: ReminderLogEntry) -> bool:
        if self.session.get(ReminderLogModel, entry.key) is not None:
            return False
        model = ReminderLogModel(
            key=entry.key,
            subject_id=entry.subject_id,
            kind=entry.kind,
            sub_type=entry.sub_type,
            assigned_to=list(entry.assigned_to),
            sent_at=ensure_app_naive_datetime(entry.sent_at or now_in_app_timezone()),
        )
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.debug("Reminder key %s already claimed", entry.key)
            return False
        return True

    def release(self, key: str) -> None:
        model = self.session.get(ReminderLogModel, key)
        if model is None:
            return
        self.session.delete(model)
        self.session.commit()


__all__ = ["ReminderLogRepository"]
