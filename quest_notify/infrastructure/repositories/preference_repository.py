"""Persistence helpers for notification preferences."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from quest_notify.domain import repositories as contracts
from quest_notify.domain.errors import StaleVersionError
from quest_notify.domain.entities import (
    Channel,
    Frequency,
    NotificationPreference,
    NotificationType,
    Priority,
)
from quest_notify.infrastructure.models import NotificationPreferenceModel
from quest_notify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class PreferenceRepository(contracts.PreferenceRepository):
    """Provide CRUD operations for :class:`NotificationPreference` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(
        self, owner_id: str, notification_type: NotificationType
    ) -> NotificationPreference | None:
        model = self._get_model(owner_id, notification_type)
        return self._to_entity(model) if model else None

    def list_for_owner(self, owner_id: str) -> Sequence[NotificationPreference]:
        query = (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.owner_id == owner_id)
            .order_by(NotificationPreferenceModel.type)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_for_family(
        self, family_id: str, notification_type: NotificationType
    ) -> Sequence[NotificationPreference]:
        query = (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.family_id == family_id)
            .filter(NotificationPreferenceModel.type == NotificationType(notification_type).value)
            .order_by(NotificationPreferenceModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, preference: NotificationPreference) -> NotificationPreference:
        model = NotificationPreferenceModel()
        self._apply_entity_to_model(model, preference)
        model.version = 0
        model.created_at = ensure_app_naive_datetime(
            preference.created_at or now_in_app_timezone()
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, preference: NotificationPreference) -> NotificationPreference:
        values = self._settings_values(preference)
        values["version"] = NotificationPreferenceModel.version + 1
        values["updated_at"] = ensure_app_naive_datetime(
            preference.updated_at or now_in_app_timezone()
        )
        statement = (
            update(NotificationPreferenceModel)
            .where(
                NotificationPreferenceModel.owner_id == preference.owner_id,
                NotificationPreferenceModel.type == preference.type.value,
                NotificationPreferenceModel.version == preference.version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(statement)
        self.session.commit()

        if result.rowcount != 1:
            if self._get_model(preference.owner_id, preference.type) is None:
                msg = f"Preference {preference.type.value} for {preference.owner_id} not found"
                raise ValueError(msg)
            raise StaleVersionError(
                preference.owner_id, preference.type.value, preference.version
            )
        return self._to_entity(self._get_model(preference.owner_id, preference.type))

    def compare_and_set_last_sent(
        self,
        owner_id: str,
        notification_type: NotificationType,
        *,
        expected_version: int,
        last_sent: datetime,
    ) -> bool:
        statement = (
            update(NotificationPreferenceModel)
            .where(
                NotificationPreferenceModel.owner_id == owner_id,
                NotificationPreferenceModel.type == NotificationType(notification_type).value,
                NotificationPreferenceModel.version == expected_version,
                or_(
                    NotificationPreferenceModel.last_sent.is_(None),
                    NotificationPreferenceModel.last_sent < ensure_app_naive_datetime(last_sent),
                ),
            )
            .values(
                last_sent=ensure_app_naive_datetime(last_sent),
                version=NotificationPreferenceModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(statement)
        self.session.commit()
        return result.rowcount == 1

    def _get_model(
        self, owner_id: str, notification_type: NotificationType
    ) -> NotificationPreferenceModel | None:
        return (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.owner_id == owner_id)
            .filter(NotificationPreferenceModel.type == NotificationType(notification_type).value)
            .one_or_none()
        )

    @staticmethod
    def _settings_values(preference: NotificationPreference) -> dict[str, Any]:
        return {
            "enabled": preference.enabled,
            "channels": [Channel(channel).value for channel in preference.channels],
            "frequency": preference.frequency.value,
            "priority": preference.priority.value,
            "quiet_hours": preference.quiet_hours,
            "quiet_hours_start": preference.quiet_hours_start,
            "quiet_hours_end": preference.quiet_hours_end,
            "advance_hours": preference.advance_hours,
            "scheduled_hour": preference.scheduled_hour,
            "scheduled_day": preference.scheduled_day,
        }

    @classmethod
    def _apply_entity_to_model(
        cls, model: NotificationPreferenceModel, preference: NotificationPreference
    ) -> None:
        model.owner_id = preference.owner_id
        model.user_id = preference.user_id
        model.family_id = preference.family_id
        model.type = preference.type.value
        for key, value in cls._settings_values(preference).items():
            setattr(model, key, value)
        model.last_sent = ensure_app_naive_datetime(preference.last_sent)

    @staticmethod
    def _to_entity(model: NotificationPreferenceModel) -> NotificationPreference:
        return NotificationPreference(
            id=model.id,
            type=NotificationType(model.type),
            user_id=model.user_id,
            family_id=model.family_id,
            enabled=model.enabled,
            channels=[Channel(channel) for channel in model.channels or []],
            frequency=Frequency(model.frequency),
            priority=Priority(model.priority),
            quiet_hours=model.quiet_hours,
            quiet_hours_start=model.quiet_hours_start,
            quiet_hours_end=model.quiet_hours_end,
            advance_hours=model.advance_hours,
            scheduled_hour=model.scheduled_hour,
            scheduled_day=model.scheduled_day,
            last_sent=ensure_app_timezone(model.last_sent),
            version=model.version,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
