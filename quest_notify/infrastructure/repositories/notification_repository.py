"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from quest_notify.domain import repositories as contracts
from quest_notify.domain.entities import (
    Channel,
    Notification,
    NotificationStatus,
    NotificationType,
    Priority,
)
from quest_notify.infrastructure.models import NotificationModel
from quest_notify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository(contracts.NotificationRepository):
    """Provide CRUD and lifecycle operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: str) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel(id=notification.id)
        self._apply_entity_to_model(model, notification)
        model.created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, notification: Notification) -> Notification:
        model = self.session.get(NotificationModel, notification.id)
        if model is None:
            msg = f"Notification with id {notification.id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def claim_for_delivery(self, notification_id: str, now: datetime) -> Notification | None:
        return self._transition_pending(
            notification_id,
            now,
            {
                NotificationModel.status: NotificationStatus.SENT.value,
                NotificationModel.sent_at: ensure_app_naive_datetime(now),
            },
        )

    def cancel_pending(self, notification_id: str, now: datetime) -> Notification | None:
        return self._transition_pending(
            notification_id,
            now,
            {NotificationModel.status: NotificationStatus.CANCELLED.value},
        )

    def list_pending(self) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.status == NotificationStatus.PENDING.value)
            .order_by(NotificationModel.created_at.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_for_user(self, user_id: str, *, limit: int | None = 50) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_created_between(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        family_id: str | None = None,
    ) -> Sequence[Notification]:
        query = self.session.query(NotificationModel)
        if start is not None:
            query = query.filter(NotificationModel.created_at >= ensure_app_naive_datetime(start))
        if end is not None:
            query = query.filter(NotificationModel.created_at <= ensure_app_naive_datetime(end))
        if family_id is not None:
            query = query.filter(NotificationModel.family_id == family_id)
        query = query.order_by(NotificationModel.created_at.asc())
        return [self._to_entity(model) for model in query.all()]

    def _transition_pending(
        self, notification_id: str, now: datetime, values: dict
    ) -> Notification | None:
        naive_now = ensure_app_naive_datetime(now)
        statement = (
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.status == NotificationStatus.PENDING.value,
                or_(
                    NotificationModel.expires_at.is_(None),
                    NotificationModel.expires_at >= naive_now,
                ),
            )
            .values(values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(statement)
        self.session.commit()
        if result.rowcount != 1:
            return None
        return self.get(notification_id)

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.user_id = notification.user_id
        model.family_id = notification.family_id
        model.recipient_role = notification.recipient_role
        model.type = notification.type.value
        model.title = notification.title
        model.message = notification.message or ""
        model.data = notification.data or {}
        model.channels = [Channel(channel).value for channel in notification.channels]
        model.priority = notification.priority.value
        model.status = notification.status.value
        model.scheduled_for = ensure_app_naive_datetime(notification.scheduled_for)
        model.sent_at = ensure_app_naive_datetime(notification.sent_at)
        model.delivered_at = ensure_app_naive_datetime(notification.delivered_at)
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.failed_at = ensure_app_naive_datetime(notification.failed_at)
        model.failure_reason = notification.failure_reason
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)
        model.actionable = notification.actionable
        model.action_url = notification.action_url
        model.action_data = notification.action_data or {}

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            type=NotificationType(model.type),
            title=model.title,
            message=model.message,
            user_id=model.user_id,
            family_id=model.family_id,
            recipient_role=model.recipient_role,
            data=model.data or {},
            channels=[Channel(channel) for channel in model.channels or []],
            priority=Priority(model.priority),
            status=NotificationStatus(model.status),
            scheduled_for=ensure_app_timezone(model.scheduled_for),
            sent_at=ensure_app_timezone(model.sent_at),
            delivered_at=ensure_app_timezone(model.delivered_at),
            read_at=ensure_app_timezone(model.read_at),
            failed_at=ensure_app_timezone(model.failed_at),
            failure_reason=model.failure_reason,
            expires_at=ensure_app_timezone(model.expires_at),
            actionable=model.actionable,
            action_url=model.action_url,
            action_data=model.action_data or {},
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository"]
