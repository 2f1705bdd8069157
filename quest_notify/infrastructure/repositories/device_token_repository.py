"""Persistence helpers for device tokens."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from quest_notify.domain import repositories as contracts
from quest_notify.domain.entities import Channel, DeviceToken
from quest_notify.infrastructure.models import DeviceTokenModel
from quest_notify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class DeviceTokenRepository(contracts.DeviceTokenRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, token: str) -> DeviceToken | None:
        model = self.session.get(DeviceTokenModel, token)
        return self._to_entity(model) if model else None

    def save(self, device_token: DeviceToken) -> DeviceToken:
        model = self.session.get(DeviceTokenModel, device_token.token)
        now = ensure_app_naive_datetime(now_in_app_timezone())
        if model is None:
            model = DeviceTokenModel(token=device_token.token, created_at=now)
        model.user_id = device_token.user_id
        model.family_id = device_token.family_id
        model.user_role = device_token.user_role
        model.channel = Channel(device_token.channel).value
        model.active = device_token.active
        model.updated_at = now
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_active_for_user(self, user_id: str, channel: Channel) -> Sequence[DeviceToken]:
        query = (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.user_id == user_id)
            .filter(DeviceTokenModel.channel == Channel(channel).value)
            .filter(DeviceTokenModel.active.is_(True))
            .order_by(DeviceTokenModel.created_at.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_active_for_family(
        self,
        family_id: str,
        channel: Channel,
        *,
        roles: Sequence[str] | None = None,
    ) -> Sequence[DeviceToken]:
        query = (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.family_id == family_id)
            .filter(DeviceTokenModel.channel == Channel(channel).value)
            .filter(DeviceTokenModel.active.is_(True))
        )
        if roles is not None:
            query = query.filter(DeviceTokenModel.user_role.in_(list(roles)))
        query = query.order_by(DeviceTokenModel.created_at.asc())
        return [self._to_entity(model) for model in query.all()]

    def deactivate(self, tokens: Sequence[str], now: datetime) -> int:
        unique_tokens = list(dict.fromkeys(tokens))
        if not unique_tokens:
            return 0
        statement = (
            update(DeviceTokenModel)
            .where(
                DeviceTokenModel.token.in_(unique_tokens),
                DeviceTokenModel.active.is_(True),
            )
            .values(active=False, updated_at=ensure_app_naive_datetime(now))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(statement)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount

    @staticmethod
    def _to_entity(model: DeviceTokenModel) -> DeviceToken:
        return DeviceToken(
            token=model.token,
            user_id=model.user_id,
            family_id=model.family_id,
            user_role=model.user_role,
            channel=Channel(model.channel),
            active=model.active,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["DeviceTokenRepository"]
