"""SQLAlchemy model for registered device tokens."""

from sqlalchemy import Boolean, Column, DateTime, String

from quest_notify.infrastructure.database import Base
from quest_notify.utils import now_in_app_naive_datetime


class DeviceTokenModel(Base):
    __tablename__ = "device_token"

    token = Column(String(512), primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    family_id = Column(String(128), nullable=True, index=True)
    user_role = Column(String(20), nullable=False)
    channel = Column(String(20), nullable=False, default="push")
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True)


__all__ = ["DeviceTokenModel"]
