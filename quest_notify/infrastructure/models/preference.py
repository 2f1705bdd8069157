"""SQLAlchemy model for notification preferences."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, UniqueConstraint

from quest_notify.infrastructure.database import Base
from quest_notify.utils import now_in_app_naive_datetime


class NotificationPreferenceModel(Base):
    """One owner's settings for one notification type."""

    __tablename__ = "notification_preference"
    __table_args__ = (
        UniqueConstraint("owner_id", "type", name="uq_notification_preference_owner_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), nullable=False, index=True)
    user_id = Column(String(128), nullable=True, index=True)
    family_id = Column(String(128), nullable=True, index=True)
    type = Column(String(40), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)
    channels = Column(JSON, nullable=False, default=list)
    frequency = Column(String(20), nullable=False)
    priority = Column(String(20), nullable=False)
    quiet_hours = Column(Boolean, nullable=False, default=True)
    quiet_hours_start = Column(String(5), nullable=False, default="22:00")
    quiet_hours_end = Column(String(5), nullable=False, default="07:00")
    advance_hours = Column(Integer, nullable=False, default=0)
    scheduled_hour = Column(Integer, nullable=True)
    scheduled_day = Column(Integer, nullable=True)
    last_sent = Column(DateTime(), nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationPreferenceModel"]
