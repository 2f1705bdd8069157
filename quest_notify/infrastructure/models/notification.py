"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text

from quest_notify.infrastructure.database import Base
from quest_notify.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for member and family notifications."""

    __tablename__ = "notification"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(128), nullable=True, index=True)
    family_id = Column(String(128), nullable=True, index=True)
    recipient_role = Column(String(20), nullable=True)
    type = Column(String(40), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False, default="")
    data = Column(JSON, nullable=False, default=dict)
    channels = Column(JSON, nullable=False, default=list)
    priority = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, index=True)
    scheduled_for = Column(DateTime(), nullable=True)
    sent_at = Column(DateTime(), nullable=True)
    delivered_at = Column(DateTime(), nullable=True)
    read_at = Column(DateTime(), nullable=True)
    failed_at = Column(DateTime(), nullable=True)
    failure_reason = Column(Text, nullable=True)
    expires_at = Column(DateTime(), nullable=True)
    actionable = Column(Boolean, nullable=False, default=False)
    action_url = Column(String(255), nullable=True)
    action_data = Column(JSON, nullable=False, default=dict)
    created_at = Column(
        DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True
    )


__all__ = ["NotificationModel"]
