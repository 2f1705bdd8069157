"""SQLAlchemy model for the scheduled reminder idempotency log."""

from sqlalchemy import JSON, Column, DateTime, String

from quest_notify.infrastructure.database import Base
from quest_notify.utils import now_in_app_naive_datetime


class ReminderLogModel(Base):
    """Row whose primary key proves a scheduled reminder was claimed."""

    __tablename__ = "reminder_log"

    key = Column(String(255), primary_key=True)
    subject_id = Column(String(128), nullable=False, index=True)
    kind = Column(String(40), nullable=False)
    sub_type = Column(String(40), nullable=False)
    assigned_to = Column(JSON, nullable=False, default=list)
    sent_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["ReminderLogModel"]
