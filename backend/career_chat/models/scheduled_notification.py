"""Scheduled notification — reminders such as "finish your resume draft"."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from career_chat.database import Base


class ScheduledNotification(Base):
    __tablename__ = "scheduled_notifications"

    # Caller-chosen identifier; scheduling the same id again replaces it.
    id = Column(String(255), primary_key=True)
    user_id = Column(String(36), nullable=True, index=True)
    fire_at = Column(DateTime, nullable=False)
    payload_json = Column(Text, nullable=False, default="{}")  # JSON: {title, body, data}
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
