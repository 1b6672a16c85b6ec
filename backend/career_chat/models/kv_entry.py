"""Key-value entry — backing table for drafts and simple per-user flags."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from career_chat.database import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
