"""Saved resume model — a finalized record produced by the resume builder."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from career_chat.database import Base


class SavedResume(Base):
    __tablename__ = "saved_resumes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)

    # Full ConversationRecord as JSON
    resume_json = Column(Text, nullable=False)

    status = Column(String(20), nullable=False, default="completed")  # draft | completed | archived
    is_public = Column(Boolean, nullable=False, default=False)
    download_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="saved_resumes")
