"""SQLAlchemy ORM models."""

from career_chat.models.user import User
from career_chat.models.saved_resume import SavedResume
from career_chat.models.kv_entry import KeyValueEntry
from career_chat.models.scheduled_notification import ScheduledNotification

__all__ = [
    "User",
    "SavedResume",
    "KeyValueEntry",
    "ScheduledNotification",
]
