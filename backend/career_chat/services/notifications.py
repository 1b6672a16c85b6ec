"""Notification scheduler — fire-and-forget reminders stored in the database.

Delivery (push, e-mail) belongs to whoever polls due(); nothing in the
conversation flow depends on a reminder being scheduled.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from career_chat.database import SessionLocal
from career_chat.models.scheduled_notification import ScheduledNotification

logger = logging.getLogger(__name__)


def _naive_utc(when: datetime) -> datetime:
    # SQLite drops tzinfo; store and compare everything as naive UTC.
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc).replace(tzinfo=None)
    return when


def _to_dict(row: ScheduledNotification) -> dict:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "fire_at": row.fire_at.replace(tzinfo=timezone.utc).isoformat(),
        "payload": json.loads(row.payload_json or "{}"),
    }


class NotificationScheduler:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def schedule_at(self, notification_id: str, when: datetime, payload: dict, user_id: Optional[str] = None) -> None:
        """Schedule (or reschedule) a notification. Errors are logged, never raised."""
        db = self._session_factory()
        try:
            row = db.query(ScheduledNotification).filter(ScheduledNotification.id == notification_id).first()
            if row is None:
                row = ScheduledNotification(id=notification_id)
                db.add(row)
            row.user_id = user_id
            row.fire_at = _naive_utc(when)
            row.payload_json = json.dumps(payload)
            db.commit()
            logger.info("Notification %s scheduled for %s", notification_id, when.isoformat())
        except Exception:
            db.rollback()
            logger.exception("Could not schedule notification %s", notification_id)
        finally:
            db.close()

    def cancel(self, notification_id: str) -> None:
        db = self._session_factory()
        try:
            db.query(ScheduledNotification).filter(ScheduledNotification.id == notification_id).delete()
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Could not cancel notification %s", notification_id)
        finally:
            db.close()

    def pending_for(self, user_id: str) -> list[dict]:
        db = self._session_factory()
        try:
            rows = (
                db.query(ScheduledNotification)
                .filter(ScheduledNotification.user_id == user_id)
                .order_by(ScheduledNotification.fire_at)
                .all()
            )
            return [_to_dict(r) for r in rows]
        finally:
            db.close()

    def due(self, now: Optional[datetime] = None) -> list[dict]:
        now = _naive_utc(now or datetime.now(timezone.utc))
        db = self._session_factory()
        try:
            rows = (
                db.query(ScheduledNotification)
                .filter(ScheduledNotification.fire_at <= now)
                .order_by(ScheduledNotification.fire_at)
                .all()
            )
            return [_to_dict(r) for r in rows]
        finally:
            db.close()
