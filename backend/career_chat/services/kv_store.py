"""Key-value store — string values by key, for drafts and simple per-user flags."""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from sqlalchemy.orm import Session

from career_chat.database import SessionLocal
from career_chat.models.kv_entry import KeyValueEntry


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class SqlKeyValueStore(KeyValueStore):
    """Rows in the kv_entries table.

    Opens its own short-lived session per call, so it is safe to use from
    the debounce timer thread.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        db = self._session_factory()
        try:
            row = db.query(KeyValueEntry).filter(KeyValueEntry.key == key).first()
            return row.value if row else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db = self._session_factory()
        try:
            row = db.query(KeyValueEntry).filter(KeyValueEntry.key == key).first()
            if row:
                row.value = value
            else:
                db.add(KeyValueEntry(key=key, value=value))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.query(KeyValueEntry).filter(KeyValueEntry.key == key).delete()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store; used by tests and when no database is wanted."""

    def __init__(self):
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


# ── Simple flags ──────────────────────────────────────────────────────────────

ONBOARDING_KEY = "onboarding_seen:{user_id}"


def has_seen_onboarding(store: KeyValueStore, user_id: str) -> bool:
    return store.get(ONBOARDING_KEY.format(user_id=user_id)) == "true"


def mark_onboarding_seen(store: KeyValueStore, user_id: str) -> None:
    store.set(ONBOARDING_KEY.format(user_id=user_id), "true")
