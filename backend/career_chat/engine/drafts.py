"""Draft persistence — save/resume an in-progress conversation per user.

Drafts are JSON documents in the key-value store; the last write wins.
Nothing here raises into the conversation: a failed save is logged and
dropped, a failed or unreadable load behaves like "no draft".
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, ValidationError

from career_chat.config import settings
from career_chat.engine.state import (
    PersonalSub,
    ConversationRecord,
    SequencerState,
    STEP_DISPLAY_NAMES,
    STEP_ORDER,
    Step,
    TranscriptEntry,
)
from career_chat.services.kv_store import KeyValueStore
from career_chat.services.notifications import NotificationScheduler

logger = logging.getLogger(__name__)

RESUME_DRAFT_KEY = "resume_draft:{user_id}"
RESUME_REMINDER_ID = "resume_draft_reminder:{user_id}"
INTERVIEW_DRAFT_KEY = "interview_draft:{user_id}"

REMINDER_PAYLOAD = {
    "title": "📄 Currículo Pendente",
    "body": "Você tem um currículo em andamento! Continue de onde parou para não perder seu progresso.",
    "data": {"type": "resume_draft", "action": "continue"},
}


# ── Progress ──────────────────────────────────────────────────────────────────

def calculate_progress(state: SequencerState) -> int:
    """Percentage through the flow, 0-100. Only the complete step reaches 100."""
    if state.step == Step.COMPLETE:
        return 100

    share = 100 / (len(STEP_ORDER) - 1)
    progress = state.step_index * share

    if state.step == Step.PERSONAL:
        subs = [s.value for s in PersonalSub]
        progress += subs.index(state.sub_step) / len(subs) * share

    return max(0, min(99, round(progress)))


def time_elapsed_label(last_modified: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    minutes_total = int((now - last_modified).total_seconds() // 60)
    hours, minutes = divmod(max(0, minutes_total), 60)
    if hours > 0:
        return f"{hours}h {minutes}min atrás" if minutes else f"{hours}h atrás"
    if minutes > 0:
        return f"{minutes} min atrás"
    return "Agora mesmo"


# ── Resume drafts ─────────────────────────────────────────────────────────────

class ResumeDraft(BaseModel):
    user_id: str
    state: SequencerState
    record: ConversationRecord
    transcript: list[TranscriptEntry] = Field(default_factory=list)
    progress: int = 0
    current_step_name: str = ""
    last_modified: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ResumeDraftStore:
    def __init__(self, kv: KeyValueStore, scheduler: Optional[NotificationScheduler] = None):
        self.kv = kv
        self.scheduler = scheduler

    def save(
        self,
        user_id: str,
        state: SequencerState,
        record: ConversationRecord,
        transcript: Iterable[TranscriptEntry],
        progress: Optional[int] = None,
    ) -> None:
        if progress is None:
            progress = calculate_progress(state)
        draft = ResumeDraft(
            user_id=user_id,
            state=state,
            record=record,
            transcript=list(transcript),
            progress=progress,
            current_step_name=STEP_DISPLAY_NAMES[state.step],
        )
        try:
            self.kv.set(RESUME_DRAFT_KEY.format(user_id=user_id), draft.model_dump_json())
        except Exception:
            logger.exception("Could not save resume draft for user %s", user_id)
            return

        logger.info("Resume draft saved for user %s (%d%%, %s)", user_id, progress, draft.current_step_name)
        if progress < 100:
            self._schedule_reminder(user_id)

    def load(self, user_id: str) -> Optional[ResumeDraft]:
        try:
            raw = self.kv.get(RESUME_DRAFT_KEY.format(user_id=user_id))
        except Exception:
            logger.exception("Could not read resume draft for user %s", user_id)
            return None
        if not raw:
            return None
        try:
            return ResumeDraft.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable resume draft for user %s: %s", user_id, exc)
            return None

    def discard(self, user_id: str) -> None:
        try:
            self.kv.remove(RESUME_DRAFT_KEY.format(user_id=user_id))
        except Exception:
            logger.exception("Could not remove resume draft for user %s", user_id)
        if self.scheduler is not None:
            self.scheduler.cancel(RESUME_REMINDER_ID.format(user_id=user_id))
        logger.info("Resume draft discarded for user %s", user_id)

    def stats(self, user_id: str) -> dict[str, Any]:
        draft = self.load(user_id)
        if draft is None:
            return {
                "has_active_draft": False,
                "progress": 0,
                "current_step": "",
                "last_modified": None,
                "time_elapsed": "",
            }
        return {
            "has_active_draft": draft.progress < 100,
            "progress": draft.progress,
            "current_step": draft.current_step_name,
            "last_modified": draft.last_modified,
            "time_elapsed": time_elapsed_label(draft.last_modified),
        }

    def _schedule_reminder(self, user_id: str) -> None:
        if self.scheduler is None:
            return
        when = datetime.now(timezone.utc) + timedelta(hours=settings.DRAFT_REMINDER_HOURS)
        self.scheduler.schedule_at(
            RESUME_REMINDER_ID.format(user_id=user_id), when, REMINDER_PAYLOAD, user_id=user_id
        )


# ── Interview drafts ──────────────────────────────────────────────────────────

class InterviewDraftStore:
    """Same lifecycle as resume drafts, for interview sessions (no reminders)."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def save(self, user_id: str, payload: BaseModel) -> None:
        try:
            self.kv.set(INTERVIEW_DRAFT_KEY.format(user_id=user_id), payload.model_dump_json())
        except Exception:
            logger.exception("Could not save interview draft for user %s", user_id)

    def load(self, user_id: str, model: type[BaseModel]) -> Optional[BaseModel]:
        try:
            raw = self.kv.get(INTERVIEW_DRAFT_KEY.format(user_id=user_id))
        except Exception:
            logger.exception("Could not read interview draft for user %s", user_id)
            return None
        if not raw:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable interview draft for user %s: %s", user_id, exc)
            return None

    def discard(self, user_id: str) -> None:
        try:
            self.kv.remove(INTERVIEW_DRAFT_KEY.format(user_id=user_id))
        except Exception:
            logger.exception("Could not remove interview draft for user %s", user_id)
