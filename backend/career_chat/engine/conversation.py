"""Conversation host — one live resume conversation per user.

Holds the only mutable reference to (state, record, transcript). Each input
runs advance → apply under a lock, then arms a debounced draft save with an
immutable snapshot, so the timer thread never sees a half-applied turn.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from career_chat.config import settings
from career_chat.engine import preview, prompts
from career_chat.engine.collector import apply
from career_chat.engine.debounce import DebouncedTask
from career_chat.engine.drafts import ResumeDraftStore, calculate_progress
from career_chat.engine.sequencer import Command, advance
from career_chat.engine.state import (
    CompleteSub,
    ConversationRecord,
    SequencerState,
    STEP_DISPLAY_NAMES,
    Step,
    TranscriptEntry,
)
from career_chat.engine.transcript import Transcript, new_entry

logger = logging.getLogger(__name__)

# finalizer(user_id, record, title) -> id of the saved resume; raises on failure.
Finalizer = Callable[[str, ConversationRecord, str], Any]


class ConversationBusy(Exception):
    """Raised when an input arrives while the previous one is still being processed."""


class ResumeConversation:
    def __init__(
        self,
        user_id: str,
        store: ResumeDraftStore,
        state: Optional[SequencerState] = None,
        record: Optional[ConversationRecord] = None,
        transcript: Optional[Transcript] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.user_id = user_id
        self.store = store
        self.state = state or SequencerState()
        self.record = record or ConversationRecord()
        self.transcript = transcript or Transcript()
        self.saved_resume_id: Any = None
        # Set when the last finalize attempt reached the backend and failed.
        self.finalize_failed = False
        self._notice: Optional[str] = None
        self._draft_discarded = False
        self._lock = threading.Lock()
        delay = settings.DRAFT_SAVE_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self._saver = DebouncedTask(delay, self._save_snapshot)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    @classmethod
    def open(
        cls,
        user_id: str,
        store: ResumeDraftStore,
        debounce_seconds: Optional[float] = None,
    ) -> "ResumeConversation":
        """Resume the user's unfinished draft, or start a fresh conversation."""
        draft = store.load(user_id)
        if draft is not None and draft.progress < 100:
            conversation = cls(
                user_id,
                store,
                state=draft.state,
                record=draft.record,
                transcript=Transcript(draft.transcript),
                debounce_seconds=debounce_seconds,
            )
            conversation._notice = prompts.DRAFT_RESUMED.format(progress=draft.progress)
            logger.info("Resumed draft for user %s at %s", user_id, draft.current_step_name)
            return conversation

        conversation = cls(user_id, store, debounce_seconds=debounce_seconds)
        conversation.transcript.append(new_entry("assistant", prompts.WELCOME, prefix="welcome", is_question=True))
        return conversation

    def take_notice(self) -> Optional[str]:
        """The resume notice, returned once."""
        notice, self._notice = self._notice, None
        return notice

    def close(self) -> None:
        """Write any pending draft save now."""
        self._saver.flush()

    def discard_draft(self) -> None:
        self._saver.cancel()
        self.store.discard(self.user_id)

    # ── Queries ───────────────────────────────────────────────────────────────

    @property
    def progress(self) -> int:
        return calculate_progress(self.state)

    @property
    def is_complete(self) -> bool:
        return self.state.step == Step.COMPLETE

    @property
    def save_pending(self) -> bool:
        return self._saver.pending

    def current_step_name(self) -> str:
        return STEP_DISPLAY_NAMES[self.state.step]

    def preview(self) -> str:
        return preview.render(self.record)

    # ── Input ─────────────────────────────────────────────────────────────────

    def submit(self, text: str, finalizer: Optional[Finalizer] = None) -> list[TranscriptEntry]:
        """Process one user answer; returns the entries it appended."""
        if not self._lock.acquire(blocking=False):
            raise ConversationBusy(self.user_id)
        try:
            start = len(self.transcript)
            self.transcript.append(new_entry("user", text))

            transition = advance(self.state, text)
            self.record, self.state = apply(self.record, transition.state, transition.updates)

            if transition.prompt:
                self._say(transition.prompt, is_question=transition.command == Command.NONE)

            if transition.command == Command.PREVIEW:
                self._say(self.preview(), prefix="preview", is_preview=True)
            elif transition.command == Command.FINISH:
                self._finalize(finalizer)

            if not self.is_complete:
                self._arm_save()
            return self.transcript.all()[start:]
        finally:
            self._lock.release()

    def finalize(self, finalizer: Finalizer, title: Optional[str] = None) -> list[TranscriptEntry]:
        if not self._lock.acquire(blocking=False):
            raise ConversationBusy(self.user_id)
        try:
            start = len(self.transcript)
            self._finalize(finalizer, title)
            return self.transcript.all()[start:]
        finally:
            self._lock.release()

    # ── Internals ─────────────────────────────────────────────────────────────

    def _say(self, text: str, prefix: str = "msg", is_question: bool = False, is_preview: bool = False) -> TranscriptEntry:
        return self.transcript.append(
            new_entry("assistant", text, prefix=prefix, is_question=is_question, is_preview=is_preview)
        )

    def _finalize(self, finalizer: Optional[Finalizer], title: Optional[str] = None) -> None:
        self.finalize_failed = False
        if self.is_complete:
            self._say(prompts.ALREADY_COMPLETE)
            return

        info = self.record.personal_info
        if not info.full_name or not info.email:
            self._say(prompts.FINISH_INCOMPLETE)
            return
        if finalizer is None:
            self.finalize_failed = True
            self._say(prompts.FINALIZE_FAILED)
            return

        title = title or prompts.default_title(info.full_name, datetime.now().strftime("%d/%m/%Y"))
        try:
            self.saved_resume_id = finalizer(self.user_id, self.record, title)
        except Exception:
            logger.exception("Finalizing resume failed for user %s", self.user_id)
            self.finalize_failed = True
            self._say(prompts.FINALIZE_FAILED)
            return

        self.state = SequencerState(step=Step.COMPLETE, sub_step=CompleteSub.DONE)
        self._say(prompts.FINALIZED.format(title=title))
        self._saver.cancel()
        if not self._draft_discarded:
            self.store.discard(self.user_id)
            self._draft_discarded = True
        logger.info("Resume finalized for user %s (id=%s)", self.user_id, self.saved_resume_id)

    def _arm_save(self) -> None:
        self._saver.arm(self.state, self.record, self.transcript.all())

    def _save_snapshot(self, state: SequencerState, record: ConversationRecord, entries: list[TranscriptEntry]) -> None:
        self.store.save(self.user_id, state, record, entries, calculate_progress(state))


class ConversationRegistry:
    """Live conversations keyed by user id."""

    def __init__(self, debounce_seconds: Optional[float] = None):
        self.debounce_seconds = debounce_seconds
        self._conversations: dict[str, ResumeConversation] = {}
        self._lock = threading.Lock()

    def get_or_open(self, user_id: str, store: ResumeDraftStore) -> ResumeConversation:
        with self._lock:
            conversation = self._conversations.get(user_id)
            if conversation is None or conversation.is_complete:
                conversation = ResumeConversation.open(user_id, store, self.debounce_seconds)
                self._conversations[user_id] = conversation
            return conversation

    def get(self, user_id: str) -> Optional[ResumeConversation]:
        with self._lock:
            return self._conversations.get(user_id)

    def release_if_complete(self, user_id: str) -> bool:
        """Forget a finalized conversation; its draft is already gone."""
        with self._lock:
            conversation = self._conversations.get(user_id)
            if conversation is None or not conversation.is_complete:
                return False
            del self._conversations[user_id]
        return True

    def close(self, user_id: str) -> None:
        with self._lock:
            conversation = self._conversations.pop(user_id, None)
        if conversation is not None:
            conversation.close()

    def drop(self, user_id: str) -> None:
        """Forget a conversation without saving it."""
        with self._lock:
            conversation = self._conversations.pop(user_id, None)
        if conversation is not None:
            conversation.discard_draft()

    def close_all(self) -> None:
        with self._lock:
            conversations = list(self._conversations.values())
            self._conversations.clear()
        for conversation in conversations:
            conversation.close()
        if conversations:
            logger.info("Flushed %d live conversation(s)", len(conversations))

    def __len__(self) -> int:
        return len(self._conversations)
