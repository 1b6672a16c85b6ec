"""Tests for progress, draft persistence, reminders and the save debounce."""

import threading
import time
import sys
import os
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from career_chat.engine.debounce import DebouncedTask
from career_chat.engine.drafts import (
    RESUME_DRAFT_KEY,
    ResumeDraftStore,
    calculate_progress,
    time_elapsed_label,
)
from career_chat.engine.state import SequencerState, Step
from career_chat.engine.transcript import Transcript, new_entry
from career_chat.services.kv_store import MemoryKeyValueStore, SqlKeyValueStore
from career_chat.services.notifications import NotificationScheduler
from conftest import FULL_FLOW, run_inputs


class FailingStore(MemoryKeyValueStore):
    def set(self, key, value):
        raise OSError("disk full")

    def get(self, key):
        raise OSError("disk gone")


class TestProgress:

    def test_start_and_end(self):
        assert calculate_progress(SequencerState()) == 0
        assert calculate_progress(SequencerState(step=Step.COMPLETE, sub_step="done")) == 100

    def test_review_is_not_complete(self):
        assert calculate_progress(SequencerState(step=Step.REVIEW, sub_step="reviewing")) < 100

    def test_personal_sub_steps_add_progress(self):
        email = calculate_progress(SequencerState(step=Step.PERSONAL, sub_step="email"))
        portfolio = calculate_progress(SequencerState(step=Step.PERSONAL, sub_step="portfolio"))
        education = calculate_progress(SequencerState(step=Step.EDUCATION, sub_step="selectLevel"))
        assert email < portfolio < education

    def test_monotonic_along_the_flow(self):
        state, record = SequencerState(), None
        seen = [calculate_progress(state)]
        for text in FULL_FLOW:
            state, record, _ = run_inputs([text], state, record)
            seen.append(calculate_progress(state))
        assert seen == sorted(seen)
        assert all(0 <= p < 100 for p in seen)


class TestResumeDraftStore:

    def _snapshot(self):
        state, record, _ = run_inputs(FULL_FLOW[:8])
        transcript = Transcript()
        transcript.append(new_entry("assistant", "Qual o seu nome?\n```js\nx\n```", is_question=True))
        transcript.append(new_entry("user", "Ana Silva"))
        return state, record, transcript

    def test_round_trip(self):
        store = ResumeDraftStore(MemoryKeyValueStore())
        state, record, transcript = self._snapshot()
        store.save("u1", state, record, transcript.all(), calculate_progress(state))

        draft = store.load("u1")
        assert draft.state == state
        assert draft.record == record
        assert draft.transcript == transcript.all()
        assert draft.progress == calculate_progress(state)
        assert draft.current_step_name == "Formação Acadêmica"

    def test_missing_draft(self):
        store = ResumeDraftStore(MemoryKeyValueStore())
        assert store.load("nobody") is None
        assert store.stats("nobody")["has_active_draft"] is False

    def test_last_write_wins(self):
        store = ResumeDraftStore(MemoryKeyValueStore())
        state, record, transcript = self._snapshot()
        store.save("u1", SequencerState(), record, [], 0)
        store.save("u1", state, record, transcript.all())
        assert store.load("u1").state == state

    def test_corrupt_draft_is_ignored(self):
        kv = MemoryKeyValueStore()
        kv.set(RESUME_DRAFT_KEY.format(user_id="u1"), '{"state": {"step": "education", "sub_step": "email"}}')
        store = ResumeDraftStore(kv)
        assert store.load("u1") is None

    def test_storage_failures_are_swallowed(self):
        store = ResumeDraftStore(FailingStore())
        state, record, transcript = self._snapshot()
        store.save("u1", state, record, transcript.all())
        assert store.load("u1") is None

    def test_discard(self):
        store = ResumeDraftStore(MemoryKeyValueStore())
        state, record, transcript = self._snapshot()
        store.save("u1", state, record, transcript.all())
        store.discard("u1")
        assert store.load("u1") is None
        assert store.stats("u1")["has_active_draft"] is False

    def test_stats(self):
        store = ResumeDraftStore(MemoryKeyValueStore())
        state, record, transcript = self._snapshot()
        store.save("u1", state, record, transcript.all())
        stats = store.stats("u1")
        assert stats["has_active_draft"] is True
        assert stats["progress"] == calculate_progress(state)
        assert stats["time_elapsed"] == "Agora mesmo"

    def test_sql_backed_store(self):
        store = ResumeDraftStore(SqlKeyValueStore())
        state, record, transcript = self._snapshot()
        store.save("u1", state, record, transcript.all())
        assert store.load("u1").record == record


class TestReminders:

    def test_save_schedules_and_discard_cancels(self):
        scheduler = NotificationScheduler()
        store = ResumeDraftStore(MemoryKeyValueStore(), scheduler)
        state, record, _ = run_inputs(FULL_FLOW[:3])

        store.save("u1", state, record, [])
        store.save("u1", state, record, [])
        pending = scheduler.pending_for("u1")
        assert len(pending) == 1
        assert pending[0]["payload"]["data"]["type"] == "resume_draft"

        store.discard("u1")
        assert scheduler.pending_for("u1") == []

    def test_due(self):
        scheduler = NotificationScheduler()
        now = datetime.now(timezone.utc)
        scheduler.schedule_at("soon", now - timedelta(minutes=1), {"n": 1}, user_id="u1")
        scheduler.schedule_at("later", now + timedelta(hours=3), {"n": 2}, user_id="u1")
        assert [n["id"] for n in scheduler.due(now)] == ["soon"]


class TestTimeElapsed:

    def test_labels(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert time_elapsed_label(now, now) == "Agora mesmo"
        assert time_elapsed_label(now - timedelta(minutes=5), now) == "5 min atrás"
        assert time_elapsed_label(now - timedelta(hours=2), now) == "2h atrás"
        assert time_elapsed_label(now - timedelta(hours=2, minutes=10), now) == "2h 10min atrás"


class TestDebounce:

    def test_burst_collapses_to_last_call(self):
        calls = []
        done = threading.Event()

        def callback(value):
            calls.append(value)
            done.set()

        task = DebouncedTask(0.05, callback)
        for i in range(5):
            task.arm(i)
        assert done.wait(2)
        time.sleep(0.1)
        assert calls == [4]
        assert not task.pending

    def test_cancel(self):
        calls = []
        task = DebouncedTask(0.05, calls.append)
        task.arm(1)
        task.cancel()
        time.sleep(0.15)
        assert calls == []

    def test_cancel_waits_for_running_callback(self):
        started = threading.Event()
        calls = []

        def slow(value):
            started.set()
            time.sleep(0.3)
            calls.append(value)

        task = DebouncedTask(0.01, slow)
        task.arm("draft")
        assert started.wait(2)
        task.cancel()
        assert calls == ["draft"]

    def test_flush_runs_now(self):
        calls = []
        task = DebouncedTask(10, calls.append)
        task.arm("draft")
        assert task.flush() is True
        assert calls == ["draft"]
        assert task.flush() is False

    def test_callback_errors_are_logged(self, caplog):
        def boom():
            raise RuntimeError("nope")

        task = DebouncedTask(10, boom)
        task.arm()
        task.flush()
        assert "Debounced callback failed" in caplog.text
