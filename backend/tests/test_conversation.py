"""Tests for the resume conversation host and registry."""

import threading
import time
import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from career_chat.engine import prompts
from career_chat.engine.conversation import ConversationBusy, ConversationRegistry, ResumeConversation
from career_chat.engine.drafts import ResumeDraftStore
from career_chat.engine.preview import EMPTY_PREVIEW
from career_chat.engine.state import Step
from career_chat.services.kv_store import MemoryKeyValueStore
from conftest import FULL_FLOW


class RecordingFinalizer:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def __call__(self, user_id, record, title):
        self.calls.append((user_id, record, title))
        if self.fail:
            raise RuntimeError("backend unavailable")
        return "resume-1"


class CountingStore(ResumeDraftStore):
    def __init__(self):
        super().__init__(MemoryKeyValueStore())
        self.saves = 0
        self.discards = 0

    def save(self, *args, **kwargs):
        self.saves += 1
        super().save(*args, **kwargs)

    def discard(self, user_id):
        self.discards += 1
        super().discard(user_id)


class SlowKeyValueStore(MemoryKeyValueStore):
    """Writes take a while; `writing` is set when the first one starts."""

    def __init__(self, delay=0.3):
        super().__init__()
        self.delay = delay
        self.writing = threading.Event()

    def set(self, key, value):
        self.writing.set()
        time.sleep(self.delay)
        super().set(key, value)


def _open(store=None, delay=60):
    return ResumeConversation.open("u1", store or CountingStore(), debounce_seconds=delay)


class TestOpen:

    def test_fresh_conversation_greets(self):
        conversation = _open()
        entries = conversation.transcript.all()
        assert len(entries) == 1
        assert entries[0].text == prompts.WELCOME
        assert entries[0].is_question
        assert conversation.take_notice() is None
        assert conversation.state.step == Step.INTRO

    def test_resumes_unfinished_draft_once(self):
        store = CountingStore()
        first = _open(store)
        for text in FULL_FLOW[:4]:
            first.submit(text)
        first.close()

        second = _open(store)
        assert second.state == first.state
        assert second.record == first.record
        assert len(second.transcript) == len(first.transcript)
        notice = second.take_notice()
        assert str(first.progress) in notice
        assert second.take_notice() is None


class TestSubmit:

    def test_user_then_assistant_entries(self):
        conversation = _open()
        entries = conversation.submit("Ana Silva")
        assert [e.role for e in entries] == ["user", "assistant"]
        assert entries[1].is_question
        assert conversation.record.personal_info.full_name == "Ana Silva"

    def test_end_to_end_email_validation(self):
        conversation = _open()
        conversation.submit("Ana Silva")
        entries = conversation.submit("invalid")
        assert entries[-1].text == prompts.INVALID_EMAIL
        assert conversation.state.sub_step == "email"
        conversation.submit("ana@x.com")
        assert conversation.state.sub_step == "phone"
        assert conversation.record.personal_info.email == "ana@x.com"

    def test_preview_appends_preview_entry(self):
        conversation = _open()
        entries = conversation.submit("preview")
        assert entries[-1].is_preview
        assert entries[-1].text == EMPTY_PREVIEW

    def test_saves_are_debounced(self):
        store = CountingStore()
        conversation = _open(store)
        for text in FULL_FLOW[:5]:
            conversation.submit(text)
        assert store.saves == 0
        assert conversation.save_pending
        conversation.close()
        assert store.saves == 1
        assert store.load("u1").state == conversation.state

    def test_busy_conversation_rejects_input(self):
        conversation = _open()
        entered = threading.Event()
        release = threading.Event()

        def slow_finalizer(user_id, record, title):
            entered.set()
            release.wait(2)
            return "resume-1"

        for text in FULL_FLOW:
            conversation.submit(text)
        worker = threading.Thread(target=conversation.finalize, args=(slow_finalizer,))
        worker.start()
        assert entered.wait(2)
        with pytest.raises(ConversationBusy):
            conversation.submit("preview")
        release.set()
        worker.join(2)
        assert conversation.is_complete


class TestFinalize:

    def test_requires_name_and_email(self):
        conversation = _open()
        finalizer = RecordingFinalizer()
        conversation.submit("Ana Silva")
        entries = conversation.submit("finalizar", finalizer)
        assert entries[-1].text == prompts.FINISH_INCOMPLETE
        assert finalizer.calls == []
        assert not conversation.is_complete

    def test_success_completes_and_discards_once(self):
        store = CountingStore()
        conversation = _open(store)
        for text in FULL_FLOW:
            conversation.submit(text)
        finalizer = RecordingFinalizer()

        entries = conversation.submit("finalizar", finalizer)
        assert conversation.is_complete
        assert conversation.progress == 100
        assert conversation.saved_resume_id == "resume-1"
        assert "Parabéns" in entries[-1].text
        assert store.discards == 1
        assert not conversation.save_pending
        assert finalizer.calls[0][2].startswith("Currículo - Ana Silva - ")

        conversation.finalize(finalizer)
        assert store.discards == 1
        assert len(finalizer.calls) == 1

    def test_save_in_flight_cannot_outlive_finalize(self):
        kv = SlowKeyValueStore()
        store = ResumeDraftStore(kv)
        conversation = _open(store, delay=0.01)
        conversation.submit("Ana Silva")
        conversation.submit("ana@x.com")
        assert kv.writing.wait(2)

        conversation.finalize(RecordingFinalizer())
        assert conversation.is_complete
        time.sleep(0.5)
        assert store.load("u1") is None

    def test_save_in_flight_cannot_outlive_discard(self):
        kv = SlowKeyValueStore()
        store = ResumeDraftStore(kv)
        conversation = _open(store, delay=0.01)
        conversation.submit("Ana Silva")
        assert kv.writing.wait(2)

        conversation.discard_draft()
        time.sleep(0.5)
        assert store.load("u1") is None

    def test_failure_keeps_draft_and_state(self):
        store = CountingStore()
        conversation = _open(store)
        for text in FULL_FLOW:
            conversation.submit(text)
        state_before = conversation.state

        entries = conversation.finalize(RecordingFinalizer(fail=True), "Meu CV")
        assert entries[-1].text == prompts.FINALIZE_FAILED
        assert conversation.finalize_failed
        assert conversation.state == state_before
        assert store.discards == 0
        assert conversation.save_pending

        conversation.finalize(RecordingFinalizer(), "Meu CV")
        assert conversation.is_complete
        assert not conversation.finalize_failed


class TestRegistry:

    def test_one_conversation_per_user(self):
        registry = ConversationRegistry(debounce_seconds=60)
        store = CountingStore()
        first = registry.get_or_open("u1", store)
        assert registry.get_or_open("u1", store) is first
        assert registry.get_or_open("u2", store) is not first
        assert len(registry) == 2

    def test_close_all_flushes(self):
        registry = ConversationRegistry(debounce_seconds=60)
        store = CountingStore()
        registry.get_or_open("u1", store).submit("Ana Silva")
        registry.close_all()
        assert store.saves == 1
        assert len(registry) == 0

    def test_completed_conversation_is_replaced(self):
        registry = ConversationRegistry(debounce_seconds=60)
        store = CountingStore()
        conversation = registry.get_or_open("u1", store)
        for text in FULL_FLOW:
            conversation.submit(text)
        conversation.finalize(RecordingFinalizer())
        fresh = registry.get_or_open("u1", store)
        assert fresh is not conversation
        assert fresh.state.step == Step.INTRO

    def test_drop_discards_without_saving(self):
        registry = ConversationRegistry(debounce_seconds=60)
        store = CountingStore()
        registry.get_or_open("u1", store).submit("Ana Silva")
        registry.drop("u1")
        assert store.saves == 0
        assert store.load("u1") is None

    def test_finalized_conversation_is_released(self):
        registry = ConversationRegistry(debounce_seconds=60)
        store = CountingStore()
        conversation = registry.get_or_open("u1", store)
        conversation.submit("Ana Silva")
        assert registry.release_if_complete("u1") is False
        assert len(registry) == 1

        for text in FULL_FLOW[1:]:
            conversation.submit(text)
        conversation.finalize(RecordingFinalizer())
        assert registry.release_if_complete("u1") is True
        assert registry.get("u1") is None
        assert len(registry) == 0
