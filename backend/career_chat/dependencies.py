"""Shared service instances and their FastAPI dependency providers.

Tests swap any of these through app.dependency_overrides.
"""

from career_chat.engine.conversation import ConversationRegistry
from career_chat.engine.drafts import InterviewDraftStore, ResumeDraftStore
from career_chat.engine.interview import Completer, InterviewRegistry
from career_chat.services import ai_client
from career_chat.services.kv_store import KeyValueStore, SqlKeyValueStore
from career_chat.services.notifications import NotificationScheduler

kv_store = SqlKeyValueStore()
scheduler = NotificationScheduler()
resume_drafts = ResumeDraftStore(kv_store, scheduler)
interview_drafts = InterviewDraftStore(kv_store)

# Live resume conversations; flushed on shutdown.
registry = ConversationRegistry()

# Live interviews; drafts cover restarts.
interviews = InterviewRegistry()


def get_kv_store() -> KeyValueStore:
    return kv_store


def get_scheduler() -> NotificationScheduler:
    return scheduler


def get_resume_drafts() -> ResumeDraftStore:
    return resume_drafts


def get_interview_drafts() -> InterviewDraftStore:
    return interview_drafts


def get_registry() -> ConversationRegistry:
    return registry


def get_interviews() -> InterviewRegistry:
    return interviews


def get_completer() -> Completer:
    return ai_client.complete
