"""Shared test setup: in-memory database, no AI key, relaxed rate limits."""

import os
import sys

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["INTERVIEW_RATE_LIMIT"] = "1000/minute"
os.environ["DRAFT_SAVE_DEBOUNCE_SECONDS"] = "0.05"

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from career_chat.database import Base, engine
from career_chat import models  # noqa: F401
from career_chat.engine.sequencer import advance
from career_chat.engine.collector import apply
from career_chat.engine.state import ConversationRecord, SequencerState


@pytest.fixture(autouse=True)
def fresh_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def run_inputs(inputs, state=None, record=None, max_entries=None):
    """Feed answers through advance + apply; returns (state, record, last transition)."""
    state = state or SequencerState()
    record = record or ConversationRecord()
    transition = None
    for text in inputs:
        transition = advance(state, text, max_entries)
        record, state = apply(record, transition.state, transition.updates)
    return state, record, transition


# Answers that take a new conversation to the review step with one entry per section.
FULL_FLOW = [
    "Ana Silva",
    "ana@x.com",
    "11987654321",
    "São Paulo, SP",
    "não",
    "4",
    "USP",
    "Ciência da Computação",
    "2016 - 2020",
    "não",
    "sim",
    "Acme",
    "Backend Developer",
    "2020 - Atual",
    "APIs em Go",
    "não",
    "sim",
    "career-chat",
    "Autora",
    "2023 - 2024",
    "Construtor de currículos",
    "não",
    "Inglês",
    "3",
    "não",
    "sim",
    "AWS Cloud Practitioner",
    "Amazon",
    "2023",
    "não",
    "Go, Rust ,  Python",
]
