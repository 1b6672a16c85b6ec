"""Field collector — applies sequencer FieldUpdates to the record and scratch data.

Inputs are never mutated; every call returns fresh objects.
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel

from career_chat.engine.sequencer import FieldUpdate
from career_chat.engine.state import (
    CertificateEntry,
    ConversationRecord,
    EducationEntry,
    ExperienceEntry,
    LanguageEntry,
    PersonalInfo,
    ProjectEntry,
    SequencerState,
)
from career_chat.engine.transcript import make_id

ENTRY_MODELS: dict[str, type[BaseModel]] = {
    "education": EducationEntry,
    "experience": ExperienceEntry,
    "projects": ProjectEntry,
    "languages": LanguageEntry,
    "certificates": CertificateEntry,
}

ID_PREFIXES = {
    "education": "edu",
    "experience": "exp",
    "projects": "proj",
    "languages": "lang",
    "certificates": "cert",
}


def split_skills(raw: str) -> list[str]:
    """"Go, Rust ,  Python" → ["Go", "Rust", "Python"]."""
    return [token.strip() for token in raw.split(",") if token.strip()]


def commit(temp_data: dict[str, Any], field_key: str, value: Any) -> dict[str, Any]:
    """Return a copy of temp_data with one more collected field."""
    updated = dict(temp_data)
    updated[field_key] = value
    return updated


def build_entry(section: str, temp_data: dict[str, Any], final_values: dict[str, Any] | None = None) -> BaseModel:
    model = ENTRY_MODELS[section]
    fields = {**temp_data, **(final_values or {})}
    known = {k: v for k, v in fields.items() if k in model.model_fields and k != "id"}
    return model(id=make_id(ID_PREFIXES[section]), **known)


def apply(
    record: ConversationRecord,
    state: SequencerState,
    updates: Iterable[FieldUpdate],
) -> tuple[ConversationRecord, SequencerState]:
    """Apply a transition's updates; returns the new (record, state)."""
    record_changes: dict[str, Any] = {}
    personal = record.personal_info
    temp_data = dict(state.temp_data)

    for update in updates:
        if update.target == "personal":
            personal = personal.model_copy(update={update.key: update.value})
            record_changes["personal_info"] = personal

        elif update.target == "temp":
            temp_data = commit(temp_data, update.key, update.value)

        elif update.target == "commit":
            entry = build_entry(update.key, temp_data, update.value)
            existing = record_changes.get(update.key, getattr(record, update.key))
            record_changes[update.key] = [*existing, entry]
            temp_data = {}

        elif update.target == "skills":
            record_changes["skills"] = split_skills(update.value or "")

        elif update.target == "reset_section":
            if update.key == "personal":
                personal = PersonalInfo()
                record_changes["personal_info"] = personal
            else:
                record_changes[update.key] = []
            temp_data = {}

        else:
            raise ValueError(f"Unknown field update target: {update.target}")

    new_record = record.model_copy(update=record_changes) if record_changes else record
    new_state = state if temp_data == state.temp_data else state.model_copy(update={"temp_data": temp_data})
    return new_record, new_state
