"""Tests for the field collector."""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from career_chat.engine.collector import apply, build_entry, commit, split_skills
from career_chat.engine.sequencer import FieldUpdate
from career_chat.engine.state import (
    ConversationRecord,
    EducationEntry,
    LanguageLevel,
    PersonalInfo,
    SequencerState,
    Step,
)


class TestSkills:

    def test_split_trims_and_drops_empty(self):
        assert split_skills("Go, Rust ,  Python") == ["Go", "Rust", "Python"]
        assert split_skills("React,, ,Node") == ["React", "Node"]
        assert split_skills("") == []

    def test_skills_replace_wholesale(self):
        record = ConversationRecord(skills=["Java"])
        record, _ = apply(record, SequencerState(), [FieldUpdate(target="skills", value="Go, Rust")])
        assert record.skills == ["Go", "Rust"]


class TestCommit:

    def test_commit_returns_copy(self):
        temp = {"institution": "USP"}
        updated = commit(temp, "course", "Computação")
        assert updated == {"institution": "USP", "course": "Computação"}
        assert temp == {"institution": "USP"}

    def test_build_entry_ignores_unknown_fields(self):
        entry = build_entry("languages", {"name": "Inglês", "stray": 1}, {"level": "fluente"})
        assert entry.name == "Inglês"
        assert entry.level == LanguageLevel.FLUENTE
        assert entry.id.startswith("lang-")


class TestApply:

    def test_inputs_not_mutated(self):
        record = ConversationRecord()
        state = SequencerState(step=Step.EDUCATION, sub_step="institution", temp_data={"level": "superior"})
        new_record, new_state = apply(record, state, [FieldUpdate(target="temp", key="institution", value="USP")])
        assert state.temp_data == {"level": "superior"}
        assert new_state.temp_data == {"level": "superior", "institution": "USP"}
        assert new_record is record

    def test_commit_appends_and_clears_scratch(self):
        record = ConversationRecord(education=[EducationEntry(id="edu-1", course="Antigo")])
        state = SequencerState(
            step=Step.EDUCATION,
            sub_step="dates",
            temp_data={"level": "mestrado", "institution": "Unicamp", "course": "IA"},
        )
        update = FieldUpdate(target="commit", key="education", value={"start_date": "2021", "end_date": "2023"})
        new_record, new_state = apply(record, state, [update])
        assert [e.course for e in new_record.education] == ["Antigo", "IA"]
        assert new_state.temp_data == {}
        assert len(record.education) == 1

    def test_personal_field(self):
        record, _ = apply(ConversationRecord(), SequencerState(), [FieldUpdate(target="personal", key="email", value="a@b.co")])
        assert record.personal_info.email == "a@b.co"

    def test_reset_section(self):
        record = ConversationRecord(
            personal_info=PersonalInfo(full_name="Ana"),
            education=[EducationEntry(id="edu-1")],
        )
        record, _ = apply(record, SequencerState(), [FieldUpdate(target="reset_section", key="education")])
        assert record.education == []
        assert record.personal_info.full_name == "Ana"

        record, _ = apply(record, SequencerState(), [FieldUpdate(target="reset_section", key="personal")])
        assert record.personal_info == PersonalInfo()

    def test_unknown_target_rejected(self):
        with pytest.raises(ValueError):
            apply(ConversationRecord(), SequencerState(), [FieldUpdate(target="bogus")])
