"""Conversation engine state — steps, sub-steps, the record being built and transcript entries.

Everything here is a Pydantic model so a whole conversation round-trips
through JSON for draft persistence.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ── Steps and sub-steps ───────────────────────────────────────────────────────

class Step(str, Enum):
    INTRO = "intro"
    PERSONAL = "personal"
    EDUCATION = "education"
    EXPERIENCE = "experience"
    PROJECTS = "projects"
    LANGUAGES = "languages"
    CERTIFICATES = "certificates"
    SKILLS = "skills"
    REVIEW = "review"
    COMPLETE = "complete"


STEP_ORDER: tuple[Step, ...] = tuple(Step)


class IntroSub(str, Enum):
    WELCOME = "welcome"


class PersonalSub(str, Enum):
    FULL_NAME = "fullName"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
    PORTFOLIO = "portfolio"


class EducationSub(str, Enum):
    SELECT_LEVEL = "selectLevel"
    INSTITUTION = "institution"
    COURSE = "course"
    DATES = "dates"
    ADD_MORE = "addMore"


class ExperienceSub(str, Enum):
    ADD_EXPERIENCE = "addExperience"
    COMPANY = "company"
    POSITION = "position"
    DATES = "dates"
    DESCRIPTION = "description"
    ADD_MORE = "addMore"


class ProjectSub(str, Enum):
    ADD_PROJECT = "addProject"
    NAME = "name"
    ROLE = "role"
    DATES = "dates"
    DESCRIPTION = "description"
    ADD_MORE = "addMore"


class LanguageSub(str, Enum):
    ADD_LANGUAGE = "addLanguage"
    SELECT_LEVEL = "selectLevel"
    ADD_MORE = "addMore"


class CertificateSub(str, Enum):
    ADD_CERTIFICATE = "addCertificate"
    NAME = "name"
    INSTITUTION = "institution"
    YEAR = "year"
    ADD_MORE = "addMore"


class SkillsSub(str, Enum):
    ADD_SKILLS = "addSkills"


class ReviewSub(str, Enum):
    REVIEWING = "reviewing"


class CompleteSub(str, Enum):
    DONE = "done"


SUB_STEPS: dict[Step, tuple[str, ...]] = {
    Step.INTRO: tuple(s.value for s in IntroSub),
    Step.PERSONAL: tuple(s.value for s in PersonalSub),
    Step.EDUCATION: tuple(s.value for s in EducationSub),
    Step.EXPERIENCE: tuple(s.value for s in ExperienceSub),
    Step.PROJECTS: tuple(s.value for s in ProjectSub),
    Step.LANGUAGES: tuple(s.value for s in LanguageSub),
    Step.CERTIFICATES: tuple(s.value for s in CertificateSub),
    Step.SKILLS: tuple(s.value for s in SkillsSub),
    Step.REVIEW: tuple(s.value for s in ReviewSub),
    Step.COMPLETE: tuple(s.value for s in CompleteSub),
}

STEP_DISPLAY_NAMES: dict[Step, str] = {
    Step.INTRO: "Introdução",
    Step.PERSONAL: "Informações Pessoais",
    Step.EDUCATION: "Formação Acadêmica",
    Step.EXPERIENCE: "Experiência Profissional",
    Step.PROJECTS: "Projetos",
    Step.LANGUAGES: "Idiomas",
    Step.CERTIFICATES: "Certificações",
    Step.SKILLS: "Habilidades",
    Step.REVIEW: "Revisão Final",
    Step.COMPLETE: "Concluído",
}


def first_sub_step(step: Step) -> str:
    return SUB_STEPS[step][0]


# ── Choice enums ──────────────────────────────────────────────────────────────

class EducationLevel(str, Enum):
    FUNDAMENTAL = "fundamental"
    MEDIO = "medio"
    TECNICO = "tecnico"
    SUPERIOR = "superior"
    POS_GRADUACAO = "pos-graduacao"
    MBA = "mba"
    MESTRADO = "mestrado"
    DOUTORADO = "doutorado"
    POS_DOUTORADO = "pos-doutorado"

    @property
    def display(self) -> str:
        return EDUCATION_LEVEL_DISPLAY[self]


EDUCATION_LEVEL_DISPLAY: dict[EducationLevel, str] = {
    EducationLevel.FUNDAMENTAL: "Ensino Fundamental",
    EducationLevel.MEDIO: "Ensino Médio",
    EducationLevel.TECNICO: "Curso Técnico",
    EducationLevel.SUPERIOR: "Ensino Superior",
    EducationLevel.POS_GRADUACAO: "Pós-graduação/Especialização",
    EducationLevel.MBA: "MBA",
    EducationLevel.MESTRADO: "Mestrado",
    EducationLevel.DOUTORADO: "Doutorado",
    EducationLevel.POS_DOUTORADO: "Pós-Doutorado",
}


class LanguageLevel(str, Enum):
    BASICO = "basico"
    INTERMEDIARIO = "intermediario"
    AVANCADO = "avancado"
    FLUENTE = "fluente"

    @property
    def display(self) -> str:
        return LANGUAGE_LEVEL_DISPLAY[self]


LANGUAGE_LEVEL_DISPLAY: dict[LanguageLevel, str] = {
    LanguageLevel.BASICO: "Básico",
    LanguageLevel.INTERMEDIARIO: "Intermediário",
    LanguageLevel.AVANCADO: "Avançado",
    LanguageLevel.FLUENTE: "Fluente",
}


# ── The record being built ────────────────────────────────────────────────────

class PersonalInfo(BaseModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    portfolio_url: Optional[str] = None

    def is_empty(self) -> bool:
        return not any([self.full_name, self.email, self.phone, self.address, self.portfolio_url])


class EducationEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    level: EducationLevel = EducationLevel.SUPERIOR
    institution: str = ""
    course: str = ""
    start_date: str = ""
    end_date: str = ""


class ExperienceEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    company: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    is_current_job: bool = False


class ProjectEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    role: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


class LanguageEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    level: LanguageLevel


class CertificateEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    institution: str = ""
    year: str = ""


class ConversationRecord(BaseModel):
    """The structured resume assembled one answer at a time."""

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    education: list[EducationEntry] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)
    certificates: list[CertificateEntry] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return self.personal_info.is_empty() and not any(
            [self.education, self.experience, self.projects, self.languages, self.certificates, self.skills]
        )


# Sections that hold repeatable entries, keyed by the step that collects them.
SECTION_FOR_STEP: dict[Step, str] = {
    Step.EDUCATION: "education",
    Step.EXPERIENCE: "experience",
    Step.PROJECTS: "projects",
    Step.LANGUAGES: "languages",
    Step.CERTIFICATES: "certificates",
    Step.SKILLS: "skills",
}


# ── Sequencer state ───────────────────────────────────────────────────────────

class SequencerState(BaseModel):
    """Where the conversation is, plus scratch data for an entry in progress."""

    model_config = ConfigDict(frozen=True)

    step: Step = Step.INTRO
    sub_step: str = IntroSub.WELCOME.value
    # Partially collected fields of the entry being built; empty otherwise.
    temp_data: dict[str, Any] = Field(default_factory=dict)
    # Entries committed in the current step (bounds "add another" loops).
    section_entries: int = 0
    # Set when the review step sends the user back to redo one section.
    return_to_review: bool = False

    @field_validator("sub_step", mode="before")
    @classmethod
    def _enum_to_value(cls, v):
        return v.value if isinstance(v, Enum) else v

    @model_validator(mode="after")
    def _sub_step_belongs_to_step(self) -> "SequencerState":
        if self.sub_step not in SUB_STEPS[self.step]:
            raise ValueError(f"Sub-step '{self.sub_step}' is not part of step '{self.step.value}'")
        return self

    @property
    def step_index(self) -> int:
        return STEP_ORDER.index(self.step)


# ── Transcript ────────────────────────────────────────────────────────────────

class ContentBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text", "code"]
    content: str
    language: Optional[str] = None


class TranscriptEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: Literal["assistant", "user"]
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    parsed_content: Optional[list[ContentBlock]] = None
    is_question: bool = False
    is_preview: bool = False
