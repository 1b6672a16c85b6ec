"""Step sequencer — the pure reducer that drives the resume conversation.

advance(state, user_input) never touches the record. It returns the next
SequencerState, the assistant prompt to show, and a list of FieldUpdate
instructions that the collector applies. temp_data is carried through
unchanged; only the collector fills and clears it.

Flow: intro → personal → education → experience → projects → languages →
certificates → skills → review → complete
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from career_chat.config import settings
from career_chat.engine import prompts
from career_chat.engine.state import (
    CertificateSub,
    EducationLevel,
    EducationSub,
    ExperienceSub,
    LanguageLevel,
    LanguageSub,
    PersonalSub,
    ProjectSub,
    SequencerState,
    STEP_ORDER,
    STEP_DISPLAY_NAMES,
    Step,
    first_sub_step,
)


class Command(str, Enum):
    NONE = "none"
    PREVIEW = "preview"
    FINISH = "finish"


class FieldUpdate(BaseModel):
    """One write for the collector.

    target:
      personal       set personal_info.<key> = value
      temp           set temp_data[key] = value
      commit         build an entry for section <key> from temp_data + value
      skills         replace skills from the comma-separated value
      reset_section  empty section <key>
    """

    model_config = ConfigDict(frozen=True)

    target: str
    key: str = ""
    value: Any = None


class Transition(BaseModel):
    state: SequencerState
    prompt: str
    updates: list[FieldUpdate] = Field(default_factory=list)
    command: Command = Command.NONE


PREVIEW_WORDS = {"preview", "visualizar"}
FINISH_WORDS = {"finalizar", "finish", "done"}
NEGATIVE_WORDS = {"não", "nao", "no", "n", "nope", "nenhum", "nenhuma", "none"}
CURRENT_JOB_WORDS = ("atual", "cursando", "presente", "present", "current")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Review-step section names (English and Portuguese); the whole reply must be one of them.
SECTION_ALIASES: list[tuple[Step, tuple[str, ...]]] = [
    (Step.PERSONAL, ("dados pessoais", "informações pessoais", "informacoes pessoais", "pessoal", "personal")),
    (Step.EDUCATION, ("educação", "educacao", "formação", "formacao", "formação acadêmica", "formacao academica", "education")),
    (Step.EXPERIENCE, ("experiência", "experiencia", "experiências", "experiencias", "experiência profissional",
                       "experiencia profissional", "experience")),
    (Step.PROJECTS, ("projetos", "projeto", "projects")),
    (Step.LANGUAGES, ("idiomas", "idioma", "languages")),
    (Step.CERTIFICATES, ("certificados", "certificado", "certificações", "certificacoes", "certificates")),
    (Step.SKILLS, ("habilidades", "habilidade", "competências", "competencias", "skills")),
]

# Leading words allowed before a section name: "refazer a seção experiência".
SECTION_FILLER = {"refazer", "editar", "revisar", "alterar", "mudar", "a", "o", "as", "os", "seção", "secao", "de", "da", "do"}


# ── Input helpers ─────────────────────────────────────────────────────────────

def _first_word(text: str) -> str:
    words = text.strip().lower().split()
    return words[0].strip(".,!;:") if words else ""


def is_negative(text: str) -> bool:
    return _first_word(text) in NEGATIVE_WORDS


def is_affirmative(text: str) -> bool:
    """Yes when the answer contains "sim"/"s" (or "y"), unless it is a plain no."""
    if is_negative(text):
        return False
    lowered = text.strip().lower()
    return any(token in lowered for token in ("sim", "s", "y"))


def is_valid_email(text: str) -> bool:
    return bool(EMAIL_RE.match(text.strip()))


def format_phone(phone: str) -> str:
    """Normalize 10/11-digit numbers to "(11) 99999-9999"; anything else is kept as typed."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return phone.strip()


def parse_date_range(text: str) -> Optional[tuple[str, str]]:
    """"2020 - 2024" → ("2020", "2024"); None unless exactly two non-empty parts."""
    separator = " - " if " - " in text else "-"
    parts = [p.strip() for p in text.split(separator)]
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def match_choice(text: str, options: list[Enum], display: Callable[[Enum], str]) -> Optional[Enum]:
    """Match a numbered option by exact numeral or by name containment.

    The longest matching name wins, so "pós-doutorado" is not read as
    "doutorado".
    """
    lowered = text.strip().lower()
    if lowered.isdigit():
        i = int(lowered) - 1
        return options[i] if 0 <= i < len(options) else None

    best, best_len = None, 0
    for option in options:
        for name in (option.value, display(option).lower()):
            if name in lowered and len(name) > best_len:
                best, best_len = option, len(name)
    return best


def _match_section(text: str) -> Optional[Step]:
    """The section named by the whole reply, ignoring leading filler words."""
    words = [w.strip(".,!;:?\"'") for w in text.strip().lower().split()]
    while words and words[0] in SECTION_FILLER:
        words.pop(0)
    name = " ".join(w for w in words if w)
    for step, aliases in SECTION_ALIASES:
        if name in aliases:
            return step
    return None


# ── Transition builders ───────────────────────────────────────────────────────

def _move(state: SequencerState, **changes) -> SequencerState:
    # Rebuild instead of model_copy so the step/sub-step check runs.
    data = state.model_dump()
    data.update(changes)
    return SequencerState(**data)


def _stay(state: SequencerState, prompt: str, command: Command = Command.NONE) -> Transition:
    return Transition(state=state, prompt=prompt, command=command)


def _to(state: SequencerState, sub_step: Enum, prompt: str, updates: Optional[list[FieldUpdate]] = None, **changes) -> Transition:
    return Transition(state=_move(state, sub_step=sub_step, **changes), prompt=prompt, updates=updates or [])


STEP_START: dict[Step, str] = {
    Step.PERSONAL: "Para começar, me conte: **Qual é o seu nome completo (nome e sobrenome)?**",
    Step.EDUCATION: prompts.START_EDUCATION,
    Step.EXPERIENCE: prompts.START_EXPERIENCE,
    Step.PROJECTS: prompts.START_PROJECTS,
    Step.LANGUAGES: prompts.START_LANGUAGES,
    Step.CERTIFICATES: prompts.START_CERTIFICATES,
    Step.SKILLS: prompts.START_SKILLS,
    Step.REVIEW: prompts.START_REVIEW,
}


def _enter(state: SequencerState, step: Step, prefix: str = "", updates: Optional[list[FieldUpdate]] = None, **changes) -> Transition:
    new_state = _move(
        state,
        step=step,
        sub_step=first_sub_step(step),
        section_entries=0,
        **changes,
    )
    return Transition(state=new_state, prompt=prefix + STEP_START.get(step, ""), updates=updates or [])


def _leave(state: SequencerState, prefix: str = "", updates: Optional[list[FieldUpdate]] = None) -> Transition:
    """Exit the current step: on to the next one, or back to review after a redo."""
    if state.return_to_review:
        new_state = _move(state, step=Step.REVIEW, sub_step=first_sub_step(Step.REVIEW), section_entries=0, return_to_review=False)
        return Transition(state=new_state, prompt=prefix + prompts.BACK_TO_REVIEW, updates=updates or [])
    next_step = STEP_ORDER[state.step_index + 1]
    return _enter(state, next_step, prefix, updates)


def _after_commit(state: SequencerState, section: str, values: dict, added_prompt: str, add_more: Enum, max_entries: int) -> Transition:
    update = FieldUpdate(target="commit", key=section, value=values)
    count = state.section_entries + 1
    if count >= max_entries:
        prefix = prompts.SECTION_LIMIT_REACHED.format(limit=max_entries)
        return _leave(_move(state, section_entries=count), prefix, [update])
    return _to(state, add_more, added_prompt, [update], section_entries=count)


def _reprompt(state: SequencerState) -> Transition:
    return _stay(state, prompts.GENERIC_REPROMPT)


# ── Step handlers ─────────────────────────────────────────────────────────────

def _intro(state: SequencerState, text: str, max_entries: int) -> Transition:
    name = text.strip()
    updates = [FieldUpdate(target="personal", key="full_name", value=name)]
    new_state = _move(state, step=Step.PERSONAL, sub_step=PersonalSub.EMAIL, section_entries=0)
    return Transition(state=new_state, prompt=prompts.ASK_EMAIL.format(name=name), updates=updates)


def _personal(state: SequencerState, text: str, max_entries: int) -> Transition:
    sub = state.sub_step
    value = text.strip()

    if sub == PersonalSub.FULL_NAME:
        return _to(state, PersonalSub.EMAIL, prompts.ASK_EMAIL.format(name=value),
                   [FieldUpdate(target="personal", key="full_name", value=value)])

    if sub == PersonalSub.EMAIL:
        if not is_valid_email(value):
            return _stay(state, prompts.INVALID_EMAIL)
        return _to(state, PersonalSub.PHONE, prompts.ASK_PHONE,
                   [FieldUpdate(target="personal", key="email", value=value)])

    if sub == PersonalSub.PHONE:
        return _to(state, PersonalSub.ADDRESS, prompts.ASK_ADDRESS,
                   [FieldUpdate(target="personal", key="phone", value=format_phone(value))])

    if sub == PersonalSub.ADDRESS:
        return _to(state, PersonalSub.PORTFOLIO, prompts.ASK_PORTFOLIO,
                   [FieldUpdate(target="personal", key="address", value=value)])

    if sub == PersonalSub.PORTFOLIO:
        if is_negative(value):
            return _leave(state, prompts.PORTFOLIO_SKIPPED)
        return _leave(state, prompts.PORTFOLIO_ADDED,
                      [FieldUpdate(target="personal", key="portfolio_url", value=value)])

    return _reprompt(state)


def _education(state: SequencerState, text: str, max_entries: int) -> Transition:
    sub = state.sub_step
    value = text.strip()

    if sub == EducationSub.SELECT_LEVEL:
        level = match_choice(value, list(EducationLevel), lambda o: o.display)
        if level is None:
            if is_negative(value):
                return _leave(state)
            return _stay(state, prompts.INVALID_EDUCATION_LEVEL)
        return _to(state, EducationSub.INSTITUTION, prompts.ASK_INSTITUTION.format(level=level.display),
                   [FieldUpdate(target="temp", key="level", value=level.value)])

    if sub == EducationSub.INSTITUTION:
        return _to(state, EducationSub.COURSE, prompts.ASK_COURSE,
                   [FieldUpdate(target="temp", key="institution", value=value)])

    if sub == EducationSub.COURSE:
        return _to(state, EducationSub.DATES, prompts.ASK_DATES,
                   [FieldUpdate(target="temp", key="course", value=value)])

    if sub == EducationSub.DATES:
        dates = parse_date_range(value)
        if dates is None:
            return _stay(state, prompts.INVALID_DATES)
        return _after_commit(state, "education", {"start_date": dates[0], "end_date": dates[1]},
                             prompts.EDUCATION_ADDED, EducationSub.ADD_MORE, max_entries)

    if sub == EducationSub.ADD_MORE:
        if is_affirmative(value):
            return _to(state, EducationSub.SELECT_LEVEL, prompts.ASK_EDUCATION_LEVEL)
        return _leave(state)

    return _reprompt(state)


def _experience(state: SequencerState, text: str, max_entries: int) -> Transition:
    sub = state.sub_step
    value = text.strip()

    if sub in (ExperienceSub.ADD_EXPERIENCE, ExperienceSub.ADD_MORE):
        if is_affirmative(value):
            return _to(state, ExperienceSub.COMPANY, prompts.ASK_COMPANY)
        return _leave(state)

    if sub == ExperienceSub.COMPANY:
        return _to(state, ExperienceSub.POSITION, prompts.ASK_POSITION,
                   [FieldUpdate(target="temp", key="company", value=value)])

    if sub == ExperienceSub.POSITION:
        return _to(state, ExperienceSub.DATES, prompts.ASK_DATES,
                   [FieldUpdate(target="temp", key="position", value=value)])

    if sub == ExperienceSub.DATES:
        dates = parse_date_range(value)
        if dates is None:
            return _stay(state, prompts.INVALID_DATES)
        current = any(word in dates[1].lower() for word in CURRENT_JOB_WORDS)
        return _to(state, ExperienceSub.DESCRIPTION, prompts.ASK_EXPERIENCE_DESCRIPTION, [
            FieldUpdate(target="temp", key="start_date", value=dates[0]),
            FieldUpdate(target="temp", key="end_date", value=dates[1]),
            FieldUpdate(target="temp", key="is_current_job", value=current),
        ])

    if sub == ExperienceSub.DESCRIPTION:
        return _after_commit(state, "experience", {"description": value},
                             prompts.EXPERIENCE_ADDED, ExperienceSub.ADD_MORE, max_entries)

    return _reprompt(state)


def _projects(state: SequencerState, text: str, max_entries: int) -> Transition:
    sub = state.sub_step
    value = text.strip()

    if sub in (ProjectSub.ADD_PROJECT, ProjectSub.ADD_MORE):
        if is_affirmative(value):
            return _to(state, ProjectSub.NAME, prompts.ASK_PROJECT_NAME)
        return _leave(state)

    if sub == ProjectSub.NAME:
        return _to(state, ProjectSub.ROLE, prompts.ASK_PROJECT_ROLE,
                   [FieldUpdate(target="temp", key="name", value=value)])

    if sub == ProjectSub.ROLE:
        return _to(state, ProjectSub.DATES, prompts.ASK_DATES,
                   [FieldUpdate(target="temp", key="role", value=value)])

    if sub == ProjectSub.DATES:
        dates = parse_date_range(value)
        if dates is None:
            return _stay(state, prompts.INVALID_DATES)
        return _to(state, ProjectSub.DESCRIPTION, prompts.ASK_PROJECT_DESCRIPTION, [
            FieldUpdate(target="temp", key="start_date", value=dates[0]),
            FieldUpdate(target="temp", key="end_date", value=dates[1]),
        ])

    if sub == ProjectSub.DESCRIPTION:
        return _after_commit(state, "projects", {"description": value},
                             prompts.PROJECT_ADDED, ProjectSub.ADD_MORE, max_entries)

    return _reprompt(state)


def _languages(state: SequencerState, text: str, max_entries: int) -> Transition:
    sub = state.sub_step
    value = text.strip()

    if sub == LanguageSub.ADD_LANGUAGE:
        if is_negative(value):
            return _leave(state)
        return _to(state, LanguageSub.SELECT_LEVEL, prompts.ASK_LANGUAGE_LEVEL.format(name=value),
                   [FieldUpdate(target="temp", key="name", value=value)])

    if sub == LanguageSub.SELECT_LEVEL:
        level = match_choice(value, list(LanguageLevel), lambda o: o.display)
        if level is None:
            return _stay(state, prompts.INVALID_LANGUAGE_LEVEL)
        return _after_commit(state, "languages", {"level": level.value},
                             prompts.LANGUAGE_ADDED, LanguageSub.ADD_MORE, max_entries)

    if sub == LanguageSub.ADD_MORE:
        if is_affirmative(value):
            return _to(state, LanguageSub.ADD_LANGUAGE, prompts.ASK_LANGUAGE_NAME)
        return _leave(state)

    return _reprompt(state)


def _certificates(state: SequencerState, text: str, max_entries: int) -> Transition:
    sub = state.sub_step
    value = text.strip()

    if sub in (CertificateSub.ADD_CERTIFICATE, CertificateSub.ADD_MORE):
        if is_affirmative(value):
            return _to(state, CertificateSub.NAME, prompts.ASK_CERTIFICATE_NAME)
        return _leave(state)

    if sub == CertificateSub.NAME:
        return _to(state, CertificateSub.INSTITUTION, prompts.ASK_CERTIFICATE_INSTITUTION,
                   [FieldUpdate(target="temp", key="name", value=value)])

    if sub == CertificateSub.INSTITUTION:
        return _to(state, CertificateSub.YEAR, prompts.ASK_CERTIFICATE_YEAR,
                   [FieldUpdate(target="temp", key="institution", value=value)])

    if sub == CertificateSub.YEAR:
        return _after_commit(state, "certificates", {"year": value},
                             prompts.CERTIFICATE_ADDED, CertificateSub.ADD_MORE, max_entries)

    return _reprompt(state)


def _skills(state: SequencerState, text: str, max_entries: int) -> Transition:
    return _leave(state, updates=[FieldUpdate(target="skills", value=text)])


def _review(state: SequencerState, text: str, max_entries: int) -> Transition:
    lowered = text.strip().lower()

    if lowered in ("download", "baixar"):
        return _stay(state, prompts.DOWNLOAD_INFO)

    section = _match_section(lowered)
    if section is not None:
        key = "personal" if section == Step.PERSONAL else section.value
        transition = _enter(state, section, updates=[FieldUpdate(target="reset_section", key=key)], return_to_review=True)
        prompt = prompts.RESTART_SECTION.format(section=STEP_DISPLAY_NAMES[section], prompt=transition.prompt)
        return transition.model_copy(update={"prompt": prompt})

    return _stay(state, "", Command.PREVIEW)


def _complete(state: SequencerState, text: str, max_entries: int) -> Transition:
    return _stay(state, prompts.ALREADY_COMPLETE)


HANDLERS: dict[Step, Callable[[SequencerState, str, int], Transition]] = {
    Step.INTRO: _intro,
    Step.PERSONAL: _personal,
    Step.EDUCATION: _education,
    Step.EXPERIENCE: _experience,
    Step.PROJECTS: _projects,
    Step.LANGUAGES: _languages,
    Step.CERTIFICATES: _certificates,
    Step.SKILLS: _skills,
    Step.REVIEW: _review,
    Step.COMPLETE: _complete,
}


def advance(state: SequencerState, user_input: str, max_entries: Optional[int] = None) -> Transition:
    """Compute the next state and assistant prompt for one user answer."""
    command_word = user_input.strip().lower()
    if command_word in PREVIEW_WORDS:
        return _stay(state, "", Command.PREVIEW)
    if command_word in FINISH_WORDS:
        return _stay(state, "", Command.FINISH)
    if not command_word:
        return _reprompt(state)

    handler = HANDLERS.get(state.step)
    if handler is None:
        return _reprompt(state)
    return handler(state, user_input, max_entries or settings.MAX_SECTION_ENTRIES)
