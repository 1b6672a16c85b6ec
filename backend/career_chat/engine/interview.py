"""Interview simulator — AI-generated questions, scored answers, final summary.

The completion call is injected, so the flow can be driven by the real
AI client or by a fake in tests. A failed completion raises and leaves the
session exactly as it was.
"""

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal, Optional

from pydantic import BaseModel, Field

from career_chat.config import settings
from career_chat.engine import prompts
from career_chat.engine.conversation import ConversationBusy
from career_chat.engine.state import TranscriptEntry
from career_chat.engine.transcript import Transcript, new_entry

logger = logging.getLogger(__name__)

Completer = Callable[[str], Awaitable[str]]

SCORE_RE = re.compile(r"(?:Nota|Score):\s*(\d+)\s*/\s*10", re.IGNORECASE)
DEFAULT_SCORE = 5


class InterviewResponse(BaseModel):
    question_id: str
    question: str
    answer: str
    score: int
    feedback: str


class InterviewSession(BaseModel):
    phase: Literal["intro", "interview", "complete"] = "intro"
    level: str = "Mid"
    skills: list[str] = Field(default_factory=list)
    total_questions: int = 8
    current_question: int = 0
    score_total: int = 0
    responses: list[InterviewResponse] = Field(default_factory=list)
    # Question the next answer belongs to; None between questions.
    active_question_id: Optional[str] = None
    started_at: Optional[datetime] = None

    @property
    def progress(self) -> int:
        if self.total_questions <= 0:
            return 0
        return round(len(self.responses) / self.total_questions * 100)

    @property
    def average_score(self) -> float:
        return self.score_total / len(self.responses) if self.responses else 0.0


class InterviewDraft(BaseModel):
    session: InterviewSession
    transcript: list[TranscriptEntry] = Field(default_factory=list)


# ── Scoring and summary ───────────────────────────────────────────────────────

def extract_score(feedback: str) -> int:
    """Read "Nota: X/10" from the evaluation; 5 when absent, clamped to 0-10."""
    match = SCORE_RE.search(feedback)
    if not match:
        return DEFAULT_SCORE
    return max(0, min(10, int(match.group(1))))


def performance_level(average: float) -> str:
    if average >= 8.5:
        return "🏆 Excelente"
    if average >= 7:
        return "🌟 Muito Bom"
    if average >= 5.5:
        return "✅ Bom"
    if average >= 4:
        return "⚠️ Regular"
    return "❌ Precisa Melhorar"


def detailed_feedback(average: float) -> str:
    if average >= 8.5:
        return (
            "Excelente performance! Você demonstrou conhecimento sólido, comunicação clara e experiência "
            "prática. Está bem preparado para posições de nível sênior."
        )
    if average >= 7:
        return (
            "Muito bom desempenho! Você tem base técnica sólida, mas pode aprimorar alguns aspectos "
            "específicos para maximizar suas chances."
        )
    if average >= 5.5:
        return (
            "Bom desempenho geral. Você tem potencial, mas precisa aprofundar conhecimentos técnicos e "
            "melhorar a estruturação das respostas."
        )
    if average >= 4:
        return "Performance regular. Recomendo mais estudos técnicos e prática em entrevistas antes de candidatar-se a posições."
    return "Precisa de mais preparação. Foque em estudar conceitos fundamentais e pratique mais simulações de entrevista."


def recommendations(average: float) -> str:
    items = []
    if average < 7:
        items.append("📚 **Estudo técnico**: Revise conceitos fundamentais das suas tecnologias principais")
        items.append("💬 **Comunicação**: Pratique explicar conceitos técnicos de forma clara e objetiva")
    if average < 6:
        items.append("🎯 **Projetos práticos**: Desenvolva mais projetos para ter exemplos concretos")
    if average >= 7:
        items.append("🚀 **Candidaturas**: Você está pronto para se candidatar a vagas do seu nível")
        items.append("📈 **Próximo nível**: Considere estudar temas de nível superior para evolução")
    items.append("🔄 **Prática contínua**: Refaça simulações periodicamente para manter-se afiado")
    return "\n".join(items)


# ── Conversation ──────────────────────────────────────────────────────────────

class InterviewConversation:
    def __init__(
        self,
        completer: Completer,
        session: Optional[InterviewSession] = None,
        transcript: Optional[Transcript] = None,
    ):
        self.completer = completer
        self.session = session or InterviewSession(
            level=settings.INTERVIEW_DEFAULT_LEVEL,
            skills=[s.strip() for s in settings.INTERVIEW_DEFAULT_SKILLS.split(",") if s.strip()],
            total_questions=settings.INTERVIEW_TOTAL_QUESTIONS,
        )
        self.transcript = transcript or Transcript()
        self._busy = False

    @classmethod
    def from_draft(cls, completer: Completer, draft: InterviewDraft) -> "InterviewConversation":
        return cls(completer, session=draft.session, transcript=Transcript(draft.transcript))

    def to_draft(self) -> InterviewDraft:
        return InterviewDraft(session=self.session, transcript=self.transcript.all())

    @property
    def is_complete(self) -> bool:
        return self.session.phase == "complete"

    def start(self) -> list[TranscriptEntry]:
        """Show the welcome message and open the interview phase."""
        if self.session.phase != "intro":
            raise ValueError("Interview already started")
        welcome = prompts.INTERVIEW_WELCOME.format(level=self.session.level, total=self.session.total_questions)
        entry = self.transcript.append(new_entry("assistant", welcome, prefix="welcome"))
        self.session = self.session.model_copy(
            update={"phase": "interview", "started_at": datetime.now(timezone.utc)}
        )
        return [entry]

    async def ask_next_question(self) -> list[TranscriptEntry]:
        """Generate the next question. Calling it again before answering replaces the question."""
        session = self.session
        if session.phase != "interview":
            raise ValueError("Interview is not in progress")
        if session.current_question >= session.total_questions:
            raise ValueError("All questions have been asked")

        prompt = prompts.QUESTION_PROMPT.format(
            level=session.level,
            number=session.current_question + 1,
            total=session.total_questions,
            skills=", ".join(session.skills),
        )
        async with self._exclusive():
            text = await self.completer(prompt)

        entry = self.transcript.append(new_entry("assistant", text, prefix="question", is_question=True))
        self.session = session.model_copy(update={"active_question_id": entry.id})
        return [entry]

    async def answer(self, text: str) -> list[TranscriptEntry]:
        """Evaluate the answer to the active question; completes after the last one."""
        session = self.session
        if session.phase != "interview" or session.active_question_id is None:
            raise ValueError("There is no open question to answer")
        answer = text.strip()
        if not answer:
            raise ValueError("Answer must not be empty")

        question = self.transcript.find(session.active_question_id)
        question_text = question.text if question else ""
        prompt = prompts.EVALUATION_PROMPT.format(
            number=session.current_question + 1,
            total=session.total_questions,
            level=session.level,
            question=question_text,
            answer=answer,
        )
        async with self._exclusive():
            feedback = await self.completer(prompt)

        score = extract_score(feedback)
        response = InterviewResponse(
            question_id=session.active_question_id,
            question=question_text,
            answer=answer,
            score=score,
            feedback=feedback,
        )
        start = len(self.transcript)
        self.transcript.append(new_entry("user", answer))
        self.transcript.append(new_entry("assistant", feedback, prefix="feedback"))

        self.session = session.model_copy(
            update={
                "responses": [*session.responses, response],
                "score_total": session.score_total + score,
                "current_question": session.current_question + 1,
                "active_question_id": None,
            }
        )
        logger.info("Interview answer %d/%d scored %d", self.session.current_question, session.total_questions, score)

        if self.session.current_question >= self.session.total_questions:
            self._complete()
        return self.transcript.all()[start:]

    def _complete(self) -> None:
        session = self.session
        average = session.average_score
        started = session.started_at or datetime.now(timezone.utc)
        minutes = int((datetime.now(timezone.utc) - started).total_seconds() // 60)
        summary = prompts.INTERVIEW_SUMMARY.format(
            average=average,
            performance=performance_level(average),
            minutes=minutes,
            answered=f"{len(session.responses)}/{session.total_questions}",
            feedback=detailed_feedback(average),
            next_steps=recommendations(average),
        )
        self.transcript.append(new_entry("assistant", summary, prefix="summary"))
        self.session = session.model_copy(update={"phase": "complete"})

    def _exclusive(self) -> "_BusyGuard":
        return _BusyGuard(self)


class _BusyGuard:
    """Rejects a second remote call while one is in flight for the same interview."""

    def __init__(self, conversation: InterviewConversation):
        self.conversation = conversation

    async def __aenter__(self):
        if self.conversation._busy:
            raise ConversationBusy("interview")
        self.conversation._busy = True

    async def __aexit__(self, exc_type, exc, tb):
        self.conversation._busy = False
        return False


class InterviewRegistry:
    """Live interviews keyed by user id; finished ones are released."""

    def __init__(self):
        self._interviews: dict[str, InterviewConversation] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[InterviewConversation]:
        with self._lock:
            return self._interviews.get(user_id)

    def put(self, user_id: str, conversation: InterviewConversation) -> None:
        with self._lock:
            self._interviews[user_id] = conversation

    def pop(self, user_id: str) -> Optional[InterviewConversation]:
        with self._lock:
            return self._interviews.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._interviews)
