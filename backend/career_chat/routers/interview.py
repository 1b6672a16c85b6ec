"""Interview simulator API — AI questions, scored answers and a final summary."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from career_chat.config import settings
from career_chat.dependencies import get_completer, get_interview_drafts, get_interviews
from career_chat.engine.conversation import ConversationBusy
from career_chat.engine.drafts import InterviewDraftStore
from career_chat.engine.interview import (
    Completer,
    InterviewConversation,
    InterviewDraft,
    InterviewRegistry,
    InterviewSession,
)
from career_chat.engine.state import TranscriptEntry
from career_chat.middleware.rate_limit import limiter
from career_chat.models.user import User
from career_chat.routers.auth import get_current_user
from career_chat.schemas.interview import AnswerRequest, InterviewResponse, StartInterviewRequest
from career_chat.services.ai_client import CompletionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview", tags=["interview"])

# ── Helpers ───────────────────────────────────────────────────────────────────

def _response(conversation: InterviewConversation, entries: list[TranscriptEntry]) -> InterviewResponse:
    session = conversation.session
    return InterviewResponse(
        phase=session.phase,
        level=session.level,
        skills=session.skills,
        current_question=session.current_question,
        total_questions=session.total_questions,
        progress=session.progress,
        average_score=round(session.average_score, 2),
        entries=entries,
    )


def _find(
    user_id: str,
    interviews: InterviewRegistry,
    drafts: InterviewDraftStore,
    completer: Completer,
) -> Optional[InterviewConversation]:
    conversation = interviews.get(user_id)
    if conversation is None:
        draft = drafts.load(user_id, InterviewDraft)
        if draft is not None:
            conversation = InterviewConversation.from_draft(completer, draft)
            interviews.put(user_id, conversation)
    if conversation is not None:
        conversation.completer = completer
    return conversation


def _require(
    user_id: str,
    interviews: InterviewRegistry,
    drafts: InterviewDraftStore,
    completer: Completer,
) -> InterviewConversation:
    conversation = _find(user_id, interviews, drafts, completer)
    if conversation is None:
        raise HTTPException(status_code=404, detail="No interview in progress")
    return conversation


def _persist(
    user_id: str,
    conversation: InterviewConversation,
    interviews: InterviewRegistry,
    drafts: InterviewDraftStore,
) -> None:
    if conversation.is_complete:
        interviews.pop(user_id)
        drafts.discard(user_id)
    else:
        drafts.save(user_id, conversation.to_draft())

# ── Endpoints ─────────────────────────────────────────────────────────────────

@router.post("/start", response_model=InterviewResponse)
def start_interview(
    req: Optional[StartInterviewRequest] = None,
    current_user: User = Depends(get_current_user),
    interviews: InterviewRegistry = Depends(get_interviews),
    drafts: InterviewDraftStore = Depends(get_interview_drafts),
    completer: Completer = Depends(get_completer),
):
    """Start a new interview, replacing any unfinished one."""
    req = req or StartInterviewRequest()
    session = InterviewSession(
        level=req.level or settings.INTERVIEW_DEFAULT_LEVEL,
        skills=req.skills or [s.strip() for s in settings.INTERVIEW_DEFAULT_SKILLS.split(",") if s.strip()],
        total_questions=req.total_questions or settings.INTERVIEW_TOTAL_QUESTIONS,
    )
    conversation = InterviewConversation(completer, session=session)
    entries = conversation.start()
    interviews.put(current_user.id, conversation)
    _persist(current_user.id, conversation, interviews, drafts)
    return _response(conversation, entries)


@router.post("/question", response_model=InterviewResponse)
@limiter.limit(settings.INTERVIEW_RATE_LIMIT)
async def next_question(
    request: Request,
    current_user: User = Depends(get_current_user),
    interviews: InterviewRegistry = Depends(get_interviews),
    drafts: InterviewDraftStore = Depends(get_interview_drafts),
    completer: Completer = Depends(get_completer),
):
    """Generate the next question (or a replacement for an unanswered one)."""
    conversation = _require(current_user.id, interviews, drafts, completer)
    try:
        entries = await conversation.ask_next_question()
    except ConversationBusy:
        raise HTTPException(status_code=409, detail="Still waiting for the previous reply")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CompletionError as e:
        logger.warning("Question generation failed for user %s: %s", current_user.id, e)
        raise HTTPException(status_code=502, detail=f"Não foi possível gerar a pergunta. {e}")
    _persist(current_user.id, conversation, interviews, drafts)
    return _response(conversation, entries)


@router.post("/answer", response_model=InterviewResponse)
@limiter.limit(settings.INTERVIEW_RATE_LIMIT)
async def submit_answer(
    request: Request,
    req: AnswerRequest,
    current_user: User = Depends(get_current_user),
    interviews: InterviewRegistry = Depends(get_interviews),
    drafts: InterviewDraftStore = Depends(get_interview_drafts),
    completer: Completer = Depends(get_completer),
):
    """Evaluate the answer to the open question."""
    conversation = _require(current_user.id, interviews, drafts, completer)
    try:
        entries = await conversation.answer(req.answer)
    except ConversationBusy:
        raise HTTPException(status_code=409, detail="Still waiting for the previous reply")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CompletionError as e:
        logger.warning("Answer evaluation failed for user %s: %s", current_user.id, e)
        raise HTTPException(status_code=502, detail=f"Não foi possível avaliar a resposta. Tente novamente. {e}")
    _persist(current_user.id, conversation, interviews, drafts)
    return _response(conversation, entries)


@router.get("/session", response_model=InterviewResponse)
def get_session(
    current_user: User = Depends(get_current_user),
    interviews: InterviewRegistry = Depends(get_interviews),
    drafts: InterviewDraftStore = Depends(get_interview_drafts),
    completer: Completer = Depends(get_completer),
):
    conversation = _require(current_user.id, interviews, drafts, completer)
    return _response(conversation, conversation.transcript.all())


@router.delete("/session")
def end_session(
    current_user: User = Depends(get_current_user),
    interviews: InterviewRegistry = Depends(get_interviews),
    drafts: InterviewDraftStore = Depends(get_interview_drafts),
):
    interviews.pop(current_user.id)
    drafts.discard(current_user.id)
    return {"status": "ok"}
