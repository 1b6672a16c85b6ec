"""Resume Builder API — the guided resume conversation and saved resumes.

The conversation itself lives in memory (one per user, see
ConversationRegistry); drafts are written to the key-value store in the
background and a finalized resume becomes a SavedResume row.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_chat.database import get_db
from career_chat.dependencies import get_registry, get_resume_drafts
from career_chat.engine.conversation import ConversationBusy, ConversationRegistry, ResumeConversation
from career_chat.engine.drafts import ResumeDraftStore
from career_chat.engine.state import ConversationRecord, TranscriptEntry
from career_chat.models.saved_resume import SavedResume
from career_chat.models.user import User
from career_chat.routers.auth import get_current_user
from career_chat.schemas.resume_builder import (
    ConversationResponse,
    DraftStatsResponse,
    FinalizeRequest,
    MessageRequest,
    PreviewResponse,
    ResumeStatsResponse,
    ResumeUpdateRequest,
    SavedResumeResponse,
)
from career_chat.services import resume_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resume-builder", tags=["resume-builder"])

# ── Helpers ───────────────────────────────────────────────────────────────────

def _conversation_response(
    conversation: ResumeConversation,
    entries: list[TranscriptEntry],
    notice: Optional[str] = None,
) -> ConversationResponse:
    saved_id = conversation.saved_resume_id
    return ConversationResponse(
        step=conversation.state.step.value,
        sub_step=conversation.state.sub_step,
        current_step_name=conversation.current_step_name(),
        progress=conversation.progress,
        is_complete=conversation.is_complete,
        notice=notice,
        saved_resume_id=str(saved_id) if saved_id is not None else None,
        entries=entries,
    )


def _finalizer(db: Session):
    def save(user_id: str, record: ConversationRecord, title: str) -> str:
        try:
            return resume_store.save_resume(db, user_id, record, title).id
        except SQLAlchemyError:
            db.rollback()
            raise
    return save


def _resume_response(resume: SavedResume, include_record: bool = False) -> SavedResumeResponse:
    return SavedResumeResponse(
        id=resume.id,
        title=resume.title,
        status=resume.status,
        is_public=resume.is_public,
        download_count=resume.download_count or 0,
        created_at=resume.created_at.isoformat(),
        updated_at=resume.updated_at.isoformat(),
        resume=json.loads(resume.resume_json) if include_record else None,
    )


def _busy() -> HTTPException:
    return HTTPException(status_code=409, detail="Still processing the previous message")

# ── Conversation ──────────────────────────────────────────────────────────────

@router.get("/session", response_model=ConversationResponse)
def get_session(
    current_user: User = Depends(get_current_user),
    registry: ConversationRegistry = Depends(get_registry),
    drafts: ResumeDraftStore = Depends(get_resume_drafts),
):
    """Open (or resume) the user's conversation and return its full transcript."""
    conversation = registry.get_or_open(current_user.id, drafts)
    return _conversation_response(conversation, conversation.transcript.all(), conversation.take_notice())


@router.post("/message", response_model=ConversationResponse)
def send_message(
    req: MessageRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registry: ConversationRegistry = Depends(get_registry),
    drafts: ResumeDraftStore = Depends(get_resume_drafts),
):
    """Answer the current question; returns only the new transcript entries."""
    conversation = registry.get_or_open(current_user.id, drafts)
    try:
        entries = conversation.submit(req.message, _finalizer(db))
    except ConversationBusy:
        raise _busy()
    registry.release_if_complete(current_user.id)
    return _conversation_response(conversation, entries)


@router.get("/preview", response_model=PreviewResponse)
def get_preview(
    current_user: User = Depends(get_current_user),
    registry: ConversationRegistry = Depends(get_registry),
    drafts: ResumeDraftStore = Depends(get_resume_drafts),
):
    conversation = registry.get_or_open(current_user.id, drafts)
    return PreviewResponse(preview=conversation.preview(), progress=conversation.progress)


@router.post("/finalize", response_model=ConversationResponse)
def finalize(
    req: FinalizeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    registry: ConversationRegistry = Depends(get_registry),
    drafts: ResumeDraftStore = Depends(get_resume_drafts),
):
    """Save the conversation as a resume. The draft is kept unless the save succeeds."""
    conversation = registry.get_or_open(current_user.id, drafts)
    try:
        entries = conversation.finalize(_finalizer(db), req.title)
    except ConversationBusy:
        raise _busy()

    if conversation.finalize_failed:
        raise HTTPException(status_code=502, detail=entries[-1].text)
    if not conversation.is_complete:
        raise HTTPException(status_code=400, detail=entries[-1].text)
    registry.release_if_complete(current_user.id)
    return _conversation_response(conversation, entries)


@router.delete("/draft")
def discard_draft(
    current_user: User = Depends(get_current_user),
    registry: ConversationRegistry = Depends(get_registry),
    drafts: ResumeDraftStore = Depends(get_resume_drafts),
):
    """Throw away the in-progress conversation and its draft."""
    registry.drop(current_user.id)
    drafts.discard(current_user.id)
    return {"status": "ok"}


@router.get("/draft/stats", response_model=DraftStatsResponse)
def draft_stats(
    current_user: User = Depends(get_current_user),
    registry: ConversationRegistry = Depends(get_registry),
    drafts: ResumeDraftStore = Depends(get_resume_drafts),
):
    # Write a pending save first so the numbers match the live conversation.
    conversation = registry.get(current_user.id)
    if conversation is not None:
        conversation.close()
    return DraftStatsResponse(**drafts.stats(current_user.id))

# ── Saved resumes ─────────────────────────────────────────────────────────────

@router.get("/resumes", response_model=list[SavedResumeResponse])
def list_resumes(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [_resume_response(r) for r in resume_store.get_user_resumes(db, current_user.id)]


@router.get("/resumes/{resume_id}", response_model=SavedResumeResponse)
def get_resume(
    resume_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    resume = resume_store.get_resume(db, resume_id, current_user.id)
    if not resume:
        raise HTTPException(status_code=404, detail="Resume not found")
    return _resume_response(resume, include_record=True)


@router.patch("/resumes/{resume_id}", response_model=SavedResumeResponse)
def update_resume(
    resume_id: str,
    req: ResumeUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        resume = resume_store.update_resume(db, resume_id, current_user.id, req.model_dump(exclude_none=True))
    except ValueError as e:
        status_code = 404 if "not found" in str(e) else 400
        raise HTTPException(status_code=status_code, detail=str(e))
    return _resume_response(resume)


@router.delete("/resumes/{resume_id}", status_code=204)
def delete_resume(
    resume_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        resume_store.delete_resume(db, resume_id, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/resumes/{resume_id}/export", response_class=HTMLResponse)
def export_resume(
    resume_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Standalone HTML version of a saved resume."""
    try:
        html = resume_store.export_html(db, resume_id, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return HTMLResponse(content=html)


@router.get("/stats", response_model=ResumeStatsResponse)
def resume_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ResumeStatsResponse(**resume_store.get_user_stats(db, current_user.id))
