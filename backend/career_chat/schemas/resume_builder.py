"""Resume builder request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from career_chat.engine.state import TranscriptEntry


class MessageRequest(BaseModel):
    message: str


class FinalizeRequest(BaseModel):
    title: Optional[str] = None


class ConversationResponse(BaseModel):
    step: str
    sub_step: str
    current_step_name: str
    progress: int
    is_complete: bool
    notice: Optional[str] = None
    saved_resume_id: Optional[str] = None
    entries: list[TranscriptEntry]


class PreviewResponse(BaseModel):
    preview: str
    progress: int


class DraftStatsResponse(BaseModel):
    has_active_draft: bool
    progress: int
    current_step: str
    last_modified: Optional[datetime] = None
    time_elapsed: str


class ResumeUpdateRequest(BaseModel):
    title: Optional[str] = None
    status: Optional[str] = None  # draft | completed | archived
    is_public: Optional[bool] = None


class SavedResumeResponse(BaseModel):
    id: str
    title: str
    status: str
    is_public: bool
    download_count: int
    created_at: str
    updated_at: str
    resume: Optional[dict] = None


class ResumeStatsResponse(BaseModel):
    total_resumes: int
    completed_resumes: int
    draft_resumes: int
    archived_resumes: int
    total_downloads: int
    last_activity: Optional[str] = None
