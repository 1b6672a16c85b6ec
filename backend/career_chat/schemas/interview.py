"""Interview simulator request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from career_chat.engine.state import TranscriptEntry


class StartInterviewRequest(BaseModel):
    level: Optional[str] = None
    skills: Optional[list[str]] = None
    total_questions: Optional[int] = Field(default=None, ge=1, le=20)


class AnswerRequest(BaseModel):
    answer: str


class InterviewResponse(BaseModel):
    phase: str
    level: str
    skills: list[str]
    current_question: int
    total_questions: int
    progress: int
    average_score: float
    entries: list[TranscriptEntry]
