"""Resume store — saved resume CRUD, per-user stats and HTML export."""

import uuid
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from career_chat.engine import preview
from career_chat.engine.state import ConversationRecord
from career_chat.models.saved_resume import SavedResume

UPDATABLE_FIELDS = ("title", "status", "is_public")
STATUSES = ("draft", "completed", "archived")


def save_resume(db: Session, user_id: str, record: ConversationRecord, title: str) -> SavedResume:
    """Persist a finalized record as a completed resume."""
    resume = SavedResume(
        id=str(uuid.uuid4()),
        user_id=user_id,
        title=title,
        resume_json=record.model_dump_json(),
        status="completed",
    )
    db.add(resume)
    db.commit()
    db.refresh(resume)
    return resume


def get_user_resumes(db: Session, user_id: str) -> list[SavedResume]:
    """Newest first."""
    return (
        db.query(SavedResume)
        .filter(SavedResume.user_id == user_id)
        .order_by(SavedResume.updated_at.desc())
        .all()
    )


def get_resume(db: Session, resume_id: str, user_id: Optional[str] = None) -> Optional[SavedResume]:
    query = db.query(SavedResume).filter(SavedResume.id == resume_id)
    if user_id is not None:
        query = query.filter(SavedResume.user_id == user_id)
    return query.first()


def update_resume(db: Session, resume_id: str, user_id: str, updates: dict) -> SavedResume:
    resume = get_resume(db, resume_id, user_id)
    if not resume:
        raise ValueError("Resume not found")

    for field, value in updates.items():
        if field not in UPDATABLE_FIELDS or value is None:
            continue
        if field == "status" and value not in STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(STATUSES)}")
        if field == "title" and not str(value).strip():
            raise ValueError("Title must not be empty")
        setattr(resume, field, value)

    db.commit()
    db.refresh(resume)
    return resume


def delete_resume(db: Session, resume_id: str, user_id: str) -> None:
    resume = get_resume(db, resume_id, user_id)
    if not resume:
        raise ValueError("Resume not found")
    db.delete(resume)
    db.commit()


def load_record(resume: SavedResume) -> ConversationRecord:
    return ConversationRecord.model_validate_json(resume.resume_json)


def export_html(db: Session, resume_id: str, user_id: str) -> str:
    """Render a saved resume as standalone HTML and count the download."""
    resume = get_resume(db, resume_id, user_id)
    if not resume:
        raise ValueError("Resume not found")

    html = preview.render_html(load_record(resume), resume.title)
    resume.download_count = (resume.download_count or 0) + 1
    db.commit()
    return html


def get_user_stats(db: Session, user_id: str) -> dict:
    rows = (
        db.query(SavedResume.status, func.count(SavedResume.id))
        .filter(SavedResume.user_id == user_id)
        .group_by(SavedResume.status)
        .all()
    )
    counts = {status: count for status, count in rows}
    total_downloads, last_activity = (
        db.query(func.coalesce(func.sum(SavedResume.download_count), 0), func.max(SavedResume.updated_at))
        .filter(SavedResume.user_id == user_id)
        .one()
    )
    return {
        "total_resumes": sum(counts.values()),
        "completed_resumes": counts.get("completed", 0),
        "draft_resumes": counts.get("draft", 0),
        "archived_resumes": counts.get("archived", 0),
        "total_downloads": int(total_downloads or 0),
        "last_activity": last_activity.isoformat() if last_activity else None,
    }
