"""Preferences API — onboarding flag and pending reminders."""

from fastapi import APIRouter, Depends

from career_chat.dependencies import get_kv_store, get_scheduler
from career_chat.models.user import User
from career_chat.routers.auth import get_current_user
from career_chat.services.kv_store import KeyValueStore, has_seen_onboarding, mark_onboarding_seen
from career_chat.services.notifications import NotificationScheduler

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("/onboarding")
def get_onboarding(
    current_user: User = Depends(get_current_user),
    kv: KeyValueStore = Depends(get_kv_store),
):
    return {"seen": has_seen_onboarding(kv, current_user.id)}


@router.post("/onboarding/seen")
def set_onboarding_seen(
    current_user: User = Depends(get_current_user),
    kv: KeyValueStore = Depends(get_kv_store),
):
    mark_onboarding_seen(kv, current_user.id)
    return {"seen": True}


@router.get("/reminders")
def list_reminders(
    current_user: User = Depends(get_current_user),
    scheduler: NotificationScheduler = Depends(get_scheduler),
):
    """Reminders scheduled for this user, soonest first."""
    return scheduler.pending_for(current_user.id)
