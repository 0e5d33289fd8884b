"""Notification inbox API routes."""

from fastapi import APIRouter, Depends

from ..dependencies import get_current_user, get_notifier
from ..models.notification import Notification
from ..models.user import User
from ..notifications import Notifier

router = APIRouter()


@router.get("/notifications", response_model=list[Notification])
async def list_notifications(
    unread_only: bool = False,
    user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    """List the caller's notifications, newest first."""
    return await notifier.list_for_user(user.id, unread_only=unread_only)


@router.get("/notifications/unread-count")
async def unread_count(
    user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    return {"count": await notifier.unread_count(user.id)}


@router.post("/notifications/{notification_id}/read", response_model=Notification)
async def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    return await notifier.mark_read(user.id, notification_id)


@router.post("/notifications/read-all")
async def mark_all_read(
    user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    return {"status": "read", "count": await notifier.mark_all_read(user.id)}
