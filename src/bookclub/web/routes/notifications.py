"""Notification inbox endpoints."""

from fastapi import APIRouter, Depends, Query

from bookclub.core import notifications
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=100),
    user: UserRecord = Depends(get_current_user),
) -> dict:
    return notifications.list_for_user(user.id, unread_only=unread_only, limit=limit)


@router.post("/{notification_id}/read")
async def mark_read(notification_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    notifications.mark_read(user.id, notification_id)
    return {"message": "Notification marked as read"}
