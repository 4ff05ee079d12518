"""Reading streak endpoints."""

from fastapi import APIRouter, Depends

from bookclub.core import streaks
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user

router = APIRouter(prefix="/api/streaks", tags=["streaks"])


@router.get("/my-streak")
async def my_streak(user: UserRecord = Depends(get_current_user)) -> dict:
    """Current streak; a lapsed streak is reset to zero."""
    return {"streak": streaks.get_streak(user.id)}


@router.post("/update")
async def log_reading(user: UserRecord = Depends(get_current_user)) -> dict:
    """Log that the user read today."""
    return streaks.log_reading(user.id)
