"""Achievement endpoints."""

from fastapi import APIRouter, Depends

from bookclub.core import achievements
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user, get_optional_user
from bookclub.web.schemas import AchievementCheck

router = APIRouter(prefix="/api/achievements", tags=["achievements"])


@router.get("/catalog")
async def catalog(user: UserRecord | None = Depends(get_optional_user)) -> dict:
    """The catalog, with earned flags for a logged-in user."""
    items = achievements.get_catalog(user.id if user else None)
    return {"achievements": items, "count": len(items)}


@router.get("/my-achievements")
async def my_achievements(user: UserRecord = Depends(get_current_user)) -> dict:
    return achievements.get_user_achievements(user.id)


@router.post("/check")
async def check(body: AchievementCheck, user: UserRecord = Depends(get_current_user)) -> dict:
    """Award every achievement the trigger value now satisfies."""
    awarded = achievements.check_trigger(user.id, body.trigger_type, body.value)
    return {"new_achievements": awarded}


@router.post("/{achievement_id}/mark-displayed")
async def mark_displayed(achievement_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    achievements.mark_displayed(user.id, achievement_id)
    return {"message": "Achievement marked as displayed"}
