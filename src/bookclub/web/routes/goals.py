"""Reading goal endpoints."""

from fastapi import APIRouter, Depends, status

from bookclub.core import goals
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import GoalCreate, GoalProgress

router = APIRouter(prefix="/api/reading-goals", tags=["goals"])


@router.get("/my-goals")
async def my_goals(user: UserRecord = Depends(get_current_user)) -> dict:
    items = goals.list_goals(user.id)
    return {"goals": items, "count": len(items)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_goal(body: GoalCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    """Create a goal for the current day, week, month or year."""
    goal = goals.create_goal(user.id, body.goal_type, body.target_value, body.time_period)
    return {"goal": goals.with_percentage(goal)}


@router.put("/{goal_id}")
async def update_progress(
    goal_id: str,
    body: GoalProgress,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    return goals.update_progress(user.id, goal_id, body.current_progress)


@router.delete("/{goal_id}")
async def delete_goal(goal_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    goals.delete_goal(user.id, goal_id)
    return {"message": "Goal deleted"}
