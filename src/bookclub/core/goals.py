"""Reading goals over daily, weekly, monthly and yearly windows."""

from __future__ import annotations

import calendar
import sqlite3
from datetime import date, timedelta
from typing import Any

import structlog

from bookclub.core.achievements import GOALS_COMPLETED, check_trigger
from bookclub.core.streaks import today_utc
from bookclub.db import goals_repository as goals_repo
from bookclub.db.database import utc_now
from bookclub.db.goals_repository import GoalRecord
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)

TIME_PERIODS = ("daily", "weekly", "monthly", "yearly")


def goal_window(time_period: str, today: date) -> tuple[date, date]:
    """Start and end dates of the period containing ``today``.

    Weeks run Sunday to Saturday.
    """
    if time_period == "daily":
        return today, today
    if time_period == "weekly":
        # weekday(): Monday=0 .. Sunday=6
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if time_period == "monthly":
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)
    if time_period == "yearly":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    raise APIError.bad_request("Invalid time period", valid_periods=list(TIME_PERIODS))


def percentage(goal: GoalRecord) -> int:
    if goal.target_value <= 0:
        return 0
    return round(goal.current_progress / goal.target_value * 100)


def with_percentage(goal: GoalRecord) -> dict[str, Any]:
    return {**vars(goal), "percentage": percentage(goal)}


def list_goals(user_id: str) -> list[dict[str, Any]]:
    return [with_percentage(goal) for goal in goals_repo.list_goals(user_id)]


def create_goal(
    user_id: str,
    goal_type: str | None,
    target_value: Any,
    time_period: str | None,
    today: date | None = None,
) -> GoalRecord:
    """Create a goal for the current period window.

    Raises:
        APIError: 400 on invalid input, 409 if the same goal exists for this window
    """
    if not goal_type or not time_period:
        raise APIError.bad_request("goal_type, target_value and time_period are required")
    if not isinstance(target_value, int) or isinstance(target_value, bool) or target_value <= 0:
        raise APIError.bad_request("target_value must be a positive integer")
    if time_period not in TIME_PERIODS:
        raise APIError.bad_request("Invalid time period", valid_periods=list(TIME_PERIODS))

    start, end = goal_window(time_period, today or today_utc())
    try:
        goal = goals_repo.insert_goal(
            user_id, goal_type, target_value, time_period, start.isoformat(), end.isoformat()
        )
    except sqlite3.IntegrityError as e:
        raise APIError.conflict("A goal of this type already exists for this period") from e

    logger.info("goal_created", user_id=user_id, goal_type=goal_type, time_period=time_period)
    return goal


def _get_owned_goal(user_id: str, goal_id: str) -> GoalRecord:
    goal = goals_repo.get_goal(goal_id)
    if goal is None or goal.user_id != user_id:
        raise APIError.not_found("Goal not found")
    return goal


def update_progress(user_id: str, goal_id: str, current_progress: Any) -> dict[str, Any]:
    """Set goal progress, completing the goal when the target is reached.

    Returns:
        Dict with the updated goal, ``completed`` and any new achievements
    """
    if not isinstance(current_progress, int) or isinstance(current_progress, bool) or current_progress < 0:
        raise APIError.bad_request("current_progress must be a non-negative integer")

    goal = _get_owned_goal(user_id, goal_id)
    just_completed = current_progress >= goal.target_value and goal.status != "completed"

    status = "completed" if just_completed else goal.status
    completed_at = utc_now() if just_completed else goal.completed_at
    goals_repo.update_progress(goal_id, current_progress, status, completed_at)

    new_achievements = []
    if just_completed:
        logger.info("goal_completed", user_id=user_id, goal_id=goal_id)
        new_achievements = check_trigger(
            user_id, GOALS_COMPLETED, goals_repo.count_completed(user_id)
        )

    return {
        "goal": with_percentage(goals_repo.get_goal(goal_id)),
        "completed": just_completed,
        "new_achievements": new_achievements,
    }


def delete_goal(user_id: str, goal_id: str) -> None:
    _get_owned_goal(user_id, goal_id)
    goals_repo.delete_goal(goal_id)
