"""Daily reading streaks.

Dates are calendar days in UTC, stored as ``YYYY-MM-DD``. A streak
survives a one-day gap between logs; anything longer breaks it.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

import structlog

from bookclub.core.achievements import STREAK_DAYS, check_trigger
from bookclub.core.notifications import notify
from bookclub.db import streaks_repository as streaks_repo
from bookclub.db.streaks_repository import StreakRecord

logger = structlog.get_logger(__name__)

MILESTONE_INTERVAL = 7


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _days_since(last_reading_date: str | None, today: date) -> int | None:
    if not last_reading_date:
        return None
    return (today - date.fromisoformat(last_reading_date)).days


def get_streak(user_id: str, today: date | None = None) -> StreakRecord:
    """Current streak, reset to zero when the last log is older than yesterday."""
    today = today or today_utc()
    streak = streaks_repo.get_streak(user_id)
    if streak is None:
        return streaks_repo.save_streak(StreakRecord(user_id=user_id))

    gap = _days_since(streak.last_reading_date, today)
    if gap is not None and gap > 1 and streak.current_streak != 0:
        streak.current_streak = 0
        streak.streak_started_at = None
        streak = streaks_repo.save_streak(streak)
        logger.info("streak_reset", user_id=user_id, days_missed=gap)
    return streak


def log_reading(user_id: str, today: date | None = None) -> dict[str, Any]:
    """Record that the user read today.

    Returns:
        Dict with the streak, ``is_new_day`` and, on every 7th day, a
        milestone flag and message
    """
    today = today or today_utc()
    today_str = today.isoformat()
    streak = streaks_repo.get_streak(user_id)

    if streak is None or streak.last_reading_date is None:
        streak = StreakRecord(
            user_id=user_id,
            current_streak=1,
            longest_streak=max(1, streak.longest_streak if streak else 0),
            last_reading_date=today_str,
            streak_started_at=today_str,
            total_reading_days=(streak.total_reading_days if streak else 0) + 1,
        )
    else:
        gap = _days_since(streak.last_reading_date, today)
        if gap == 0:
            return {
                "streak": streak,
                "message": "Already logged reading for today",
                "is_new_day": False,
            }
        if gap == 1:
            streak.current_streak += 1
        else:
            streak.current_streak = 1
            streak.streak_started_at = today_str
        streak.longest_streak = max(streak.longest_streak, streak.current_streak)
        streak.total_reading_days += 1
        streak.last_reading_date = today_str

    streak = streaks_repo.save_streak(streak)
    logger.info("streak_updated", user_id=user_id, current=streak.current_streak)

    new_achievements = check_trigger(user_id, STREAK_DAYS, streak.current_streak)

    result: dict[str, Any] = {
        "streak": streak,
        "is_new_day": True,
        "new_achievements": new_achievements,
    }
    if streak.current_streak % MILESTONE_INTERVAL == 0:
        message = f"{streak.current_streak}-day streak!"
        notify(user_id, "streak", "Streak milestone", f"You're on a {message}")
        result["milestone"] = True
        result["message"] = message
    return result
