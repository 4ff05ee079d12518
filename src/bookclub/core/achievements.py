"""Achievement catalog, awards and trigger checks.

Achievements are awarded by other features (streaks, goals, reviews,
booklist) through ``award_achievement`` or ``check_trigger``. Every new
award creates an ``achievement`` notification.
"""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.core.notifications import notify
from bookclub.db import achievements_repository as achievements_repo
from bookclub.db.achievements_repository import AchievementRecord
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)

ACHIEVEMENT_TIERS = ["bronze", "silver", "gold", "platinum"]

# Requirement types used as check triggers
STREAK_DAYS = "streak_days"
GOALS_COMPLETED = "goals_completed"
BOOKS_READ = "books_read"
REVIEWS_WRITTEN = "reviews_written"

CATALOG: list[AchievementRecord] = [
    AchievementRecord("WEEK_WARRIOR", "Week Warrior", "Read 7 days in a row",
                      "streaks", "bronze", "flame", 50, STREAK_DAYS, 7),
    AchievementRecord("MONTH_MASTER", "Month Master", "Read 30 days in a row",
                      "streaks", "gold", "calendar", 200, STREAK_DAYS, 30),
    AchievementRecord("YEAR_LEGEND", "Year Legend", "Read 365 days in a row",
                      "streaks", "platinum", "crown", 1000, STREAK_DAYS, 365),
    AchievementRecord("FIRST_GOAL", "Goal Getter", "Complete your first reading goal",
                      "goals", "bronze", "target", 25, GOALS_COMPLETED, 1),
    AchievementRecord("GOAL_SETTER", "Goal Setter", "Complete 10 reading goals",
                      "goals", "silver", "trophy", 100, GOALS_COMPLETED, 10),
    AchievementRecord("GOAL_MASTER", "Goal Master", "Complete 50 reading goals",
                      "goals", "gold", "medal", 500, GOALS_COMPLETED, 50),
    AchievementRecord("FIRST_BOOK", "First Chapter", "Add your first book to your booklist",
                      "reading", "bronze", "book", 10, BOOKS_READ, 1),
    AchievementRecord("BOOKWORM", "Bookworm", "Add 25 books to your booklist",
                      "reading", "silver", "books", 150, BOOKS_READ, 25),
    AchievementRecord("FIRST_REVIEW", "Critic in Training", "Write your first review",
                      "reviews", "bronze", "pen", 10, REVIEWS_WRITTEN, 1),
    AchievementRecord("CRITIC", "Critic", "Write 10 reviews",
                      "reviews", "silver", "star", 100, REVIEWS_WRITTEN, 10),
]


def seed_catalog() -> int:
    """Insert or refresh the built-in catalog. Safe to run repeatedly."""
    for achievement in CATALOG:
        achievements_repo.upsert_achievement(achievement)
    logger.info("achievement_catalog_seeded", count=len(CATALOG))
    return len(CATALOG)


def _tier_index(tier: str) -> int:
    return ACHIEVEMENT_TIERS.index(tier) if tier in ACHIEVEMENT_TIERS else len(ACHIEVEMENT_TIERS)


def award_achievement(user_id: str, achievement_id: str) -> AchievementRecord | None:
    """Award an achievement and notify the user.

    Returns:
        The achievement when newly awarded, None if already earned or unknown
    """
    achievement = achievements_repo.get_achievement(achievement_id)
    if achievement is None:
        logger.warning("achievement_unknown", achievement_id=achievement_id)
        return None

    if not achievements_repo.award(user_id, achievement_id):
        return None

    notify(
        user_id,
        "achievement",
        "Achievement unlocked!",
        f"You earned {achievement.name}: {achievement.description}",
    )
    logger.info("achievement_awarded", user_id=user_id, achievement_id=achievement_id)
    return achievement


def check_trigger(user_id: str, trigger_type: str, value: int) -> list[AchievementRecord]:
    """Award every unearned achievement of this type whose requirement is met."""
    if not trigger_type:
        raise APIError.bad_request("trigger_type is required")

    earned = achievements_repo.earned_map(user_id)
    awarded: list[AchievementRecord] = []
    for achievement in achievements_repo.list_by_requirement(trigger_type):
        if achievement.id in earned or value < achievement.requirement_value:
            continue
        if award_achievement(user_id, achievement.id) is not None:
            awarded.append(achievement)
    return awarded


def get_catalog(user_id: str | None = None) -> list[dict[str, Any]]:
    """Catalog by category then tier, annotated with the user's awards."""
    catalog = sorted(
        achievements_repo.list_catalog(),
        key=lambda a: (a.category, _tier_index(a.tier)),
    )
    earned = achievements_repo.earned_map(user_id) if user_id else {}
    entries = []
    for achievement in catalog:
        entry: dict[str, Any] = dict(vars(achievement))
        if user_id:
            entry["earned"] = achievement.id in earned
            entry["earned_at"] = earned.get(achievement.id)
        entries.append(entry)
    return entries


def get_user_achievements(user_id: str) -> dict[str, Any]:
    awards = achievements_repo.list_user_achievements(user_id)
    return {
        "achievements": [
            {
                **vars(award.achievement),
                "earned_at": award.earned_at,
                "is_new": award.is_new,
                "displayed": award.displayed,
            }
            for award in awards
        ],
        "total_points": sum(award.achievement.points for award in awards),
        "new_achievements_count": sum(1 for award in awards if award.is_new),
    }


def mark_displayed(user_id: str, achievement_id: str) -> None:
    if not achievements_repo.mark_displayed(user_id, achievement_id):
        raise APIError.not_found("Achievement not earned")
