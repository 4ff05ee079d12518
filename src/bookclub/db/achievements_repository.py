"""Repository functions for the achievement catalog and user awards."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from bookclub.db.database import get_db, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class AchievementRecord:
    """Catalog achievement."""

    id: str
    name: str
    description: str
    category: str
    tier: str
    icon: str
    points: int
    requirement_type: str
    requirement_value: int


@dataclass
class UserAchievementRecord:
    """Achievement earned by a user, with catalog fields joined in."""

    achievement: AchievementRecord
    earned_at: str
    is_new: bool
    displayed: bool


@db_retry
def upsert_achievement(achievement: AchievementRecord) -> None:
    """Insert or refresh a catalog entry."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO achievements (
                id, name, description, category, tier, icon, points,
                requirement_type, requirement_value
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                category = excluded.category,
                tier = excluded.tier,
                icon = excluded.icon,
                points = excluded.points,
                requirement_type = excluded.requirement_type,
                requirement_value = excluded.requirement_value
            """,
            (
                achievement.id,
                achievement.name,
                achievement.description,
                achievement.category,
                achievement.tier,
                achievement.icon,
                achievement.points,
                achievement.requirement_type,
                achievement.requirement_value,
            ),
        )


@db_retry
def get_achievement(achievement_id: str) -> AchievementRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM achievements WHERE id = ?", (achievement_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def list_catalog() -> list[AchievementRecord]:
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM achievements").fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def list_by_requirement(requirement_type: str) -> list[AchievementRecord]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM achievements WHERE requirement_type = ? ORDER BY requirement_value",
            (requirement_type,),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def award(user_id: str, achievement_id: str) -> bool:
    """Record an award.

    Returns:
        True if newly awarded, False if the user already had it
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO user_achievements (user_id, achievement_id, earned_at, is_new, displayed)
            VALUES (?, ?, ?, 1, 0)
            """,
            (user_id, achievement_id, utc_now()),
        )
    awarded = cursor.rowcount > 0
    if awarded:
        logger.debug("achievements.awarded", user_id=user_id, achievement_id=achievement_id)
    return awarded


@db_retry
def earned_map(user_id: str) -> dict[str, str]:
    """Map achievement ID to earned_at for the user's awards."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT achievement_id, earned_at FROM user_achievements WHERE user_id = ?",
            (user_id,),
        ).fetchall()
    return {row["achievement_id"]: row["earned_at"] for row in rows}


@db_retry
def list_user_achievements(user_id: str) -> list[UserAchievementRecord]:
    """User awards, most recent first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT a.*, ua.earned_at, ua.is_new, ua.displayed
            FROM user_achievements ua
            JOIN achievements a ON a.id = ua.achievement_id
            WHERE ua.user_id = ?
            ORDER BY ua.earned_at DESC
            """,
            (user_id,),
        ).fetchall()
    return [
        UserAchievementRecord(
            achievement=_row_to_record(row),
            earned_at=row["earned_at"],
            is_new=bool(row["is_new"]),
            displayed=bool(row["displayed"]),
        )
        for row in rows
    ]


@db_retry
def mark_displayed(user_id: str, achievement_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE user_achievements SET is_new = 0, displayed = 1
            WHERE user_id = ? AND achievement_id = ?
            """,
            (user_id, achievement_id),
        )
    return cursor.rowcount > 0


def _row_to_record(row: sqlite3.Row) -> AchievementRecord:
    """Convert database row to AchievementRecord."""
    return AchievementRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        category=row["category"],
        tier=row["tier"],
        icon=row["icon"],
        points=row["points"],
        requirement_type=row["requirement_type"],
        requirement_value=row["requirement_value"],
    )
