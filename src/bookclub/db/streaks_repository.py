"""Repository functions for reading streaks (one row per user)."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from bookclub.db.database import get_db, utc_now
from bookclub.utils.retry import db_retry


@dataclass
class StreakRecord:
    """Reading streak row."""

    user_id: str
    current_streak: int = 0
    longest_streak: int = 0
    last_reading_date: str | None = None
    streak_started_at: str | None = None
    total_reading_days: int = 0
    updated_at: str = ""


@db_retry
def get_streak(user_id: str) -> StreakRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM reading_streaks WHERE user_id = ?", (user_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def save_streak(streak: StreakRecord) -> StreakRecord:
    """Insert or replace the user's streak row."""
    streak.updated_at = utc_now()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO reading_streaks (
                user_id, current_streak, longest_streak, last_reading_date,
                streak_started_at, total_reading_days, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                current_streak = excluded.current_streak,
                longest_streak = excluded.longest_streak,
                last_reading_date = excluded.last_reading_date,
                streak_started_at = excluded.streak_started_at,
                total_reading_days = excluded.total_reading_days,
                updated_at = excluded.updated_at
            """,
            (
                streak.user_id,
                streak.current_streak,
                streak.longest_streak,
                streak.last_reading_date,
                streak.streak_started_at,
                streak.total_reading_days,
                streak.updated_at,
            ),
        )
    return streak


def _row_to_record(row: sqlite3.Row) -> StreakRecord:
    return StreakRecord(
        user_id=row["user_id"],
        current_streak=row["current_streak"],
        longest_streak=row["longest_streak"],
        last_reading_date=row["last_reading_date"],
        streak_started_at=row["streak_started_at"],
        total_reading_days=row["total_reading_days"],
        updated_at=row["updated_at"],
    )
