"""Repository functions for reading goals."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class GoalRecord:
    """Reading goal record from database."""

    id: str
    user_id: str
    goal_type: str
    target_value: int
    current_progress: int
    time_period: str
    start_date: str
    end_date: str
    status: str
    completed_at: str | None
    created_at: str


@db_retry
def insert_goal(
    user_id: str,
    goal_type: str,
    target_value: int,
    time_period: str,
    start_date: str,
    end_date: str,
) -> GoalRecord:
    """Insert a reading goal.

    Raises:
        sqlite3.IntegrityError: If the same goal already exists for that window
    """
    goal = GoalRecord(
        id=new_id(),
        user_id=user_id,
        goal_type=goal_type,
        target_value=target_value,
        current_progress=0,
        time_period=time_period,
        start_date=start_date,
        end_date=end_date,
        status="active",
        completed_at=None,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO reading_goals (
                id, user_id, goal_type, target_value, current_progress,
                time_period, start_date, end_date, status, created_at
            ) VALUES (?, ?, ?, ?, 0, ?, ?, ?, 'active', ?)
            """,
            (
                goal.id,
                user_id,
                goal_type,
                target_value,
                time_period,
                start_date,
                end_date,
                goal.created_at,
            ),
        )

    logger.debug("goals.inserted", goal_id=goal.id, user_id=user_id)
    return goal


@db_retry
def get_goal(goal_id: str) -> GoalRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM reading_goals WHERE id = ?", (goal_id,)).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def list_goals(user_id: str) -> list[GoalRecord]:
    """User goals, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM reading_goals WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def update_progress(
    goal_id: str,
    current_progress: int,
    status: str,
    completed_at: str | None,
) -> None:
    with get_db() as conn:
        conn.execute(
            """
            UPDATE reading_goals
            SET current_progress = ?, status = ?, completed_at = ?
            WHERE id = ?
            """,
            (current_progress, status, completed_at, goal_id),
        )


@db_retry
def count_completed(user_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM reading_goals WHERE user_id = ? AND status = 'completed'",
            (user_id,),
        ).fetchone()[0]


@db_retry
def delete_goal(goal_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM reading_goals WHERE id = ?", (goal_id,))
    return cursor.rowcount > 0


def _row_to_record(row: sqlite3.Row) -> GoalRecord:
    """Convert database row to GoalRecord."""
    return GoalRecord(
        id=row["id"],
        user_id=row["user_id"],
        goal_type=row["goal_type"],
        target_value=row["target_value"],
        current_progress=row["current_progress"],
        time_period=row["time_period"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        status=row["status"],
        completed_at=row["completed_at"],
        created_at=row["created_at"],
    )
