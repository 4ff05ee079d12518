"""Repository functions for in-app notifications."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class NotificationRecord:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    is_read: bool
    created_at: str


@db_retry
def insert_notification(user_id: str, type: str, title: str, message: str) -> NotificationRecord:
    record = NotificationRecord(
        id=new_id(),
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        is_read=False,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO notifications (id, user_id, type, title, message, is_read, created_at)
            VALUES (?, ?, ?, ?, ?, 0, ?)
            """,
            (record.id, user_id, type, title, message, record.created_at),
        )

    logger.debug("notifications.inserted", user_id=user_id, type=type)
    return record


@db_retry
def list_notifications(user_id: str, unread_only: bool = False, limit: int = 50) -> list[NotificationRecord]:
    """User notifications, newest first."""
    query = "SELECT * FROM notifications WHERE user_id = ?"
    if unread_only:
        query += " AND is_read = 0"
    query += " ORDER BY created_at DESC LIMIT ?"
    with get_db() as conn:
        rows = conn.execute(query, (user_id, limit)).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def count_unread(user_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM notifications WHERE user_id = ? AND is_read = 0",
            (user_id,),
        ).fetchone()[0]


@db_retry
def mark_read(notification_id: str, user_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE id = ? AND user_id = ?",
            (notification_id, user_id),
        )
    return cursor.rowcount > 0


def _row_to_record(row: sqlite3.Row) -> NotificationRecord:
    return NotificationRecord(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        title=row["title"],
        message=row["message"],
        is_read=bool(row["is_read"]),
        created_at=row["created_at"],
    )
