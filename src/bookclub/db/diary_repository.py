"""Repository functions for reading diary entries."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class DiaryEntry:
    """Diary entry record from database."""

    id: str
    user_id: str
    book_id: str
    entry_text: str
    page_number: int | None
    mood: str | None
    created_at: str
    updated_at: str


@db_retry
def insert_entry(
    user_id: str,
    book_id: str,
    entry_text: str,
    page_number: int | None = None,
    mood: str | None = None,
) -> DiaryEntry:
    now = utc_now()
    entry = DiaryEntry(
        id=new_id(),
        user_id=user_id,
        book_id=book_id,
        entry_text=entry_text,
        page_number=page_number,
        mood=mood,
        created_at=now,
        updated_at=now,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO diary_entries (id, user_id, book_id, entry_text, page_number, mood, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id,
                entry.user_id,
                entry.book_id,
                entry.entry_text,
                entry.page_number,
                entry.mood,
                entry.created_at,
                entry.updated_at,
            ),
        )

    logger.debug("diary.inserted", entry_id=entry.id, book_id=book_id)
    return entry


@db_retry
def get_entry(entry_id: str) -> DiaryEntry | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM diary_entries WHERE id = ?", (entry_id,)).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def list_entries_for_book(user_id: str, book_id: str) -> list[DiaryEntry]:
    """Entries for one book, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM diary_entries
            WHERE user_id = ? AND book_id = ?
            ORDER BY created_at DESC
            """,
            (user_id, book_id),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def count_distinct_books(user_id: str) -> int:
    """Number of distinct books the user has written diary entries for."""
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(DISTINCT book_id) FROM diary_entries WHERE user_id = ?",
            (user_id,),
        ).fetchone()[0]


@db_retry
def has_entries_for_book(user_id: str, book_id: str) -> bool:
    with get_db() as conn:
        row = conn.execute(
            "SELECT 1 FROM diary_entries WHERE user_id = ? AND book_id = ? LIMIT 1",
            (user_id, book_id),
        ).fetchone()
    return row is not None


@db_retry
def update_entry(
    entry_id: str,
    entry_text: str | None = None,
    page_number: int | None = None,
    mood: str | None = None,
) -> None:
    fields: list[str] = []
    params: list = []
    for column, value in (("entry_text", entry_text), ("page_number", page_number), ("mood", mood)):
        if value is not None:
            fields.append(f"{column} = ?")
            params.append(value)
    fields.append("updated_at = ?")
    params.extend([utc_now(), entry_id])

    with get_db() as conn:
        conn.execute(f"UPDATE diary_entries SET {', '.join(fields)} WHERE id = ?", params)


@db_retry
def delete_entry(entry_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM diary_entries WHERE id = ?", (entry_id,))
    return cursor.rowcount > 0


def _row_to_record(row: sqlite3.Row) -> DiaryEntry:
    """Convert database row to DiaryEntry."""
    return DiaryEntry(
        id=row["id"],
        user_id=row["user_id"],
        book_id=row["book_id"],
        entry_text=row["entry_text"],
        page_number=row["page_number"],
        mood=row["mood"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
