"""Repository functions for the rated booklist (user_booklist table)."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)

BOOKLIST_RATINGS = (
    "stayed-up-all-night",
    "would-read-again",
    "once-was-enough",
    "might-come-back-later",
    "meh",
)

_SELECT_WITH_BOOK = """
    SELECT e.*, b.title AS book_title, b.authors AS book_authors,
        b.cover_image AS book_cover_image
    FROM user_booklist e
    JOIN books b ON b.id = e.book_id
"""


@dataclass
class BooklistEntry:
    """Booklist entry with the book's display fields joined in."""

    id: str
    user_id: str
    book_id: str
    rating: str
    review: str
    is_favorite: bool
    created_at: str
    updated_at: str
    book_title: str = ""
    book_authors: list[str] = field(default_factory=list)
    book_cover_image: str | None = None


@db_retry
def insert_entry(
    user_id: str,
    book_id: str,
    rating: str,
    review: str = "",
    is_favorite: bool = False,
) -> str:
    """Insert a booklist entry and return its ID.

    Raises:
        sqlite3.IntegrityError: If the book is already in the user's booklist
    """
    entry_id = new_id()
    now = utc_now()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO user_booklist (id, user_id, book_id, rating, review, is_favorite, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (entry_id, user_id, book_id, rating, review, int(is_favorite), now, now),
        )

    logger.debug("booklist.inserted", entry_id=entry_id, user_id=user_id)
    return entry_id


@db_retry
def get_entry(entry_id: str) -> BooklistEntry | None:
    with get_db() as conn:
        row = conn.execute(_SELECT_WITH_BOOK + " WHERE e.id = ?", (entry_id,)).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def get_entry_for_book(user_id: str, book_id: str) -> BooklistEntry | None:
    with get_db() as conn:
        row = conn.execute(
            _SELECT_WITH_BOOK + " WHERE e.user_id = ? AND e.book_id = ?",
            (user_id, book_id),
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def list_entries(
    user_id: str,
    rating: str | None = None,
    favorites_only: bool = False,
) -> list[BooklistEntry]:
    """List a user's booklist, newest first.

    Args:
        user_id: Owner of the booklist
        rating: Only entries with this rating label
        favorites_only: Only entries marked favorite
    """
    query = _SELECT_WITH_BOOK + " WHERE e.user_id = ?"
    params: list[Any] = [user_id]
    if rating:
        query += " AND e.rating = ?"
        params.append(rating)
    if favorites_only:
        query += " AND e.is_favorite = 1"
    query += " ORDER BY e.created_at DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def count_entries(user_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM user_booklist WHERE user_id = ?", (user_id,)
        ).fetchone()[0]


@db_retry
def rating_counts(user_id: str) -> dict[str, int]:
    """Count entries per rating label, including zero counts."""
    counts = {label: 0 for label in BOOKLIST_RATINGS}
    with get_db() as conn:
        rows = conn.execute(
            "SELECT rating, COUNT(*) AS cnt FROM user_booklist WHERE user_id = ? GROUP BY rating",
            (user_id,),
        ).fetchall()
    for row in rows:
        counts[row["rating"]] = row["cnt"]
    return counts


@db_retry
def count_favorites(user_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM user_booklist WHERE user_id = ? AND is_favorite = 1",
            (user_id,),
        ).fetchone()[0]


@db_retry
def update_entry(
    entry_id: str,
    rating: str | None = None,
    review: str | None = None,
    is_favorite: bool | None = None,
) -> None:
    """Update the non-None fields of an entry."""
    fields: list[str] = []
    params: list[Any] = []
    if rating is not None:
        fields.append("rating = ?")
        params.append(rating)
    if review is not None:
        fields.append("review = ?")
        params.append(review)
    if is_favorite is not None:
        fields.append("is_favorite = ?")
        params.append(int(is_favorite))
    fields.append("updated_at = ?")
    params.extend([utc_now(), entry_id])

    with get_db() as conn:
        conn.execute(f"UPDATE user_booklist SET {', '.join(fields)} WHERE id = ?", params)


@db_retry
def delete_entry(entry_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM user_booklist WHERE id = ?", (entry_id,))
    return cursor.rowcount > 0


def _row_to_record(row: sqlite3.Row) -> BooklistEntry:
    """Convert database row to BooklistEntry."""
    return BooklistEntry(
        id=row["id"],
        user_id=row["user_id"],
        book_id=row["book_id"],
        rating=row["rating"],
        review=row["review"],
        is_favorite=bool(row["is_favorite"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        book_title=row["book_title"],
        book_authors=json.loads(row["book_authors"] or "[]"),
        book_cover_image=row["book_cover_image"],
    )
