"""Repository functions for reviews, review likes and review comments."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)

_SELECT_WITH_COUNTS = """
    SELECT r.*, u.username AS username,
        (SELECT COUNT(*) FROM review_likes l WHERE l.review_id = r.id) AS likes,
        (SELECT COUNT(*) FROM review_comments c WHERE c.review_id = r.id) AS comments
    FROM reviews r
    JOIN users u ON u.id = r.user_id
"""


@dataclass
class ReviewRecord:
    """Review record from database, with engagement counts."""

    id: str
    user_id: str
    book_id: str
    rating: int
    title: str
    content: str
    created_at: str
    updated_at: str
    username: str = ""
    likes: int = 0
    comments: int = 0


@dataclass
class ReviewComment:
    """Comment left on a review."""

    id: str
    review_id: str
    user_id: str
    content: str
    created_at: str


@db_retry
def insert_review(user_id: str, book_id: str, rating: int, content: str, title: str = "") -> str:
    """Insert a review and return its ID.

    Raises:
        sqlite3.IntegrityError: If the user already reviewed this book
    """
    review_id = new_id()
    now = utc_now()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO reviews (id, user_id, book_id, rating, title, content, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (review_id, user_id, book_id, rating, title, content, now, now),
        )

    logger.debug("reviews.inserted", review_id=review_id, book_id=book_id)
    return review_id


@db_retry
def get_review(review_id: str) -> ReviewRecord | None:
    with get_db() as conn:
        row = conn.execute(_SELECT_WITH_COUNTS + " WHERE r.id = ?", (review_id,)).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def get_user_review_for_book(user_id: str, book_id: str) -> ReviewRecord | None:
    with get_db() as conn:
        row = conn.execute(
            _SELECT_WITH_COUNTS + " WHERE r.user_id = ? AND r.book_id = ?",
            (user_id, book_id),
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def list_reviews_for_book(book_id: str, limit: int | None = None) -> list[ReviewRecord]:
    """Reviews of a book, newest first."""
    query = _SELECT_WITH_COUNTS + " WHERE r.book_id = ? ORDER BY r.created_at DESC"
    params: tuple = (book_id,)
    if limit is not None:
        query += " LIMIT ?"
        params = (book_id, limit)
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def list_reviews_by_user(user_id: str) -> list[ReviewRecord]:
    """Reviews written by a user, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            _SELECT_WITH_COUNTS + " WHERE r.user_id = ? ORDER BY r.created_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def update_review(
    review_id: str,
    rating: int | None = None,
    title: str | None = None,
    content: str | None = None,
) -> None:
    """Update the non-None fields of a review."""
    fields: list[str] = []
    params: list = []
    for column, value in (("rating", rating), ("title", title), ("content", content)):
        if value is not None:
            fields.append(f"{column} = ?")
            params.append(value)
    fields.append("updated_at = ?")
    params.extend([utc_now(), review_id])

    with get_db() as conn:
        conn.execute(f"UPDATE reviews SET {', '.join(fields)} WHERE id = ?", params)

    logger.debug("reviews.updated", review_id=review_id)


@db_retry
def delete_review(review_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
    return cursor.rowcount > 0


@db_retry
def rating_stats(book_id: str) -> tuple[float, int]:
    """Return (average, count) of review ratings for a book."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT AVG(rating) AS avg, COUNT(*) AS cnt FROM reviews WHERE book_id = ?",
            (book_id,),
        ).fetchone()
    return (row["avg"] or 0.0), row["cnt"]


@db_retry
def toggle_like(review_id: str, user_id: str) -> tuple[bool, int]:
    """Flip the user's like on a review.

    Returns:
        Tuple of (liked, total likes)
    """
    with get_db() as conn:
        existing = conn.execute(
            "SELECT 1 FROM review_likes WHERE review_id = ? AND user_id = ?",
            (review_id, user_id),
        ).fetchone()
        if existing:
            conn.execute(
                "DELETE FROM review_likes WHERE review_id = ? AND user_id = ?",
                (review_id, user_id),
            )
        else:
            conn.execute(
                "INSERT INTO review_likes (review_id, user_id) VALUES (?, ?)",
                (review_id, user_id),
            )
        likes = conn.execute(
            "SELECT COUNT(*) FROM review_likes WHERE review_id = ?", (review_id,)
        ).fetchone()[0]
    return not existing, likes


@db_retry
def insert_comment(review_id: str, user_id: str, content: str) -> ReviewComment:
    comment = ReviewComment(
        id=new_id(),
        review_id=review_id,
        user_id=user_id,
        content=content,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO review_comments (id, review_id, user_id, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (comment.id, comment.review_id, comment.user_id, comment.content, comment.created_at),
        )

    logger.debug("reviews.comment_inserted", review_id=review_id, comment_id=comment.id)
    return comment


@db_retry
def count_reviews_by_user(user_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM reviews WHERE user_id = ?", (user_id,)
        ).fetchone()[0]


def _row_to_record(row: sqlite3.Row) -> ReviewRecord:
    """Convert database row to ReviewRecord."""
    return ReviewRecord(
        id=row["id"],
        user_id=row["user_id"],
        book_id=row["book_id"],
        rating=row["rating"],
        title=row["title"],
        content=row["content"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        username=row["username"],
        likes=row["likes"],
        comments=row["comments"],
    )
