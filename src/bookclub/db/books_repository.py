"""Repository functions for books table.

Provides CRUD operations for the book catalog.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class BookRecord:
    """Book record from database."""

    id: str
    title: str
    google_books_id: str | None = None
    authors: list[str] = field(default_factory=list)
    description: str = ""
    isbn: str | None = None
    categories: list[str] = field(default_factory=list)
    cover_image: str | None = None
    page_count: int | None = None
    published_date: str | None = None
    average_rating: float = 0.0
    ratings_count: int = 0
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@db_retry
def insert_book(
    title: str,
    authors: list[str] | None = None,
    google_books_id: str | None = None,
    description: str = "",
    isbn: str | None = None,
    categories: list[str] | None = None,
    cover_image: str | None = None,
    page_count: int | None = None,
    published_date: str | None = None,
) -> BookRecord:
    """Insert a new book record.

    Args:
        title: Book title
        authors: List of author names
        google_books_id: Google Books volume id, unique when set
        description: Publisher description
        isbn: ISBN-13 or ISBN-10
        categories: Subject categories
        cover_image: Thumbnail URL
        page_count: Number of pages
        published_date: Publication date as reported by the source

    Returns:
        The inserted BookRecord

    Raises:
        sqlite3.IntegrityError: If google_books_id already exists
    """
    record = BookRecord(
        id=new_id(),
        title=title,
        google_books_id=google_books_id,
        authors=authors or [],
        description=description or "",
        isbn=isbn,
        categories=categories or [],
        cover_image=cover_image,
        page_count=page_count,
        published_date=published_date,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO books (
                id, google_books_id, title, authors, description, isbn,
                categories, cover_image, page_count, published_date, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.google_books_id,
                record.title,
                json.dumps(record.authors),
                record.description,
                record.isbn,
                json.dumps(record.categories),
                record.cover_image,
                record.page_count,
                record.published_date,
                record.created_at,
            ),
        )

    logger.debug("books.inserted", book_id=record.id)
    return record


@db_retry
def get_book_by_id(book_id: str) -> BookRecord | None:
    """Get book by ID.

    Returns:
        BookRecord if found, None otherwise
    """
    with get_db() as conn:
        row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


@db_retry
def get_book_by_google_id(google_books_id: str) -> BookRecord | None:
    """Get book by its Google Books volume id."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM books WHERE google_books_id = ?", (google_books_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


@db_retry
def get_books_by_ids(book_ids: list[str]) -> dict[str, BookRecord]:
    """Fetch several books at once, keyed by ID."""
    if not book_ids:
        return {}
    placeholders = ",".join("?" for _ in book_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM books WHERE id IN ({placeholders})", tuple(book_ids)
        ).fetchall()
    return {row["id"]: _row_to_record(row) for row in rows}


@db_retry
def list_books(
    limit: int = 20,
    offset: int = 0,
    category: str | None = None,
) -> list[BookRecord]:
    """List catalog books, newest first.

    Args:
        limit: Page size
        offset: Rows to skip
        category: Only books whose categories contain this text

    Returns:
        List of BookRecord
    """
    query = "SELECT * FROM books"
    params: list[Any] = []
    if category:
        query += " WHERE lower(categories) LIKE ?"
        params.append(f"%{category.lower()}%")
    query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
    params.extend([limit, offset])

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_record(row) for row in rows]


@db_retry
def list_top_rated(limit: int = 5, exclude_ids: list[str] | None = None) -> list[BookRecord]:
    """Highest rated books, used as a recommendation fallback."""
    exclude_ids = exclude_ids or []
    query = "SELECT * FROM books"
    params: list[Any] = []
    if exclude_ids:
        query += f" WHERE id NOT IN ({','.join('?' for _ in exclude_ids)})"
        params.extend(exclude_ids)
    query += " ORDER BY average_rating DESC, ratings_count DESC LIMIT ?"
    params.append(limit)

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_record(row) for row in rows]


@db_retry
def update_book_rating(book_id: str, average_rating: float, ratings_count: int) -> None:
    """Store recomputed rating aggregates."""
    with get_db() as conn:
        conn.execute(
            "UPDATE books SET average_rating = ?, ratings_count = ? WHERE id = ?",
            (average_rating, ratings_count, book_id),
        )

    logger.debug("books.rating_updated", book_id=book_id, average=average_rating, count=ratings_count)


def _row_to_record(row: sqlite3.Row) -> BookRecord:
    """Convert database row to BookRecord."""
    return BookRecord(
        id=row["id"],
        google_books_id=row["google_books_id"],
        title=row["title"],
        authors=json.loads(row["authors"] or "[]"),
        description=row["description"],
        isbn=row["isbn"],
        categories=json.loads(row["categories"] or "[]"),
        cover_image=row["cover_image"],
        page_count=row["page_count"],
        published_date=row["published_date"],
        average_rating=row["average_rating"],
        ratings_count=row["ratings_count"],
        created_at=row["created_at"],
    )
