"""Book catalog: search, add with dedupe, rating aggregates."""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

from bookclub.db import books_repository as books_repo
from bookclub.db import reviews_repository as reviews_repo
from bookclub.db.books_repository import BookRecord
from bookclub.services.google_books import GoogleBooksClient, GoogleBooksError
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)

MAX_PAGE_SIZE = 100


async def search_books(query: str | None, client: GoogleBooksClient | None = None) -> list[dict[str, Any]]:
    """Search Google Books.

    Raises:
        APIError: 400 without a query, 503 when the upstream search fails
    """
    query = (query or "").strip()
    if not query:
        raise APIError.bad_request("Search query is required")

    client = client or GoogleBooksClient()
    try:
        return await client.search(query)
    except GoogleBooksError as e:
        raise APIError.service_unavailable("Book search is temporarily unavailable") from e


def list_books(limit: int = 20, offset: int = 0, genre: str | None = None) -> list[BookRecord]:
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    return books_repo.list_books(limit=limit, offset=max(0, offset), category=genre)


def get_book(book_id: str) -> BookRecord:
    book = books_repo.get_book_by_id(book_id)
    if book is None:
        raise APIError.not_found("Book not found")
    return book


def add_book(data: dict[str, Any]) -> tuple[BookRecord, bool]:
    """Add a book to the catalog, reusing the row for a known Google Books id.

    Returns:
        Tuple of (book, created)
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise APIError.bad_request("Title is required")

    google_books_id = data.get("google_books_id")
    if google_books_id:
        existing = books_repo.get_book_by_google_id(google_books_id)
        if existing is not None:
            return existing, False

    try:
        book = books_repo.insert_book(
            title=title,
            authors=data.get("authors"),
            google_books_id=google_books_id,
            description=data.get("description") or "",
            isbn=data.get("isbn"),
            categories=data.get("categories"),
            cover_image=data.get("cover_image"),
            page_count=data.get("page_count"),
            published_date=data.get("published_date"),
        )
    except sqlite3.IntegrityError:
        # Lost a race with a concurrent insert of the same volume
        existing = books_repo.get_book_by_google_id(google_books_id) if google_books_id else None
        if existing is None:
            raise
        return existing, False

    logger.info("book_added", book_id=book.id, title=book.title)
    return book, True


def recompute_rating(book_id: str) -> BookRecord:
    """Recompute average_rating (1 decimal) and ratings_count from reviews."""
    get_book(book_id)
    average, count = reviews_repo.rating_stats(book_id)
    books_repo.update_book_rating(book_id, round(average, 1), count)
    return get_book(book_id)
