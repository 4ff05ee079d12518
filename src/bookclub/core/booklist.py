"""Rated booklist with favorites and tier-limited size."""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

from bookclub.config.constants import MIN_REVIEW_SUMMARY_LENGTH
from bookclub.config.tiers import get_tier_limits
from bookclub.core.achievements import BOOKS_READ, check_trigger
from bookclub.core.books import get_book
from bookclub.core.subscriptions import get_user_tier
from bookclub.db import booklist_repository as booklist_repo
from bookclub.db.booklist_repository import BOOKLIST_RATINGS, BooklistEntry
from bookclub.services.ai_service import get_ai_service
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

logger = structlog.get_logger(__name__)


def _check_rating(rating: str | None) -> str:
    if rating not in BOOKLIST_RATINGS:
        raise APIError.bad_request("Invalid rating", valid_ratings=list(BOOKLIST_RATINGS))
    return rating


def _get_owned_entry(user_id: str, entry_id: str) -> BooklistEntry:
    entry = booklist_repo.get_entry(entry_id)
    if entry is None or entry.user_id != user_id:
        raise APIError.not_found("Booklist entry not found")
    return entry


def list_by_rating(user_id: str, rating: str) -> list[BooklistEntry]:
    return booklist_repo.list_entries(user_id, rating=_check_rating(rating))


def add_entry(
    user_id: str,
    book_id: str | None,
    rating: str | None,
    review: str | None = "",
    is_favorite: bool = False,
) -> BooklistEntry:
    """Add a book to the user's booklist.

    Raises:
        APIError: 400 on missing fields, 404 for an unknown book, 409 for a
            duplicate, 403 when the tier's booklist size is reached
    """
    if not book_id or not rating:
        raise APIError.bad_request("Book ID and rating are required")
    _check_rating(rating)
    get_book(book_id)

    if booklist_repo.get_entry_for_book(user_id, book_id) is not None:
        raise APIError.conflict("Book already in your booklist")

    tier = get_user_tier(user_id)
    limit = get_tier_limits(tier).max_booklist_size
    current = booklist_repo.count_entries(user_id)
    if limit is not None and current >= limit:
        raise APIError.forbidden(
            "Booklist size limit reached for your tier",
            current_size=current,
            limit=limit,
            tier=tier,
            upgrade_required=True,
        )

    try:
        entry_id = booklist_repo.insert_entry(
            user_id, book_id, rating, sanitize_text(review or ""), bool(is_favorite)
        )
    except sqlite3.IntegrityError as e:
        raise APIError.conflict("Book already in your booklist") from e

    check_trigger(user_id, BOOKS_READ, current + 1)
    logger.info("booklist_entry_added", user_id=user_id, book_id=book_id, rating=rating)
    return booklist_repo.get_entry(entry_id)


def update_entry(
    user_id: str,
    entry_id: str,
    rating: str | None = None,
    review: str | None = None,
    is_favorite: bool | None = None,
) -> BooklistEntry:
    _get_owned_entry(user_id, entry_id)
    if rating is not None:
        _check_rating(rating)
    booklist_repo.update_entry(
        entry_id,
        rating=rating,
        review=sanitize_text(review) if review is not None else None,
        is_favorite=is_favorite,
    )
    return booklist_repo.get_entry(entry_id)


def delete_entry(user_id: str, entry_id: str) -> None:
    _get_owned_entry(user_id, entry_id)
    booklist_repo.delete_entry(entry_id)
    logger.info("booklist_entry_deleted", user_id=user_id, entry_id=entry_id)


def get_stats(user_id: str) -> dict[str, Any]:
    return {
        "total": booklist_repo.count_entries(user_id),
        "favorites": booklist_repo.count_favorites(user_id),
        "by_rating": booklist_repo.rating_counts(user_id),
    }


def summarize_review(review_text: str | None) -> dict[str, Any]:
    text = (review_text or "").strip()
    if len(text) < MIN_REVIEW_SUMMARY_LENGTH:
        raise APIError.bad_request(
            f"Review text must be at least {MIN_REVIEW_SUMMARY_LENGTH} characters"
        )
    service = get_ai_service()
    return {
        "summary": service.summarize_review(text),
        "ai_enabled": service.is_configured(),
    }
