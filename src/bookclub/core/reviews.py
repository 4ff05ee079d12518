"""Book reviews, likes and comments."""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

from bookclub.core.achievements import REVIEWS_WRITTEN, check_trigger
from bookclub.core.books import get_book, recompute_rating
from bookclub.core.moderation import check_content
from bookclub.db import reviews_repository as reviews_repo
from bookclub.db.reviews_repository import ReviewRecord
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

logger = structlog.get_logger(__name__)


def _validate_rating(rating: Any) -> int:
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise APIError.bad_request("Rating must be an integer between 1 and 5")
    return rating


def _get_owned_review(review_id: str, user_id: str) -> ReviewRecord:
    review = reviews_repo.get_review(review_id)
    if review is None:
        raise APIError.not_found("Review not found")
    if review.user_id != user_id:
        raise APIError.forbidden("Not authorized to modify this review")
    return review


def create_review(
    user_id: str,
    book_id: str | None,
    rating: Any,
    content: str | None,
    title: str | None = "",
) -> ReviewRecord:
    """Create a review and refresh the book's rating.

    Raises:
        APIError: 400 on bad input, 404 for an unknown book, 409 on a second review
    """
    if not book_id:
        raise APIError.bad_request("Book ID is required")
    _validate_rating(rating)
    content = sanitize_text(content or "")
    if not content:
        raise APIError.bad_request("Review content is required")
    get_book(book_id)

    if reviews_repo.get_user_review_for_book(user_id, book_id) is not None:
        raise APIError.conflict("You have already reviewed this book")

    try:
        review_id = reviews_repo.insert_review(
            user_id, book_id, rating, content, sanitize_text(title or "", 200)
        )
    except sqlite3.IntegrityError as e:
        raise APIError.conflict("You have already reviewed this book") from e

    recompute_rating(book_id)
    check_trigger(user_id, REVIEWS_WRITTEN, reviews_repo.count_reviews_by_user(user_id))
    logger.info("review_created", review_id=review_id, book_id=book_id)
    return reviews_repo.get_review(review_id)


def update_review(
    user_id: str,
    review_id: str,
    rating: Any = None,
    title: str | None = None,
    content: str | None = None,
) -> ReviewRecord:
    review = _get_owned_review(review_id, user_id)
    if rating is not None:
        _validate_rating(rating)
    reviews_repo.update_review(
        review_id,
        rating=rating,
        title=sanitize_text(title, 200) if title is not None else None,
        content=sanitize_text(content) if content is not None else None,
    )
    recompute_rating(review.book_id)
    return reviews_repo.get_review(review_id)


def delete_review(user_id: str, review_id: str) -> None:
    review = _get_owned_review(review_id, user_id)
    reviews_repo.delete_review(review_id)
    recompute_rating(review.book_id)
    logger.info("review_deleted", review_id=review_id)


def toggle_like(user_id: str, review_id: str) -> dict[str, Any]:
    if reviews_repo.get_review(review_id) is None:
        raise APIError.not_found("Review not found")
    liked, likes = reviews_repo.toggle_like(review_id, user_id)
    return {"liked": liked, "likes": likes}


def add_comment(user_id: str, review_id: str, content: str | None) -> dict[str, Any]:
    """Add a moderated comment to a review."""
    content = sanitize_text(content or "")
    if not content:
        raise APIError.bad_request("Comment content is required")
    if reviews_repo.get_review(review_id) is None:
        raise APIError.not_found("Review not found")

    warning = check_content(content)
    comment = reviews_repo.insert_comment(review_id, user_id, content)
    result: dict[str, Any] = {"comment": comment}
    if warning:
        result["moderation_warning"] = warning
    return result
