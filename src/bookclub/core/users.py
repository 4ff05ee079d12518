"""User profiles, follows, reading lists and reading-based AI features."""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.db import books_repository as books_repo
from bookclub.db import users_repository as users_repo
from bookclub.db.users_repository import READING_LIST_TYPES, UserRecord
from bookclub.services.ai_service import get_ai_service
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)

RECOMMENDATION_COUNT = 5
RECENT_BOOKS_COUNT = 5


def public_profile(user: UserRecord) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "bio": user.bio,
        "avatar": user.avatar,
        "favorite_genres": user.favorite_genres,
        "created_at": user.created_at,
    }


def private_profile(user: UserRecord) -> dict[str, Any]:
    return {**public_profile(user), "email": user.email}


def get_reading_lists(user_id: str) -> dict[str, list[dict[str, Any]]]:
    """Reading lists keyed by list type, each with book details."""
    entries = users_repo.get_reading_list_entries(user_id)
    books = books_repo.get_books_by_ids([entry.book_id for entry in entries])
    lists: dict[str, list[dict[str, Any]]] = {list_type: [] for list_type in READING_LIST_TYPES}
    for entry in entries:
        book = books.get(entry.book_id)
        if book is not None:
            lists[entry.list_type].append({**book.to_dict(), "added_at": entry.added_at})
    return lists


def get_profile(user_id: str) -> dict[str, Any]:
    """Public profile with follow counts and reading lists.

    Raises:
        APIError: 404 if the user does not exist
    """
    user = users_repo.get_user_by_id(user_id)
    if user is None:
        raise APIError.not_found("User not found")

    followers, following = users_repo.count_follows(user_id)
    return {
        **public_profile(user),
        "followers_count": followers,
        "following_count": following,
        "reading_list": get_reading_lists(user_id),
    }


def update_profile(
    user_id: str,
    bio: str | None = None,
    avatar: str | None = None,
    favorite_genres: list[str] | None = None,
) -> UserRecord:
    user = users_repo.update_profile(user_id, bio=bio, avatar=avatar, favorite_genres=favorite_genres)
    if user is None:
        raise APIError.not_found("User not found")
    return user


def _check_list_type(list_type: str) -> None:
    if list_type not in READING_LIST_TYPES:
        raise APIError.bad_request(
            "Invalid list type", valid_types=list(READING_LIST_TYPES)
        )


def add_to_reading_list(user_id: str, list_type: str, book_id: str | None) -> dict[str, list[dict[str, Any]]]:
    """Move a book onto a list; lists stay mutually exclusive.

    Raises:
        APIError: 400 for a bad list type or missing book ID, 404 for an unknown book
    """
    _check_list_type(list_type)
    if not book_id:
        raise APIError.bad_request("Book ID is required")
    if books_repo.get_book_by_id(book_id) is None:
        raise APIError.not_found("Book not found")

    users_repo.set_reading_list(user_id, book_id, list_type)
    return get_reading_lists(user_id)


def remove_from_reading_list(user_id: str, list_type: str, book_id: str) -> dict[str, list[dict[str, Any]]]:
    _check_list_type(list_type)
    users_repo.remove_from_reading_list(user_id, book_id, list_type)
    return get_reading_lists(user_id)


def follow(user_id: str, target_id: str) -> None:
    """Follow another user.

    Raises:
        APIError: 400 for self-follow or duplicate, 404 for an unknown target
    """
    if user_id == target_id:
        raise APIError.bad_request("You cannot follow yourself")
    if users_repo.get_user_by_id(target_id) is None:
        raise APIError.not_found("User not found")
    if not users_repo.add_follow(user_id, target_id):
        raise APIError.bad_request("Already following this user")
    logger.info("user_followed", user_id=user_id, target_id=target_id)


def unfollow(user_id: str, target_id: str) -> None:
    if not users_repo.remove_follow(user_id, target_id):
        raise APIError.bad_request("Not following this user")
    logger.info("user_unfollowed", user_id=user_id, target_id=target_id)


def get_recommendations(user_id: str) -> dict[str, Any]:
    """AI recommendations from currently-reading and read books.

    Falls back to the highest rated catalog books when the AI is not
    configured or fails.
    """
    lists = get_reading_lists(user_id)
    basis = lists["currentlyReading"] + lists["read"]
    service = get_ai_service()

    recommendations = service.generate_book_recommendations(
        [{"title": b["title"], "authors": b["authors"]} for b in basis],
        count=RECOMMENDATION_COUNT,
    )
    if recommendations is None:
        popular = books_repo.list_top_rated(
            limit=RECOMMENDATION_COUNT, exclude_ids=[b["id"] for b in basis]
        )
        recommendations = [
            {
                "title": book.title,
                "author": ", ".join(book.authors) or "Unknown",
                "reason": "Popular with the community",
                "book_id": book.id,
            }
            for book in popular
        ]

    return {
        "recommendations": recommendations,
        "based_on": len(basis),
        "ai_enabled": service.is_configured(),
    }


def get_reading_insights(user_id: str) -> dict[str, Any]:
    lists = get_reading_lists(user_id)
    recent = sorted(
        lists["read"] + lists["currentlyReading"],
        key=lambda b: b["added_at"],
        reverse=True,
    )
    statistics = {
        "books_read": len(lists["read"]),
        "currently_reading": len(lists["currentlyReading"]),
        "want_to_read": len(lists["wantToRead"]),
        "recent_books": [b["title"] for b in recent[:RECENT_BOOKS_COUNT]],
    }
    service = get_ai_service()
    return {
        "insights": service.generate_reading_insights(statistics),
        "statistics": statistics,
        "ai_enabled": service.is_configured(),
    }
