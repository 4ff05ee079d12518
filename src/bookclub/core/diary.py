"""Reading diary: per-book entries gated by the tier's diary book limit."""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.config.constants import MIN_DIARY_ENTRY_LENGTH
from bookclub.config.tiers import get_tier_limits
from bookclub.core.books import get_book
from bookclub.core.subscriptions import get_user_tier
from bookclub.db import booklist_repository as booklist_repo
from bookclub.db import diary_repository as diary_repo
from bookclub.db.diary_repository import DiaryEntry
from bookclub.services.ai_service import get_ai_service
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

logger = structlog.get_logger(__name__)


def get_usage(user_id: str) -> dict[str, Any]:
    """Distinct-book diary usage against the tier limit (None = unlimited)."""
    tier = get_user_tier(user_id)
    limit = get_tier_limits(tier).diary_books
    usage = diary_repo.count_distinct_books(user_id)
    return {
        "tier": tier,
        "current_usage": usage,
        "limit": limit,
        "remaining": None if limit is None else max(0, limit - usage),
        "can_add_more": limit is None or usage < limit,
    }


def get_owned_entry(user_id: str, entry_id: str) -> DiaryEntry:
    entry = diary_repo.get_entry(entry_id)
    if entry is None or entry.user_id != user_id:
        raise APIError.not_found("Diary entry not found")
    return entry


def _clean_entry_text(entry_text: str | None) -> str:
    text = sanitize_text(entry_text or "")
    if len(text) < MIN_DIARY_ENTRY_LENGTH:
        raise APIError.bad_request(
            f"Entry text must be at least {MIN_DIARY_ENTRY_LENGTH} characters"
        )
    return text


def create_entry(
    user_id: str,
    book_id: str | None,
    entry_text: str | None,
    page_number: int | None = None,
    mood: str | None = None,
) -> DiaryEntry:
    """Write a diary entry for a book in the user's booklist.

    Starting a diary for a new book counts against the tier's diary limit;
    further entries for the same book are always allowed.

    Raises:
        APIError: 400 on bad input, 403 when the book is not in the booklist
            or the diary book limit is reached
    """
    if not book_id:
        raise APIError.bad_request("Book ID is required")
    text = _clean_entry_text(entry_text)

    if booklist_repo.get_entry_for_book(user_id, book_id) is None:
        raise APIError.forbidden("Book must be in your booklist before writing diary entries")

    if not diary_repo.has_entries_for_book(user_id, book_id):
        usage = get_usage(user_id)
        if not usage["can_add_more"]:
            raise APIError.forbidden(
                "Diary book limit reached for your tier",
                current_usage=usage["current_usage"],
                limit=usage["limit"],
                tier=usage["tier"],
                upgrade_required=True,
            )

    entry = diary_repo.insert_entry(user_id, book_id, text, page_number, mood)
    logger.info("diary_entry_created", user_id=user_id, book_id=book_id)
    return entry


def update_entry(
    user_id: str,
    entry_id: str,
    entry_text: str | None = None,
    page_number: int | None = None,
    mood: str | None = None,
) -> DiaryEntry:
    get_owned_entry(user_id, entry_id)
    diary_repo.update_entry(
        entry_id,
        entry_text=_clean_entry_text(entry_text) if entry_text is not None else None,
        page_number=page_number,
        mood=mood,
    )
    return diary_repo.get_entry(entry_id)


def delete_entry(user_id: str, entry_id: str) -> None:
    get_owned_entry(user_id, entry_id)
    diary_repo.delete_entry(entry_id)


def summarize_book(user_id: str, book_id: str) -> dict[str, Any]:
    """Summarize a user's diary for one book, with a count-based fallback."""
    entries = diary_repo.list_entries_for_book(user_id, book_id)
    if not entries:
        raise APIError.bad_request("No diary entries found for this book")

    book = get_book(book_id)
    author = ", ".join(book.authors) or "Unknown"
    chronological = [entry.entry_text for entry in reversed(entries)]

    service = get_ai_service()
    summary = service.summarize_diary(book.title, author, chronological)
    if summary is None:
        summary = {
            "summary": (
                f"You wrote {len(entries)} diary "
                f"{'entry' if len(entries) == 1 else 'entries'} while reading {book.title}."
            ),
            "insights": [],
            "themes": [],
        }

    return {**summary, "entry_count": len(entries), "ai_enabled": service.is_configured()}
