"""Text analysis utilities: sentiment, tags, summaries, notifications."""

from __future__ import annotations

from typing import Any

from bookclub.core.books import get_book
from bookclub.core.forums import get_forum
from bookclub.db import forums_repository as forums_repo
from bookclub.db import reviews_repository as reviews_repo
from bookclub.services.ai_service import get_ai_service, label_for_score
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

BOOK_SENTIMENT_SAMPLE = 10
DISCUSSION_POST_LIMIT = 50
DEFAULT_SUMMARY_WORDS = 100


def _require_text(text: str | None) -> str:
    text = sanitize_text(text or "")
    if not text:
        raise APIError.bad_request("Text is required")
    return text


def analyze_sentiment(text: str | None) -> dict[str, Any]:
    return get_ai_service().analyze_sentiment(_require_text(text))


def review_sentiment(review_id: str) -> dict[str, Any]:
    review = reviews_repo.get_review(review_id)
    if review is None:
        raise APIError.not_found("Review not found")
    return {"review_id": review_id, **get_ai_service().analyze_sentiment(review.content)}


def book_sentiment(book_id: str) -> dict[str, Any]:
    """Average sentiment over the book's most recent reviews."""
    get_book(book_id)
    reviews = reviews_repo.list_reviews_for_book(book_id, limit=BOOK_SENTIMENT_SAMPLE)
    if not reviews:
        return {"book_id": book_id, "sentiment": "neutral", "score": 0.0, "analyzed_count": 0}

    service = get_ai_service()
    scores = [service.analyze_sentiment(review.content)["score"] for review in reviews]
    average = round(sum(scores) / len(scores), 2)
    return {
        "book_id": book_id,
        "sentiment": label_for_score(average),
        "score": average,
        "analyzed_count": len(scores),
    }


def generate_tags(text: str | None, title: str | None = "") -> list[str]:
    return get_ai_service().generate_topic_tags(_require_text(text), title or "")


def book_tags(book_id: str) -> dict[str, Any]:
    book = get_book(book_id)
    text = book.description or " ".join(book.categories) or book.title
    return {"book_id": book_id, "tags": get_ai_service().generate_topic_tags(text, book.title)}


def summarize(text: str | None, max_words: int | None = None) -> str:
    return get_ai_service().generate_summary(_require_text(text), max_words or DEFAULT_SUMMARY_WORDS)


def book_summary(book_id: str) -> dict[str, Any]:
    book = get_book(book_id)
    if not book.description:
        raise APIError.bad_request("Book has no description to summarize")
    return {"book_id": book_id, "summary": get_ai_service().generate_summary(book.description)}


def discussion_summary(forum_id: str) -> dict[str, Any]:
    get_forum(forum_id)
    posts = forums_repo.list_posts_with_replies(forum_id, limit=DISCUSSION_POST_LIMIT)
    summary = get_ai_service().summarize_discussion(
        [{"username": post.username, "content": post.content} for post in posts]
    )
    return {"forum_id": forum_id, "summary": summary, "post_count": len(posts)}


def compose_notification(notification_type: str | None, context: dict[str, Any] | None = None) -> dict[str, str]:
    if not notification_type:
        raise APIError.bad_request("Notification type is required")
    return get_ai_service().generate_notification(notification_type, context or {})


def status() -> dict[str, Any]:
    configured = get_ai_service().is_configured()
    return {
        "configured": configured,
        "features": {
            "moderation": configured,
            "character_chat": configured,
            "recommendations": configured,
            "sentiment_analysis": True,
            "topic_tags": True,
            "summaries": True,
            "notifications": True,
            "speech_to_text": False,
            "ocr": False,
        },
    }
