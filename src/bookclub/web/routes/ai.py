"""AI text utilities: sentiment, tags, summaries and notifications."""

from fastapi import APIRouter, Depends

from bookclub.core import ai_tools
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user, rate_limit
from bookclub.web.schemas import NotificationRequest, TextRequest

router = APIRouter(prefix="/api/ai", tags=["ai"], dependencies=[Depends(rate_limit("ai"))])


@router.post("/sentiment")
async def sentiment(body: TextRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    return ai_tools.analyze_sentiment(body.text)


@router.get("/review-sentiment/{review_id}")
async def review_sentiment(review_id: str) -> dict:
    return ai_tools.review_sentiment(review_id)


@router.get("/book-sentiment/{book_id}")
async def book_sentiment(book_id: str) -> dict:
    """Average sentiment over the book's recent reviews."""
    return ai_tools.book_sentiment(book_id)


@router.post("/generate-tags")
async def generate_tags(body: TextRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    return {"tags": ai_tools.generate_tags(body.text, body.title)}


@router.get("/book-tags/{book_id}")
async def book_tags(book_id: str) -> dict:
    return ai_tools.book_tags(book_id)


@router.post("/summarize")
async def summarize(body: TextRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    return {"summary": ai_tools.summarize(body.text, body.max_words)}


@router.get("/book-summary/{book_id}")
async def book_summary(book_id: str) -> dict:
    return ai_tools.book_summary(book_id)


@router.get("/discussion-summary/{forum_id}")
async def discussion_summary(forum_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    return ai_tools.discussion_summary(forum_id)


@router.post("/notification")
async def notification(body: NotificationRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    """Compose a notification title and message for an event type."""
    return ai_tools.compose_notification(body.type, body.context)


@router.get("/status")
async def ai_status() -> dict:
    return ai_tools.status()
