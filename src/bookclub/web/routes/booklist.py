"""Rated booklist endpoints."""

from fastapi import APIRouter, Depends, status

from bookclub.core import booklist
from bookclub.db import booklist_repository as booklist_repo
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import BooklistCreate, BooklistUpdate, ReviewSummaryRequest

router = APIRouter(prefix="/api/booklist", tags=["booklist"])


@router.get("/my-booklist")
async def my_booklist(user: UserRecord = Depends(get_current_user)) -> dict:
    entries = booklist_repo.list_entries(user.id)
    return {"booklist": entries, "count": len(entries)}


@router.get("/user/{user_id}")
async def user_booklist(user_id: str) -> dict:
    entries = booklist_repo.list_entries(user_id)
    return {"booklist": entries, "count": len(entries)}


@router.get("/by-rating/{rating}")
async def by_rating(rating: str, user: UserRecord = Depends(get_current_user)) -> dict:
    entries = booklist.list_by_rating(user.id, rating)
    return {"booklist": entries, "count": len(entries)}


@router.get("/favorites")
async def favorites(user: UserRecord = Depends(get_current_user)) -> dict:
    entries = booklist_repo.list_entries(user.id, favorites_only=True)
    return {"booklist": entries, "count": len(entries)}


@router.get("/stats")
async def stats(user: UserRecord = Depends(get_current_user)) -> dict:
    return booklist.get_stats(user.id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_entry(body: BooklistCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    """Add a book with a rating label; limited by the subscription tier."""
    entry = booklist.add_entry(user.id, body.book_id, body.rating, body.review, body.is_favorite)
    return {"entry": entry}


@router.put("/{entry_id}")
async def update_entry(
    entry_id: str,
    body: BooklistUpdate,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    entry = booklist.update_entry(user.id, entry_id, body.rating, body.review, body.is_favorite)
    return {"entry": entry}


@router.delete("/{entry_id}")
async def delete_entry(entry_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    booklist.delete_entry(user.id, entry_id)
    return {"message": "Book removed from booklist"}


@router.post("/summarize-review")
async def summarize_review(body: ReviewSummaryRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    return booklist.summarize_review(body.review_text)
