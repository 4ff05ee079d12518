"""Book review endpoints."""

from fastapi import APIRouter, Depends, status

from bookclub.core import reviews
from bookclub.db import reviews_repository as reviews_repo
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import CommentCreate, ReviewCreate, ReviewUpdate

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("/book/{book_id}")
async def list_book_reviews(book_id: str) -> dict:
    """Reviews of a book, newest first, with like and comment counts."""
    items = reviews_repo.list_reviews_for_book(book_id)
    return {"reviews": items, "count": len(items)}


@router.get("/user/{user_id}")
async def list_user_reviews(user_id: str) -> dict:
    items = reviews_repo.list_reviews_by_user(user_id)
    return {"reviews": items, "count": len(items)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(body: ReviewCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    review = reviews.create_review(user.id, body.book_id, body.rating, body.content, body.title)
    return {"review": review}


@router.put("/{review_id}")
async def update_review(
    review_id: str,
    body: ReviewUpdate,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    review = reviews.update_review(user.id, review_id, body.rating, body.title, body.content)
    return {"review": review}


@router.delete("/{review_id}")
async def delete_review(review_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    reviews.delete_review(user.id, review_id)
    return {"message": "Review deleted"}


@router.post("/{review_id}/like")
async def toggle_like(review_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    return reviews.toggle_like(user.id, review_id)


@router.post("/{review_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
    review_id: str,
    body: CommentCreate,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Comment on a review; the content is moderated."""
    return reviews.add_comment(user.id, review_id, body.content)
