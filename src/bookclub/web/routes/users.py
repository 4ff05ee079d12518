"""User profile, reading list and follow endpoints."""

from fastapi import APIRouter, Depends

from bookclub.core import users
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import ProfileUpdate, ReadingListAdd

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/recommendations")
async def get_recommendations(user: UserRecord = Depends(get_current_user)) -> dict:
    """Book recommendations based on the user's reading lists."""
    return users.get_recommendations(user.id)


@router.get("/reading-insights")
async def get_reading_insights(user: UserRecord = Depends(get_current_user)) -> dict:
    return users.get_reading_insights(user.id)


@router.put("/profile")
async def update_profile(body: ProfileUpdate, user: UserRecord = Depends(get_current_user)) -> dict:
    updated = users.update_profile(user.id, body.bio, body.avatar, body.favorite_genres)
    return {"user": users.private_profile(updated)}


@router.post("/reading-list/{list_type}")
async def add_to_reading_list(
    list_type: str,
    body: ReadingListAdd,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Place a book on a reading list, removing it from the others."""
    return {"reading_lists": users.add_to_reading_list(user.id, list_type, body.book_id)}


@router.delete("/reading-list/{list_type}/{book_id}")
async def remove_from_reading_list(
    list_type: str,
    book_id: str,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    return {"reading_lists": users.remove_from_reading_list(user.id, list_type, book_id)}


@router.get("/{user_id}")
async def get_user(user_id: str) -> dict:
    """Public profile with follow counts and reading lists."""
    return users.get_profile(user_id)


@router.post("/{user_id}/follow")
async def follow_user(user_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    users.follow(user.id, user_id)
    return {"message": "User followed"}


@router.post("/{user_id}/unfollow")
async def unfollow_user(user_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    users.unfollow(user.id, user_id)
    return {"message": "User unfollowed"}
