"""Discussion forum endpoints."""

from fastapi import APIRouter, Depends, status

from bookclub.core import forums
from bookclub.db import forums_repository as forums_repo
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import ForumCreate, MessageCreate

router = APIRouter(prefix="/api/forums", tags=["forums"])


@router.get("")
async def list_forums(category: str | None = None) -> dict:
    items = forums_repo.list_forums(category)
    return {"forums": items, "count": len(items)}


@router.get("/{forum_id}")
async def get_forum(forum_id: str) -> dict:
    """Forum with its posts, replies and like counts."""
    return forums.get_forum_detail(forum_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_forum(body: ForumCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    forum = forums.create_forum(user.id, body.title, body.description, body.category)
    return {"forum": forum}


@router.post("/{forum_id}/join")
async def join_forum(forum_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    forums.join_forum(user.id, forum_id)
    return {"message": "Joined forum"}


@router.post("/{forum_id}/posts", status_code=status.HTTP_201_CREATED)
async def create_post(
    forum_id: str,
    body: MessageCreate,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    return forums.create_post(user.id, forum_id, body.content)


@router.post("/{forum_id}/posts/{post_id}/replies", status_code=status.HTTP_201_CREATED)
async def create_reply(
    forum_id: str,
    post_id: str,
    body: MessageCreate,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    return forums.create_reply(user.id, forum_id, post_id, body.content)


@router.post("/{forum_id}/posts/{post_id}/like")
async def toggle_like(forum_id: str, post_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    return forums.toggle_like(user.id, forum_id, post_id)
