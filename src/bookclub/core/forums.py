"""Discussion forums with posts, replies and likes."""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.core.moderation import check_content
from bookclub.db import forums_repository as forums_repo
from bookclub.db.forums_repository import ForumRecord, PostRecord
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

logger = structlog.get_logger(__name__)


def get_forum(forum_id: str) -> ForumRecord:
    forum = forums_repo.get_forum(forum_id)
    if forum is None or not forum.is_active:
        raise APIError.not_found("Forum not found")
    return forum


def _get_post_in_forum(forum_id: str, post_id: str) -> PostRecord:
    get_forum(forum_id)
    post = forums_repo.get_post(post_id)
    if post is None or post.forum_id != forum_id:
        raise APIError.not_found("Post not found")
    return post


def _clean_content(content: str | None) -> str:
    content = sanitize_text(content or "")
    if not content:
        raise APIError.bad_request("Content is required")
    return content


def get_forum_detail(forum_id: str) -> dict[str, Any]:
    return {"forum": get_forum(forum_id), "posts": forums_repo.list_posts_with_replies(forum_id)}


def create_forum(
    user_id: str,
    title: str | None,
    description: str | None = "",
    category: str | None = "general",
) -> ForumRecord:
    title = sanitize_text(title or "", 200)
    if not title:
        raise APIError.bad_request("Forum title is required")
    forum_id = forums_repo.insert_forum(
        title, user_id, sanitize_text(description or "", 2000), category or "general"
    )
    logger.info("forum_created", forum_id=forum_id, user_id=user_id)
    return forums_repo.get_forum(forum_id)


def join_forum(user_id: str, forum_id: str) -> None:
    get_forum(forum_id)
    if not forums_repo.add_member(forum_id, user_id):
        raise APIError.bad_request("Already a member of this forum")


def create_post(user_id: str, forum_id: str, content: str | None) -> dict[str, Any]:
    content = _clean_content(content)
    get_forum(forum_id)
    if not forums_repo.is_member(forum_id, user_id):
        raise APIError.forbidden("You must be a member to post in this forum")

    warning = check_content(content)
    post = forums_repo.insert_post(forum_id, user_id, content)
    result: dict[str, Any] = {"post": post}
    if warning:
        result["moderation_warning"] = warning
    return result


def create_reply(user_id: str, forum_id: str, post_id: str, content: str | None) -> dict[str, Any]:
    content = _clean_content(content)
    _get_post_in_forum(forum_id, post_id)

    warning = check_content(content)
    reply = forums_repo.insert_reply(post_id, user_id, content)
    result: dict[str, Any] = {"reply": reply}
    if warning:
        result["moderation_warning"] = warning
    return result


def toggle_like(user_id: str, forum_id: str, post_id: str) -> dict[str, Any]:
    _get_post_in_forum(forum_id, post_id)
    liked, likes = forums_repo.toggle_post_like(post_id, user_id)
    return {"liked": liked, "likes": likes}
