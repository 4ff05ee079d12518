"""Repository functions for forums, memberships, posts, replies and likes."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class ForumRecord:
    id: str
    title: str
    description: str
    category: str
    creator_id: str
    is_active: bool
    created_at: str
    member_count: int = 0
    post_count: int = 0


@dataclass
class ReplyRecord:
    id: str
    post_id: str
    user_id: str
    content: str
    created_at: str
    username: str = ""


@dataclass
class PostRecord:
    id: str
    forum_id: str
    user_id: str
    content: str
    created_at: str
    username: str = ""
    likes: int = 0
    replies: list[ReplyRecord] = field(default_factory=list)


_FORUM_SELECT = """
    SELECT f.*,
        (SELECT COUNT(*) FROM forum_members m WHERE m.forum_id = f.id) AS member_count,
        (SELECT COUNT(*) FROM forum_posts p WHERE p.forum_id = f.id) AS post_count
    FROM forums f
"""


@db_retry
def insert_forum(title: str, creator_id: str, description: str = "", category: str = "general") -> str:
    """Create a forum with its creator as first member; returns the forum ID."""
    forum_id = new_id()
    now = utc_now()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO forums (id, title, description, category, creator_id, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, 1, ?)
            """,
            (forum_id, title, description, category, creator_id, now),
        )
        conn.execute(
            "INSERT INTO forum_members (forum_id, user_id, joined_at) VALUES (?, ?, ?)",
            (forum_id, creator_id, now),
        )

    logger.debug("forums.inserted", forum_id=forum_id)
    return forum_id


@db_retry
def get_forum(forum_id: str) -> ForumRecord | None:
    with get_db() as conn:
        row = conn.execute(_FORUM_SELECT + " WHERE f.id = ?", (forum_id,)).fetchone()
    return _row_to_forum(row) if row else None


@db_retry
def list_forums(category: str | None = None) -> list[ForumRecord]:
    """Active forums, newest first."""
    query = _FORUM_SELECT + " WHERE f.is_active = 1"
    params: list = []
    if category:
        query += " AND f.category = ?"
        params.append(category)
    query += " ORDER BY f.created_at DESC"
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_forum(row) for row in rows]


@db_retry
def is_member(forum_id: str, user_id: str) -> bool:
    with get_db() as conn:
        row = conn.execute(
            "SELECT 1 FROM forum_members WHERE forum_id = ? AND user_id = ?",
            (forum_id, user_id),
        ).fetchone()
    return row is not None


@db_retry
def add_member(forum_id: str, user_id: str) -> bool:
    """Add a member. Returns False if already a member."""
    try:
        with get_db() as conn:
            conn.execute(
                "INSERT INTO forum_members (forum_id, user_id, joined_at) VALUES (?, ?, ?)",
                (forum_id, user_id, utc_now()),
            )
    except sqlite3.IntegrityError:
        return False
    return True


@db_retry
def insert_post(forum_id: str, user_id: str, content: str) -> PostRecord:
    post = PostRecord(
        id=new_id(),
        forum_id=forum_id,
        user_id=user_id,
        content=content,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            "INSERT INTO forum_posts (id, forum_id, user_id, content, created_at) VALUES (?, ?, ?, ?, ?)",
            (post.id, forum_id, user_id, content, post.created_at),
        )

    logger.debug("forums.post_inserted", forum_id=forum_id, post_id=post.id)
    return post


@db_retry
def get_post(post_id: str) -> PostRecord | None:
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT p.*, u.username AS username,
                (SELECT COUNT(*) FROM forum_post_likes l WHERE l.post_id = p.id) AS likes
            FROM forum_posts p JOIN users u ON u.id = p.user_id
            WHERE p.id = ?
            """,
            (post_id,),
        ).fetchone()
    return _row_to_post(row) if row else None


@db_retry
def list_posts_with_replies(forum_id: str, limit: int | None = None) -> list[PostRecord]:
    """Posts of a forum, newest first, each with its replies oldest first."""
    query = """
        SELECT p.*, u.username AS username,
            (SELECT COUNT(*) FROM forum_post_likes l WHERE l.post_id = p.id) AS likes
        FROM forum_posts p JOIN users u ON u.id = p.user_id
        WHERE p.forum_id = ?
        ORDER BY p.created_at DESC
    """
    params: list = [forum_id]
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    with get_db() as conn:
        post_rows = conn.execute(query, params).fetchall()
        reply_rows = conn.execute(
            """
            SELECT r.*, u.username AS username
            FROM forum_replies r
            JOIN forum_posts p ON p.id = r.post_id
            JOIN users u ON u.id = r.user_id
            WHERE p.forum_id = ?
            ORDER BY r.created_at ASC
            """,
            (forum_id,),
        ).fetchall()

    posts = [_row_to_post(row) for row in post_rows]
    by_id = {post.id: post for post in posts}
    for row in reply_rows:
        post = by_id.get(row["post_id"])
        if post is not None:
            post.replies.append(_row_to_reply(row))
    return posts


@db_retry
def insert_reply(post_id: str, user_id: str, content: str) -> ReplyRecord:
    reply = ReplyRecord(
        id=new_id(),
        post_id=post_id,
        user_id=user_id,
        content=content,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            "INSERT INTO forum_replies (id, post_id, user_id, content, created_at) VALUES (?, ?, ?, ?, ?)",
            (reply.id, post_id, user_id, content, reply.created_at),
        )
    return reply


@db_retry
def toggle_post_like(post_id: str, user_id: str) -> tuple[bool, int]:
    """Flip the user's like on a post. Returns (liked, total likes)."""
    with get_db() as conn:
        existing = conn.execute(
            "SELECT 1 FROM forum_post_likes WHERE post_id = ? AND user_id = ?",
            (post_id, user_id),
        ).fetchone()
        if existing:
            conn.execute(
                "DELETE FROM forum_post_likes WHERE post_id = ? AND user_id = ?",
                (post_id, user_id),
            )
        else:
            conn.execute(
                "INSERT INTO forum_post_likes (post_id, user_id) VALUES (?, ?)",
                (post_id, user_id),
            )
        likes = conn.execute(
            "SELECT COUNT(*) FROM forum_post_likes WHERE post_id = ?", (post_id,)
        ).fetchone()[0]
    return not existing, likes


def _row_to_forum(row: sqlite3.Row) -> ForumRecord:
    return ForumRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        category=row["category"],
        creator_id=row["creator_id"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        member_count=row["member_count"],
        post_count=row["post_count"],
    )


def _row_to_post(row: sqlite3.Row) -> PostRecord:
    return PostRecord(
        id=row["id"],
        forum_id=row["forum_id"],
        user_id=row["user_id"],
        content=row["content"],
        created_at=row["created_at"],
        username=row["username"],
        likes=row["likes"],
    )


def _row_to_reply(row: sqlite3.Row) -> ReplyRecord:
    return ReplyRecord(
        id=row["id"],
        post_id=row["post_id"],
        user_id=row["user_id"],
        content=row["content"],
        created_at=row["created_at"],
        username=row["username"],
    )
