"""Repository functions for spaces, their members and messages."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class SpaceRecord:
    """Space record from database."""

    id: str
    name: str
    description: str
    type: str
    visibility: str
    creator_id: str
    expires_at: str | None
    video_enabled: bool
    video_room_id: str | None
    is_active: bool
    created_at: str
    member_count: int = 0


@dataclass
class SpaceMember:
    user_id: str
    username: str
    role: str
    joined_at: str


@dataclass
class SpaceMessage:
    id: str
    space_id: str
    user_id: str
    content: str
    created_at: str
    username: str = ""


_SPACE_SELECT = """
    SELECT s.*, (SELECT COUNT(*) FROM space_members m WHERE m.space_id = s.id) AS member_count
    FROM spaces s
"""


@db_retry
def insert_space(
    name: str,
    creator_id: str,
    description: str = "",
    type: str = "permanent",
    visibility: str = "public",
    expires_at: str | None = None,
    video_enabled: bool = False,
) -> str:
    """Create a space, making the creator its admin.

    When video is enabled the room ID is derived from the space ID.

    Returns:
        The new space ID
    """
    space_id = new_id()
    now = utc_now()
    video_room_id = f"video-{space_id}" if video_enabled else None
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO spaces (
                id, name, description, type, visibility, creator_id, expires_at,
                video_enabled, video_room_id, is_active, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?)
            """,
            (
                space_id,
                name,
                description,
                type,
                visibility,
                creator_id,
                expires_at,
                int(video_enabled),
                video_room_id,
                now,
            ),
        )
        conn.execute(
            "INSERT INTO space_members (space_id, user_id, role, joined_at) VALUES (?, ?, 'admin', ?)",
            (space_id, creator_id, now),
        )

    logger.debug("spaces.inserted", space_id=space_id, type=type)
    return space_id


@db_retry
def get_space(space_id: str) -> SpaceRecord | None:
    with get_db() as conn:
        row = conn.execute(_SPACE_SELECT + " WHERE s.id = ?", (space_id,)).fetchone()
    return _row_to_space(row) if row else None


@db_retry
def list_public_spaces(now: str, type: str | None = None) -> list[SpaceRecord]:
    """Active public spaces that have not expired, newest first."""
    query = (
        _SPACE_SELECT
        + " WHERE s.is_active = 1 AND s.visibility = 'public'"
        + " AND (s.expires_at IS NULL OR s.expires_at > ?)"
    )
    params: list = [now]
    if type:
        query += " AND s.type = ?"
        params.append(type)
    query += " ORDER BY s.created_at DESC"
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_space(row) for row in rows]


@db_retry
def get_member_role(space_id: str, user_id: str) -> str | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT role FROM space_members WHERE space_id = ? AND user_id = ?",
            (space_id, user_id),
        ).fetchone()
    return row["role"] if row else None


@db_retry
def list_members(space_id: str) -> list[SpaceMember]:
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT m.user_id, u.username, m.role, m.joined_at
            FROM space_members m JOIN users u ON u.id = m.user_id
            WHERE m.space_id = ?
            ORDER BY m.joined_at
            """,
            (space_id,),
        ).fetchall()
    return [
        SpaceMember(
            user_id=row["user_id"],
            username=row["username"],
            role=row["role"],
            joined_at=row["joined_at"],
        )
        for row in rows
    ]


@db_retry
def add_member(space_id: str, user_id: str, role: str = "member") -> bool:
    """Add a member. Returns False if already a member."""
    try:
        with get_db() as conn:
            conn.execute(
                "INSERT INTO space_members (space_id, user_id, role, joined_at) VALUES (?, ?, ?, ?)",
                (space_id, user_id, role, utc_now()),
            )
    except sqlite3.IntegrityError:
        return False
    return True


@db_retry
def remove_member(space_id: str, user_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM space_members WHERE space_id = ? AND user_id = ?",
            (space_id, user_id),
        )
    return cursor.rowcount > 0


@db_retry
def insert_message(space_id: str, user_id: str, content: str) -> SpaceMessage:
    message = SpaceMessage(
        id=new_id(),
        space_id=space_id,
        user_id=user_id,
        content=content,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            "INSERT INTO space_messages (id, space_id, user_id, content, created_at) VALUES (?, ?, ?, ?, ?)",
            (message.id, space_id, user_id, content, message.created_at),
        )
    return message


@db_retry
def list_recent_messages(space_id: str, limit: int = 50) -> list[SpaceMessage]:
    """Last `limit` messages, returned in chronological order."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM (
                SELECT msg.*, u.username AS username
                FROM space_messages msg JOIN users u ON u.id = msg.user_id
                WHERE msg.space_id = ?
                ORDER BY msg.created_at DESC
                LIMIT ?
            ) ORDER BY created_at ASC
            """,
            (space_id, limit),
        ).fetchall()
    return [
        SpaceMessage(
            id=row["id"],
            space_id=row["space_id"],
            user_id=row["user_id"],
            content=row["content"],
            created_at=row["created_at"],
            username=row["username"],
        )
        for row in rows
    ]


@db_retry
def set_video(space_id: str, video_enabled: bool, video_room_id: str | None) -> None:
    with get_db() as conn:
        conn.execute(
            "UPDATE spaces SET video_enabled = ?, video_room_id = ? WHERE id = ?",
            (int(video_enabled), video_room_id, space_id),
        )


@db_retry
def deactivate_space(space_id: str) -> None:
    with get_db() as conn:
        conn.execute("UPDATE spaces SET is_active = 0 WHERE id = ?", (space_id,))

    logger.debug("spaces.deactivated", space_id=space_id)


def _row_to_space(row: sqlite3.Row) -> SpaceRecord:
    """Convert database row to SpaceRecord."""
    return SpaceRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        type=row["type"],
        visibility=row["visibility"],
        creator_id=row["creator_id"],
        expires_at=row["expires_at"],
        video_enabled=bool(row["video_enabled"]),
        video_room_id=row["video_room_id"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        member_count=row["member_count"],
    )
