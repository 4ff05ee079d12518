"""Repository functions for user-defined AI chats and their messages."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class AIChatRecord:
    """AI chat record from database."""

    id: str
    user_id: str
    character_name: str
    character_type: str
    context: str
    personality: str
    greeting: str
    video_enabled: bool
    is_active: bool
    message_count: int
    created_at: str
    updated_at: str


@dataclass
class ChatMessageRecord:
    id: str
    chat_id: str
    sender: str
    content: str
    created_at: str


@db_retry
def insert_chat(
    user_id: str,
    character_name: str,
    character_type: str,
    personality: str,
    greeting: str,
    context: str = "",
    video_enabled: bool = False,
) -> AIChatRecord:
    """Create a chat and store the greeting as its first AI message."""
    now = utc_now()
    chat = AIChatRecord(
        id=new_id(),
        user_id=user_id,
        character_name=character_name,
        character_type=character_type,
        context=context,
        personality=personality,
        greeting=greeting,
        video_enabled=video_enabled,
        is_active=True,
        message_count=1,
        created_at=now,
        updated_at=now,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO ai_chats (
                id, user_id, character_name, character_type, context, personality,
                greeting, video_enabled, is_active, message_count, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, 1, ?, ?)
            """,
            (
                chat.id,
                user_id,
                character_name,
                character_type,
                context,
                personality,
                greeting,
                int(video_enabled),
                now,
                now,
            ),
        )
        conn.execute(
            "INSERT INTO chat_messages (id, chat_id, sender, content, created_at) VALUES (?, ?, 'ai', ?, ?)",
            (new_id(), chat.id, greeting, now),
        )

    logger.debug("ai_chats.inserted", chat_id=chat.id, user_id=user_id)
    return chat


@db_retry
def get_chat(chat_id: str) -> AIChatRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM ai_chats WHERE id = ?", (chat_id,)).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def list_active_chats(user_id: str) -> list[AIChatRecord]:
    """Active chats, most recently updated first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM ai_chats WHERE user_id = ? AND is_active = 1 ORDER BY updated_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def count_active_chats(user_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM ai_chats WHERE user_id = ? AND is_active = 1",
            (user_id,),
        ).fetchone()[0]


@db_retry
def count_user_messages_since(user_id: str, since: str) -> int:
    """User-sent messages across all of the user's chats since a timestamp."""
    with get_db() as conn:
        return conn.execute(
            """
            SELECT COUNT(*) FROM chat_messages m
            JOIN ai_chats c ON c.id = m.chat_id
            WHERE c.user_id = ? AND m.sender = 'user' AND m.created_at >= ?
            """,
            (user_id, since),
        ).fetchone()[0]


@db_retry
def list_messages(chat_id: str, limit: int | None = None) -> list[ChatMessageRecord]:
    """Messages in chronological order; with a limit, only the most recent ones."""
    if limit is None:
        query = "SELECT * FROM chat_messages WHERE chat_id = ? ORDER BY created_at ASC, rowid ASC"
        params: tuple = (chat_id,)
    else:
        query = """
            SELECT * FROM (
                SELECT *, rowid AS seq FROM chat_messages WHERE chat_id = ?
                ORDER BY created_at DESC, rowid DESC LIMIT ?
            ) ORDER BY created_at ASC, seq ASC
        """
        params = (chat_id, limit)
    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [
        ChatMessageRecord(
            id=row["id"],
            chat_id=row["chat_id"],
            sender=row["sender"],
            content=row["content"],
            created_at=row["created_at"],
        )
        for row in rows
    ]


@db_retry
def append_exchange(chat_id: str, user_text: str, ai_text: str) -> tuple[ChatMessageRecord, ChatMessageRecord]:
    """Store a user message and the AI reply, bumping message_count by 2."""
    now = utc_now()
    user_msg = ChatMessageRecord(id=new_id(), chat_id=chat_id, sender="user", content=user_text, created_at=now)
    ai_msg = ChatMessageRecord(id=new_id(), chat_id=chat_id, sender="ai", content=ai_text, created_at=now)
    with get_db() as conn:
        for msg in (user_msg, ai_msg):
            conn.execute(
                "INSERT INTO chat_messages (id, chat_id, sender, content, created_at) VALUES (?, ?, ?, ?, ?)",
                (msg.id, chat_id, msg.sender, msg.content, msg.created_at),
            )
        conn.execute(
            "UPDATE ai_chats SET message_count = message_count + 2, updated_at = ? WHERE id = ?",
            (now, chat_id),
        )
    return user_msg, ai_msg


@db_retry
def archive_chat(chat_id: str) -> None:
    with get_db() as conn:
        conn.execute(
            "UPDATE ai_chats SET is_active = 0, updated_at = ? WHERE id = ?",
            (utc_now(), chat_id),
        )


def _row_to_record(row: sqlite3.Row) -> AIChatRecord:
    """Convert database row to AIChatRecord."""
    return AIChatRecord(
        id=row["id"],
        user_id=row["user_id"],
        character_name=row["character_name"],
        character_type=row["character_type"],
        context=row["context"],
        personality=row["personality"],
        greeting=row["greeting"],
        video_enabled=bool(row["video_enabled"]),
        is_active=bool(row["is_active"]),
        message_count=row["message_count"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
