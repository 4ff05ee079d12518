"""Repository functions for conversations with prebuilt characters.

Messages are stored as a JSON array on the conversation row.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry


@dataclass
class CharacterConversation:
    """Conversation between a user and a prebuilt character."""

    id: str
    user_id: str
    character_id: str
    messages: list[dict] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


@db_retry
def insert_conversation(user_id: str, character_id: str) -> CharacterConversation:
    now = utc_now()
    conversation = CharacterConversation(
        id=new_id(),
        user_id=user_id,
        character_id=character_id,
        created_at=now,
        updated_at=now,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO character_conversations (id, user_id, character_id, messages, created_at, updated_at)
            VALUES (?, ?, ?, '[]', ?, ?)
            """,
            (conversation.id, user_id, character_id, now, now),
        )
    return conversation


@db_retry
def get_conversation(
    conversation_id: str,
    user_id: str,
    character_id: str | None = None,
) -> CharacterConversation | None:
    """Fetch a conversation owned by the user, optionally scoped to a character."""
    query = "SELECT * FROM character_conversations WHERE id = ? AND user_id = ?"
    params: list = [conversation_id, user_id]
    if character_id is not None:
        query += " AND character_id = ?"
        params.append(character_id)
    with get_db() as conn:
        row = conn.execute(query, params).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def count_conversations(user_id: str, character_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM character_conversations WHERE user_id = ? AND character_id = ?",
            (user_id, character_id),
        ).fetchone()[0]


@db_retry
def list_conversations(user_id: str, character_id: str, limit: int = 50) -> list[CharacterConversation]:
    """Most recently updated conversations first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM character_conversations
            WHERE user_id = ? AND character_id = ?
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (user_id, character_id, limit),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def save_messages(conversation_id: str, messages: list[dict]) -> str:
    """Replace the stored messages; returns the new updated_at."""
    now = utc_now()
    with get_db() as conn:
        conn.execute(
            "UPDATE character_conversations SET messages = ?, updated_at = ? WHERE id = ?",
            (json.dumps(messages), now, conversation_id),
        )
    return now


@db_retry
def delete_conversation(conversation_id: str, user_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM character_conversations WHERE id = ? AND user_id = ?",
            (conversation_id, user_id),
        )
    return cursor.rowcount > 0


def _row_to_record(row: sqlite3.Row) -> CharacterConversation:
    return CharacterConversation(
        id=row["id"],
        user_id=row["user_id"],
        character_id=row["character_id"],
        messages=json.loads(row["messages"] or "[]"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
