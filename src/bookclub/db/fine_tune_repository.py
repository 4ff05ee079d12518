"""Repository functions for fine-tuned persona models and their conversations."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)


@dataclass
class FineTunedModel:
    """Fine-tuned model record from database."""

    id: str
    user_id: str
    model_type: str
    entity_name: str
    book_id: str | None
    base_model: str
    fine_tuned_model_id: str | None
    training_job_id: str | None
    status: str
    training_data: list[dict] = field(default_factory=list)
    style_guide: str = ""
    is_public: bool = False
    created_at: str = ""
    updated_at: str = ""


@dataclass
class FineTuneMessage:
    id: int
    model_id: str
    user_id: str
    conversation_id: str
    role: str
    content: str
    message_order: int
    tokens: int
    created_at: str


@db_retry
def insert_model(
    user_id: str,
    model_type: str,
    entity_name: str,
    base_model: str,
    status: str,
    training_data: list[dict],
    style_guide: str,
    book_id: str | None = None,
    training_job_id: str | None = None,
    fine_tuned_model_id: str | None = None,
) -> FineTunedModel:
    now = utc_now()
    model = FineTunedModel(
        id=new_id(),
        user_id=user_id,
        model_type=model_type,
        entity_name=entity_name,
        book_id=book_id,
        base_model=base_model,
        fine_tuned_model_id=fine_tuned_model_id,
        training_job_id=training_job_id,
        status=status,
        training_data=training_data,
        style_guide=style_guide,
        created_at=now,
        updated_at=now,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO fine_tuned_models (
                id, user_id, model_type, entity_name, book_id, base_model,
                fine_tuned_model_id, training_job_id, status, training_data,
                style_guide, is_public, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (
                model.id,
                user_id,
                model_type,
                entity_name,
                book_id,
                base_model,
                fine_tuned_model_id,
                training_job_id,
                status,
                json.dumps(training_data),
                style_guide,
                now,
                now,
            ),
        )

    logger.debug("fine_tune.model_inserted", model_id=model.id, model_type=model_type)
    return model


@db_retry
def get_model(model_id: str) -> FineTunedModel | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM fine_tuned_models WHERE id = ?", (model_id,)).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def find_model(user_id: str, model_type: str, entity_name: str, book_id: str | None) -> FineTunedModel | None:
    """Find an existing model of the user for the same entity and book."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT * FROM fine_tuned_models
            WHERE user_id = ? AND model_type = ? AND entity_name = ? AND book_id IS ?
            """,
            (user_id, model_type, entity_name, book_id),
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def list_visible_models(user_id: str) -> list[FineTunedModel]:
    """The user's own models plus public ones, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM fine_tuned_models
            WHERE user_id = ? OR is_public = 1
            ORDER BY created_at DESC
            """,
            (user_id,),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


@db_retry
def update_model(model_id: str, **fields: Any) -> None:
    """Update status, fine_tuned_model_id or training_job_id."""
    allowed = {"status", "fine_tuned_model_id", "training_job_id"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown model fields: {sorted(unknown)}")
    assignments = [f"{column} = ?" for column in fields] + ["updated_at = ?"]
    with get_db() as conn:
        conn.execute(
            f"UPDATE fine_tuned_models SET {', '.join(assignments)} WHERE id = ?",
            [*fields.values(), utc_now(), model_id],
        )


@db_retry
def delete_model(model_id: str) -> bool:
    """Delete a model; its conversations cascade."""
    with get_db() as conn:
        conn.execute("DELETE FROM fine_tune_conversations WHERE model_id = ?", (model_id,))
        cursor = conn.execute("DELETE FROM fine_tuned_models WHERE id = ?", (model_id,))
    return cursor.rowcount > 0


@db_retry
def list_conversation_messages(
    model_id: str, user_id: str, conversation_id: str, limit: int
) -> list[FineTuneMessage]:
    """Last `limit` of the user's messages in one conversation, in order."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM (
                SELECT * FROM fine_tune_conversations
                WHERE model_id = ? AND user_id = ? AND conversation_id = ?
                ORDER BY message_order DESC LIMIT ?
            ) ORDER BY message_order ASC
            """,
            (model_id, user_id, conversation_id, limit),
        ).fetchall()
    return [_row_to_message(row) for row in rows]


@db_retry
def next_message_order(model_id: str, user_id: str, conversation_id: str) -> int:
    with get_db() as conn:
        value = conn.execute(
            """
            SELECT COALESCE(MAX(message_order), 0) FROM fine_tune_conversations
            WHERE model_id = ? AND user_id = ? AND conversation_id = ?
            """,
            (model_id, user_id, conversation_id),
        ).fetchone()[0]
    return value + 1


@db_retry
def insert_messages(
    model_id: str,
    user_id: str,
    conversation_id: str,
    messages: list[tuple[str, str, int]],
) -> None:
    """Insert (role, content, tokens) rows with consecutive message_order values."""
    order = next_message_order(model_id, user_id, conversation_id)
    now = utc_now()
    with get_db() as conn:
        for offset, (role, content, tokens) in enumerate(messages):
            conn.execute(
                """
                INSERT INTO fine_tune_conversations (
                    model_id, user_id, conversation_id, role, content, message_order, tokens, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (model_id, user_id, conversation_id, role, content, order + offset, tokens, now),
            )


@db_retry
def list_user_messages(model_id: str, user_id: str) -> list[FineTuneMessage]:
    """All of the user's messages for a model, ordered for grouping."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM fine_tune_conversations
            WHERE model_id = ? AND user_id = ?
            ORDER BY conversation_id, message_order
            """,
            (model_id, user_id),
        ).fetchall()
    return [_row_to_message(row) for row in rows]


def _row_to_record(row: sqlite3.Row) -> FineTunedModel:
    """Convert database row to FineTunedModel."""
    return FineTunedModel(
        id=row["id"],
        user_id=row["user_id"],
        model_type=row["model_type"],
        entity_name=row["entity_name"],
        book_id=row["book_id"],
        base_model=row["base_model"],
        fine_tuned_model_id=row["fine_tuned_model_id"],
        training_job_id=row["training_job_id"],
        status=row["status"],
        training_data=json.loads(row["training_data"] or "[]"),
        style_guide=row["style_guide"],
        is_public=bool(row["is_public"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_message(row: sqlite3.Row) -> FineTuneMessage:
    return FineTuneMessage(
        id=row["id"],
        model_id=row["model_id"],
        user_id=row["user_id"],
        conversation_id=row["conversation_id"],
        role=row["role"],
        content=row["content"],
        message_order=row["message_order"],
        tokens=row["tokens"],
        created_at=row["created_at"],
    )
