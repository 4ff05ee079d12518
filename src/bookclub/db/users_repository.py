"""Repository functions for users, follows, reading lists and revoked tokens."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)

READING_LIST_TYPES = ("currentlyReading", "wantToRead", "read")


@dataclass
class UserRecord:
    """User record from database."""

    id: str
    email: str
    username: str
    password_hash: str
    bio: str
    avatar: str
    favorite_genres: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


@dataclass
class ReadingListEntry:
    """A book placed on one of the user's reading lists."""

    user_id: str
    book_id: str
    list_type: str
    added_at: str


# =============================================================================
# USERS
# =============================================================================


@db_retry
def insert_user(email: str, username: str, password_hash: str) -> UserRecord:
    """Insert a new user.

    Raises:
        sqlite3.IntegrityError: If email or username already exists
    """
    user_id = new_id()
    now = utc_now()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO users (id, email, username, password_hash, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, email, username, password_hash, now, now),
        )

    logger.debug("users.inserted", user_id=user_id)
    return UserRecord(
        id=user_id,
        email=email,
        username=username,
        password_hash=password_hash,
        bio="",
        avatar="",
        created_at=now,
        updated_at=now,
    )


@db_retry
def get_user_by_id(user_id: str) -> UserRecord | None:
    """Get user by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return _row_to_user(row) if row else None


@db_retry
def get_user_by_email(email: str) -> UserRecord | None:
    """Get user by email (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE lower(email) = lower(?)", (email,)
        ).fetchone()
    return _row_to_user(row) if row else None


@db_retry
def get_user_by_username(username: str) -> UserRecord | None:
    """Get user by username (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE lower(username) = lower(?)", (username,)
        ).fetchone()
    return _row_to_user(row) if row else None


@db_retry
def get_usernames(user_ids: list[str]) -> dict[str, str]:
    """Map user IDs to usernames."""
    if not user_ids:
        return {}
    placeholders = ",".join("?" for _ in user_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT id, username FROM users WHERE id IN ({placeholders})",
            tuple(user_ids),
        ).fetchall()
    return {row["id"]: row["username"] for row in rows}


@db_retry
def update_profile(
    user_id: str,
    bio: str | None = None,
    avatar: str | None = None,
    favorite_genres: list[str] | None = None,
) -> UserRecord | None:
    """Update profile fields that are not None.

    Returns:
        Updated UserRecord, or None if the user does not exist
    """
    user = get_user_by_id(user_id)
    if user is None:
        return None

    if bio is not None:
        user.bio = bio
    if avatar is not None:
        user.avatar = avatar
    if favorite_genres is not None:
        user.favorite_genres = favorite_genres
    user.updated_at = utc_now()

    with get_db() as conn:
        conn.execute(
            """
            UPDATE users SET bio = ?, avatar = ?, favorite_genres = ?, updated_at = ?
            WHERE id = ?
            """,
            (user.bio, user.avatar, json.dumps(user.favorite_genres), user.updated_at, user_id),
        )

    logger.debug("users.profile_updated", user_id=user_id)
    return user


# =============================================================================
# FOLLOWS
# =============================================================================


@db_retry
def add_follow(follower_id: str, following_id: str) -> bool:
    """Create a follow edge.

    Returns:
        True if created, False if it already existed
    """
    try:
        with get_db() as conn:
            conn.execute(
                "INSERT INTO follows (follower_id, following_id, created_at) VALUES (?, ?, ?)",
                (follower_id, following_id, utc_now()),
            )
    except sqlite3.IntegrityError:
        return False
    return True


@db_retry
def remove_follow(follower_id: str, following_id: str) -> bool:
    """Delete a follow edge. Returns False if it did not exist."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM follows WHERE follower_id = ? AND following_id = ?",
            (follower_id, following_id),
        )
    return cursor.rowcount > 0


@db_retry
def count_follows(user_id: str) -> tuple[int, int]:
    """Return (followers, following) counts."""
    with get_db() as conn:
        followers = conn.execute(
            "SELECT COUNT(*) FROM follows WHERE following_id = ?", (user_id,)
        ).fetchone()[0]
        following = conn.execute(
            "SELECT COUNT(*) FROM follows WHERE follower_id = ?", (user_id,)
        ).fetchone()[0]
    return followers, following


# =============================================================================
# READING LISTS
# =============================================================================


@db_retry
def set_reading_list(user_id: str, book_id: str, list_type: str) -> None:
    """Place a book on a list, moving it off any other list."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO reading_list_entries (user_id, book_id, list_type, added_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id, book_id)
            DO UPDATE SET list_type = excluded.list_type, added_at = excluded.added_at
            """,
            (user_id, book_id, list_type, utc_now()),
        )

    logger.debug("reading_list.set", user_id=user_id, book_id=book_id, list_type=list_type)


@db_retry
def remove_from_reading_list(user_id: str, book_id: str, list_type: str) -> bool:
    """Remove a book from a specific list."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM reading_list_entries WHERE user_id = ? AND book_id = ? AND list_type = ?",
            (user_id, book_id, list_type),
        )
    return cursor.rowcount > 0


@db_retry
def get_reading_list_entries(user_id: str) -> list[ReadingListEntry]:
    """All reading list entries of a user, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM reading_list_entries WHERE user_id = ? ORDER BY added_at",
            (user_id,),
        ).fetchall()
    return [
        ReadingListEntry(
            user_id=row["user_id"],
            book_id=row["book_id"],
            list_type=row["list_type"],
            added_at=row["added_at"],
        )
        for row in rows
    ]


# =============================================================================
# TOKENS
# =============================================================================


@db_retry
def revoke_token(jti: str) -> None:
    """Mark a token id as revoked (idempotent)."""
    with get_db() as conn:
        conn.execute(
            "INSERT OR IGNORE INTO revoked_tokens (jti, revoked_at) VALUES (?, ?)",
            (jti, utc_now()),
        )


@db_retry
def is_token_revoked(jti: str) -> bool:
    with get_db() as conn:
        row = conn.execute("SELECT 1 FROM revoked_tokens WHERE jti = ?", (jti,)).fetchone()
    return row is not None


def _row_to_user(row: sqlite3.Row) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        id=row["id"],
        email=row["email"],
        username=row["username"],
        password_hash=row["password_hash"],
        bio=row["bio"],
        avatar=row["avatar"],
        favorite_genres=json.loads(row["favorite_genres"] or "[]"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
