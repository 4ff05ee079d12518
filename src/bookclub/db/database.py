"""SQLite database connection and schema management.

Provides connection management and schema initialization for the book club
platform.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/bookclub.db")

# Current database file (module-level, set by init_db)
_db_path: Path | None = None


def new_id() -> str:
    """Generate a new entity identifier."""
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/bookclub.db
    """
    global _db_path
    _db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Path of the active database file."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM books").fetchall()
    """
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def check_connection() -> bool:
    """Run a trivial query to confirm the database is reachable."""
    with get_db() as conn:
        conn.execute("SELECT 1").fetchone()
    return True


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Accounts
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            bio TEXT NOT NULL DEFAULT '',
            avatar TEXT NOT NULL DEFAULT '',
            favorite_genres TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS follows (
            follower_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            following_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL,
            PRIMARY KEY (follower_id, following_id)
        );

        CREATE TABLE IF NOT EXISTS revoked_tokens (
            jti TEXT PRIMARY KEY,
            revoked_at TEXT NOT NULL
        );

        -- Catalog
        CREATE TABLE IF NOT EXISTS books (
            id TEXT PRIMARY KEY,
            google_books_id TEXT UNIQUE,
            title TEXT NOT NULL,
            authors TEXT NOT NULL DEFAULT '[]',
            description TEXT NOT NULL DEFAULT '',
            isbn TEXT,
            categories TEXT NOT NULL DEFAULT '[]',
            cover_image TEXT,
            page_count INTEGER,
            published_date TEXT,
            average_rating REAL NOT NULL DEFAULT 0,
            ratings_count INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS reading_list_entries (
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
            list_type TEXT NOT NULL CHECK(list_type IN ('currentlyReading', 'wantToRead', 'read')),
            added_at TEXT NOT NULL,
            PRIMARY KEY (user_id, book_id)
        );

        CREATE TABLE IF NOT EXISTS reviews (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
            rating INTEGER NOT NULL CHECK(rating BETWEEN 1 AND 5),
            title TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE (user_id, book_id)
        );

        CREATE TABLE IF NOT EXISTS review_likes (
            review_id TEXT NOT NULL REFERENCES reviews(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            PRIMARY KEY (review_id, user_id)
        );

        CREATE TABLE IF NOT EXISTS review_comments (
            id TEXT PRIMARY KEY,
            review_id TEXT NOT NULL REFERENCES reviews(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        -- Personal reading
        CREATE TABLE IF NOT EXISTS user_booklist (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
            rating TEXT NOT NULL CHECK(rating IN (
                'stayed-up-all-night', 'would-read-again', 'once-was-enough',
                'might-come-back-later', 'meh'
            )),
            review TEXT NOT NULL DEFAULT '',
            is_favorite INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE (user_id, book_id)
        );

        CREATE TABLE IF NOT EXISTS diary_entries (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
            entry_text TEXT NOT NULL,
            page_number INTEGER,
            mood TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS reading_goals (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            goal_type TEXT NOT NULL,
            target_value INTEGER NOT NULL,
            current_progress INTEGER NOT NULL DEFAULT 0,
            time_period TEXT NOT NULL CHECK(time_period IN ('daily', 'weekly', 'monthly', 'yearly')),
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active', 'completed', 'abandoned')),
            completed_at TEXT,
            created_at TEXT NOT NULL,
            UNIQUE (user_id, goal_type, time_period, start_date)
        );

        CREATE TABLE IF NOT EXISTS reading_streaks (
            user_id TEXT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_reading_date TEXT,
            streak_started_at TEXT,
            total_reading_days INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT NOT NULL
        );

        -- Gamification
        CREATE TABLE IF NOT EXISTS community_challenges (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT NOT NULL,
            challenge_type TEXT NOT NULL,
            target_value INTEGER NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            difficulty TEXT NOT NULL DEFAULT 'medium' CHECK(difficulty IN ('easy', 'medium', 'hard')),
            status TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('upcoming', 'active', 'completed')),
            reward_points INTEGER NOT NULL DEFAULT 100,
            participant_count INTEGER NOT NULL DEFAULT 0,
            created_by TEXT REFERENCES users(id) ON DELETE SET NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS challenge_participants (
            id TEXT PRIMARY KEY,
            challenge_id TEXT NOT NULL REFERENCES community_challenges(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            progress INTEGER NOT NULL DEFAULT 0,
            rank INTEGER,
            points_earned INTEGER NOT NULL DEFAULT 0,
            completed INTEGER NOT NULL DEFAULT 0,
            completed_at TEXT,
            joined_at TEXT NOT NULL,
            UNIQUE (challenge_id, user_id)
        );

        CREATE TABLE IF NOT EXISTS achievements (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL,
            category TEXT NOT NULL,
            tier TEXT NOT NULL CHECK(tier IN ('bronze', 'silver', 'gold', 'platinum')),
            icon TEXT NOT NULL DEFAULT '',
            points INTEGER NOT NULL DEFAULT 0,
            requirement_type TEXT NOT NULL,
            requirement_value INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS user_achievements (
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id TEXT NOT NULL REFERENCES achievements(id) ON DELETE CASCADE,
            earned_at TEXT NOT NULL,
            is_new INTEGER NOT NULL DEFAULT 1,
            displayed INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (user_id, achievement_id)
        );

        CREATE TABLE IF NOT EXISTS notifications (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type TEXT NOT NULL,
            title TEXT NOT NULL,
            message TEXT NOT NULL,
            is_read INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Billing
        CREATE TABLE IF NOT EXISTS subscriptions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            tier TEXT NOT NULL DEFAULT 'free' CHECK(tier IN ('free', 'premium', 'pro')),
            status TEXT NOT NULL DEFAULT 'active' CHECK(status IN (
                'active', 'canceled', 'past_due', 'trialing', 'incomplete'
            )),
            stripe_customer_id TEXT,
            stripe_subscription_id TEXT,
            current_period_start TEXT,
            current_period_end TEXT,
            cancel_at_period_end INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS payments (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            stripe_invoice_id TEXT,
            amount INTEGER NOT NULL DEFAULT 0,
            currency TEXT NOT NULL DEFAULT 'usd',
            status TEXT NOT NULL CHECK(status IN ('succeeded', 'failed')),
            description TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS affiliate_clicks (
            id TEXT PRIMARY KEY,
            user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
            book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
            isbn TEXT,
            platform TEXT NOT NULL,
            affiliate_url TEXT NOT NULL,
            commission REAL NOT NULL DEFAULT 0,
            ip_address TEXT,
            user_agent TEXT,
            created_at TEXT NOT NULL
        );

        -- Community
        CREATE TABLE IF NOT EXISTS forums (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category TEXT NOT NULL DEFAULT 'general',
            creator_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS forum_members (
            forum_id TEXT NOT NULL REFERENCES forums(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            joined_at TEXT NOT NULL,
            PRIMARY KEY (forum_id, user_id)
        );

        CREATE TABLE IF NOT EXISTS forum_posts (
            id TEXT PRIMARY KEY,
            forum_id TEXT NOT NULL REFERENCES forums(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS forum_post_likes (
            post_id TEXT NOT NULL REFERENCES forum_posts(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            PRIMARY KEY (post_id, user_id)
        );

        CREATE TABLE IF NOT EXISTS forum_replies (
            id TEXT PRIMARY KEY,
            post_id TEXT NOT NULL REFERENCES forum_posts(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS spaces (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            type TEXT NOT NULL DEFAULT 'permanent' CHECK(type IN ('temporary', 'permanent')),
            visibility TEXT NOT NULL DEFAULT 'public' CHECK(visibility IN ('public', 'private')),
            creator_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            expires_at TEXT,
            video_enabled INTEGER NOT NULL DEFAULT 0,
            video_room_id TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS space_members (
            space_id TEXT NOT NULL REFERENCES spaces(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            role TEXT NOT NULL DEFAULT 'member' CHECK(role IN ('admin', 'member')),
            joined_at TEXT NOT NULL,
            PRIMARY KEY (space_id, user_id)
        );

        CREATE TABLE IF NOT EXISTS space_messages (
            id TEXT PRIMARY KEY,
            space_id TEXT NOT NULL REFERENCES spaces(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        -- AI chat
        CREATE TABLE IF NOT EXISTS ai_chats (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            character_name TEXT NOT NULL,
            character_type TEXT NOT NULL CHECK(character_type IN ('author', 'character')),
            context TEXT NOT NULL DEFAULT '',
            personality TEXT NOT NULL DEFAULT '',
            greeting TEXT NOT NULL DEFAULT '',
            video_enabled INTEGER NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
            message_count INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS chat_messages (
            id TEXT PRIMARY KEY,
            chat_id TEXT NOT NULL REFERENCES ai_chats(id) ON DELETE CASCADE,
            sender TEXT NOT NULL CHECK(sender IN ('user', 'ai')),
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS character_conversations (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            character_id TEXT NOT NULL,
            messages TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS fine_tuned_models (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            model_type TEXT NOT NULL CHECK(model_type IN ('author', 'character', 'quick')),
            entity_name TEXT NOT NULL,
            book_id TEXT,
            base_model TEXT NOT NULL,
            fine_tuned_model_id TEXT,
            training_job_id TEXT,
            status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN (
                'pending', 'training', 'completed', 'failed', 'ready'
            )),
            training_data TEXT NOT NULL DEFAULT '[]',
            style_guide TEXT NOT NULL DEFAULT '',
            is_public INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS fine_tune_conversations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            model_id TEXT NOT NULL REFERENCES fine_tuned_models(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            conversation_id TEXT NOT NULL,
            role TEXT NOT NULL CHECK(role IN ('user', 'assistant')),
            content TEXT NOT NULL,
            message_order INTEGER NOT NULL,
            tokens INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Indices
        CREATE INDEX IF NOT EXISTS idx_reviews_book ON reviews(book_id);
        CREATE INDEX IF NOT EXISTS idx_booklist_user ON user_booklist(user_id);
        CREATE INDEX IF NOT EXISTS idx_diary_user_book ON diary_entries(user_id, book_id);
        CREATE INDEX IF NOT EXISTS idx_goals_user ON reading_goals(user_id);
        CREATE INDEX IF NOT EXISTS idx_participants_challenge ON challenge_participants(challenge_id);
        CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id);
        CREATE INDEX IF NOT EXISTS idx_chat_messages_chat ON chat_messages(chat_id);
        CREATE INDEX IF NOT EXISTS idx_char_conv_user ON character_conversations(user_id, character_id);
        CREATE INDEX IF NOT EXISTS idx_ft_conv_model ON fine_tune_conversations(model_id, conversation_id);
        CREATE INDEX IF NOT EXISTS idx_affiliate_book ON affiliate_clicks(book_id);
        CREATE INDEX IF NOT EXISTS idx_space_messages_space ON space_messages(space_id);
        """
    )
