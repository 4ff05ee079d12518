"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository modules, one per table group (users, books, reviews,
  booklist, diary, goals, streaks, challenges, achievements,
  notifications, subscriptions, affiliates, forums, spaces, AI chats,
  character conversations, fine-tuned models)
"""

from bookclub.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
