"""Core business logic.

Modules:
- auth: registration, login and JWT sessions
- users, books, reviews, booklist, diary: reading and catalog features
- subscriptions, payments: tier gating and Stripe billing
- affiliates: purchase links and click tracking
- spaces, forums, moderation: community features
- streaks, goals, challenges, achievements, notifications: engagement
- ai_chats, character_chat, fine_tuning, ai_tools: AI features
"""

__all__ = [
    "achievements",
    "affiliates",
    "ai_chats",
    "ai_tools",
    "auth",
    "booklist",
    "books",
    "challenges",
    "character_chat",
    "diary",
    "fine_tuning",
    "forums",
    "goals",
    "moderation",
    "notifications",
    "payments",
    "reviews",
    "spaces",
    "streaks",
    "subscriptions",
    "users",
]
