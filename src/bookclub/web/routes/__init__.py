"""Route handlers for the Web API."""

from bookclub.web.routes.achievements import router as achievements_router
from bookclub.web.routes.affiliates import router as affiliates_router
from bookclub.web.routes.ai import router as ai_router
from bookclub.web.routes.ai_chats import router as ai_chats_router
from bookclub.web.routes.auth import router as auth_router
from bookclub.web.routes.booklist import router as booklist_router
from bookclub.web.routes.books import router as books_router
from bookclub.web.routes.challenges import router as challenges_router
from bookclub.web.routes.characters import router as characters_router
from bookclub.web.routes.diary import router as diary_router
from bookclub.web.routes.fine_tune import router as fine_tune_router
from bookclub.web.routes.forums import router as forums_router
from bookclub.web.routes.goals import router as goals_router
from bookclub.web.routes.health import router as health_router
from bookclub.web.routes.notifications import router as notifications_router
from bookclub.web.routes.payments import router as payments_router
from bookclub.web.routes.reviews import router as reviews_router
from bookclub.web.routes.spaces import router as spaces_router
from bookclub.web.routes.streaks import router as streaks_router
from bookclub.web.routes.users import router as users_router

__all__ = [
    "achievements_router",
    "affiliates_router",
    "ai_chats_router",
    "ai_router",
    "auth_router",
    "booklist_router",
    "books_router",
    "challenges_router",
    "characters_router",
    "diary_router",
    "fine_tune_router",
    "forums_router",
    "goals_router",
    "health_router",
    "notifications_router",
    "payments_router",
    "reviews_router",
    "spaces_router",
    "streaks_router",
    "users_router",
]
