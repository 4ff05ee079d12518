"""Subscription tier tables.

Static lookup tables that gate features and resource limits per
subscription tier. ``None`` means unlimited for resource limits; the
feature table and chat limits use ``-1`` for unlimited, matching what
clients display.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

TIER_ORDER = ["free", "premium", "pro"]

SUBSCRIPTION_STATUSES = ["active", "canceled", "past_due", "trialing", "incomplete"]

# Statuses that grant the subscribed tier
ACTIVE_STATUSES = {"active", "trialing"}

UNLIMITED = -1


@dataclass(frozen=True)
class TierLimits:
    """Resource limits for a tier."""

    diary_books: int | None
    max_booklist_size: int | None
    ai_chats_per_month: int | None


@dataclass(frozen=True)
class ChatLimits:
    """AI chat limits for a tier."""

    max_active_chats: int
    max_messages_per_day: int
    video_enabled: bool


TIER_LIMITS: dict[str, TierLimits] = {
    "free": TierLimits(diary_books=2, max_booklist_size=50, ai_chats_per_month=5),
    "premium": TierLimits(diary_books=10, max_booklist_size=200, ai_chats_per_month=50),
    "pro": TierLimits(diary_books=None, max_booklist_size=None, ai_chats_per_month=None),
}

CHAT_LIMITS: dict[str, ChatLimits] = {
    "free": ChatLimits(max_active_chats=2, max_messages_per_day=20, video_enabled=False),
    "premium": ChatLimits(max_active_chats=10, max_messages_per_day=100, video_enabled=True),
    "pro": ChatLimits(max_active_chats=UNLIMITED, max_messages_per_day=UNLIMITED, video_enabled=True),
}

SUBSCRIPTION_FEATURES: dict[str, dict[str, Any]] = {
    "free": {
        "ad_free": False,
        "enhanced_recommendations": False,
        "exclusive_forums": False,
        "video_chat": False,
        "custom_themes": False,
        "priority_support": False,
        "max_reading_lists": 3,
        "max_spaces": 5,
        "max_ai_chats": 2,
        "ai_chat_video_enabled": False,
    },
    "premium": {
        "ad_free": True,
        "enhanced_recommendations": True,
        "exclusive_forums": True,
        "video_chat": True,
        "custom_themes": False,
        "priority_support": False,
        "max_reading_lists": 10,
        "max_spaces": 20,
        "max_ai_chats": 10,
        "ai_chat_video_enabled": True,
    },
    "pro": {
        "ad_free": True,
        "enhanced_recommendations": True,
        "exclusive_forums": True,
        "video_chat": True,
        "custom_themes": True,
        "priority_support": True,
        "max_reading_lists": UNLIMITED,
        "max_spaces": UNLIMITED,
        "max_ai_chats": UNLIMITED,
        "ai_chat_video_enabled": True,
    },
}

PRICING_TIERS: dict[str, dict[str, Any]] = {
    "premium": {
        "name": "Premium",
        "price": 9.99,
        "currency": "usd",
        "interval": "month",
        "features": [
            "Ad-free experience",
            "Enhanced AI recommendations",
            "Access to exclusive forums",
            "Video chat capability",
            "Up to 10 reading lists",
            "Create up to 20 spaces",
        ],
    },
    "pro": {
        "name": "Pro",
        "price": 19.99,
        "currency": "usd",
        "interval": "month",
        "features": [
            "All Premium features",
            "Custom themes",
            "Priority support",
            "Unlimited reading lists",
            "Unlimited spaces",
            "Early access to new features",
            "Bulk import tools",
        ],
    },
}


def normalize_tier(tier: str | None) -> str:
    """Return a known tier name, falling back to free."""
    return tier if tier in TIER_ORDER else "free"


def get_tier_limits(tier: str | None) -> TierLimits:
    """Get resource limits for a tier (unknown tiers get free limits)."""
    return TIER_LIMITS[normalize_tier(tier)]


def get_chat_limits(tier: str | None) -> ChatLimits:
    """Get AI chat limits for a tier."""
    return CHAT_LIMITS[normalize_tier(tier)]


def get_subscription_features(tier: str | None) -> dict[str, Any]:
    """Get a copy of the feature flags for a tier."""
    return dict(SUBSCRIPTION_FEATURES[normalize_tier(tier)])


def tier_rank(tier: str | None) -> int:
    """Position of a tier in TIER_ORDER."""
    return TIER_ORDER.index(normalize_tier(tier))


def tier_at_least(tier: str | None, minimum: str) -> bool:
    """True when ``tier`` is the same as or above ``minimum``."""
    return tier_rank(tier) >= tier_rank(minimum)


def limits_to_dict(limits: TierLimits | ChatLimits) -> dict[str, Any]:
    """Serialize a limits dataclass for API responses."""
    return asdict(limits)
