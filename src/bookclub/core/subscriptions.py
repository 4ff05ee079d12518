"""Subscription tier lookups and feature gating."""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.config.tiers import (
    ACTIVE_STATUSES,
    get_subscription_features,
    normalize_tier,
    tier_at_least,
)
from bookclub.db import subscriptions_repository as subscriptions_repo
from bookclub.db.subscriptions_repository import SubscriptionRecord
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)


def get_or_create_subscription(user_id: str) -> SubscriptionRecord:
    """Return the user's subscription, creating a free active one if missing."""
    subscription = subscriptions_repo.get_by_user(user_id)
    if subscription is None:
        subscription = subscriptions_repo.insert_subscription(user_id)
        logger.info("subscription_defaulted", user_id=user_id)
    return subscription


def is_active(subscription: SubscriptionRecord | None) -> bool:
    return subscription is not None and subscription.status in ACTIVE_STATUSES


def get_user_tier(user_id: str) -> str:
    """Tier of the user's active subscription, free otherwise."""
    subscription = subscriptions_repo.get_by_user(user_id)
    if not is_active(subscription):
        return "free"
    return normalize_tier(subscription.tier)


def summarize(subscription: SubscriptionRecord | None) -> dict[str, Any]:
    """Compact subscription view used in auth responses."""
    if subscription is None:
        return {"tier": "free", "status": "active", "cancel_at_period_end": False}
    return {
        "tier": subscription.tier,
        "status": subscription.status,
        "cancel_at_period_end": subscription.cancel_at_period_end,
        "current_period_end": subscription.current_period_end,
    }


def subscription_with_features(user_id: str) -> dict[str, Any]:
    subscription = get_or_create_subscription(user_id)
    return {
        "subscription": subscription.to_dict(),
        "features": get_subscription_features(subscription.tier),
    }


def require_tier(user_id: str, min_tier: str) -> SubscriptionRecord:
    """Check that the user has an active subscription of at least ``min_tier``.

    Raises:
        APIError: 403 when there is no active subscription or the tier is too low
    """
    subscription = subscriptions_repo.get_by_user(user_id)
    if not is_active(subscription):
        raise APIError.forbidden("Active subscription required", required=min_tier)

    if not tier_at_least(subscription.tier, min_tier):
        raise APIError.forbidden(
            "Subscription tier insufficient",
            current=subscription.tier,
            required=min_tier,
        )
    return subscription
