"""Subscription billing through Stripe and webhook event handling.

The local subscription row mirrors the Stripe subscription. Stripe is the
source of truth: webhook events overwrite status and billing periods as
they arrive.
"""

from __future__ import annotations

from typing import Any, Callable

import stripe
import structlog

from bookclub.config.app_config import load_app_config
from bookclub.config.constants import PAYMENT_HISTORY_LIMIT
from bookclub.config.tiers import PRICING_TIERS, get_subscription_features
from bookclub.core.subscriptions import get_or_create_subscription
from bookclub.db import subscriptions_repository as subscriptions_repo
from bookclub.db.subscriptions_repository import PaymentRecord, SubscriptionRecord
from bookclub.db.users_repository import UserRecord
from bookclub.services.stripe_service import StripeService, dig, timestamp_to_iso
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)

PAID_TIERS = ("premium", "pro")


def get_pricing() -> dict[str, Any]:
    return {
        tier: {**info, "limits": get_subscription_features(tier)}
        for tier, info in PRICING_TIERS.items()
    }


def _require_configured(service: StripeService) -> None:
    if not service.is_configured:
        raise APIError.service_unavailable("Payment processing is not configured")


def _stripe_failure(exc: stripe.StripeError) -> APIError:
    logger.error("stripe_error", error=str(exc), error_type=type(exc).__name__)
    if isinstance(exc, stripe.CardError):
        return APIError.bad_request(exc.user_message or "Card was declined")
    return APIError.internal("Payment processing failed")


def _period_fields(stripe_subscription: Any) -> dict[str, Any]:
    """Billing period fields, read from the subscription or its first item."""
    start = dig(stripe_subscription, "current_period_start")
    end = dig(stripe_subscription, "current_period_end")
    if start is None:
        start = dig(stripe_subscription, "items", "data", 0, "current_period_start")
    if end is None:
        end = dig(stripe_subscription, "items", "data", 0, "current_period_end")
    return {
        "current_period_start": timestamp_to_iso(start),
        "current_period_end": timestamp_to_iso(end),
    }


def subscribe(
    user: UserRecord,
    tier: str | None,
    payment_method_id: str | None,
    service: StripeService | None = None,
) -> dict[str, Any]:
    """Start a paid subscription with a 7-day trial.

    Returns:
        Dict with subscription_id, client_secret and status

    Raises:
        APIError: 400 on bad input, 503 when Stripe is not configured
    """
    if tier not in PAID_TIERS:
        raise APIError.bad_request("Invalid subscription tier", valid_tiers=list(PAID_TIERS))
    if not payment_method_id:
        raise APIError.bad_request("Payment method is required")

    service = service or StripeService()
    _require_configured(service)
    try:
        service.price_for_tier(tier)
    except ValueError as e:
        raise APIError.service_unavailable("Pricing is not configured for this tier") from e

    subscription = get_or_create_subscription(user.id)
    try:
        customer_id = subscription.stripe_customer_id
        if not customer_id:
            customer_id = service.create_customer(user.email, user.username, user.id)["id"]
            subscriptions_repo.update_subscription(user.id, stripe_customer_id=customer_id)

        service.attach_payment_method(customer_id, payment_method_id)
        stripe_subscription = service.create_subscription(customer_id, tier)
    except stripe.StripeError as e:
        raise _stripe_failure(e) from e

    subscriptions_repo.update_subscription(
        user.id,
        tier=tier,
        status=stripe_subscription["status"],
        stripe_subscription_id=stripe_subscription["id"],
        cancel_at_period_end=False,
        **_period_fields(stripe_subscription),
    )
    logger.info("subscription_started", user_id=user.id, tier=tier, status=stripe_subscription["status"])

    return {
        "subscription_id": stripe_subscription["id"],
        "client_secret": dig(stripe_subscription, "latest_invoice", "payment_intent", "client_secret"),
        "status": stripe_subscription["status"],
    }


def _require_stripe_subscription(user_id: str) -> SubscriptionRecord:
    subscription = subscriptions_repo.get_by_user(user_id)
    if subscription is None or not subscription.stripe_subscription_id or subscription.status == "canceled":
        raise APIError.bad_request("No active subscription found")
    return subscription


def cancel(user_id: str, immediately: bool = False, service: StripeService | None = None) -> SubscriptionRecord:
    """Cancel now (drop to free) or at the end of the billing period."""
    subscription = _require_stripe_subscription(user_id)
    service = service or StripeService()
    _require_configured(service)

    try:
        service.cancel_subscription(subscription.stripe_subscription_id, immediately=immediately)
    except stripe.StripeError as e:
        raise _stripe_failure(e) from e

    if immediately:
        updated = subscriptions_repo.update_subscription(
            user_id, status="canceled", tier="free", cancel_at_period_end=False
        )
    else:
        updated = subscriptions_repo.update_subscription(user_id, cancel_at_period_end=True)
    logger.info("subscription_canceled", user_id=user_id, immediately=immediately)
    return updated


def reactivate(user_id: str, service: StripeService | None = None) -> SubscriptionRecord:
    subscription = _require_stripe_subscription(user_id)
    if not subscription.cancel_at_period_end:
        raise APIError.bad_request("Subscription is not pending cancellation")

    service = service or StripeService()
    _require_configured(service)
    try:
        service.reactivate_subscription(subscription.stripe_subscription_id)
    except stripe.StripeError as e:
        raise _stripe_failure(e) from e

    logger.info("subscription_reactivated", user_id=user_id)
    return subscriptions_repo.update_subscription(user_id, cancel_at_period_end=False)


def update_tier(user_id: str, tier: str | None, service: StripeService | None = None) -> SubscriptionRecord:
    if tier not in PAID_TIERS:
        raise APIError.bad_request("Invalid subscription tier", valid_tiers=list(PAID_TIERS))
    subscription = _require_stripe_subscription(user_id)
    if subscription.tier == tier:
        raise APIError.bad_request("Already subscribed to this tier")

    service = service or StripeService()
    _require_configured(service)
    try:
        service.change_tier(subscription.stripe_subscription_id, tier)
    except ValueError as e:
        raise APIError.service_unavailable("Pricing is not configured for this tier") from e
    except stripe.StripeError as e:
        raise _stripe_failure(e) from e

    logger.info("subscription_tier_changed", user_id=user_id, old_tier=subscription.tier, new_tier=tier)
    return subscriptions_repo.update_subscription(user_id, tier=tier)


def list_payments(user_id: str) -> list[PaymentRecord]:
    return subscriptions_repo.list_payments(user_id, limit=PAYMENT_HISTORY_LIMIT)


def create_portal_session(user_id: str, service: StripeService | None = None) -> str:
    subscription = subscriptions_repo.get_by_user(user_id)
    if subscription is None or not subscription.stripe_customer_id:
        raise APIError.bad_request("No billing account found")

    service = service or StripeService()
    _require_configured(service)
    return_url = f"{load_app_config().server.client_url.rstrip('/')}/subscription"
    try:
        return service.create_portal_session(subscription.stripe_customer_id, return_url)
    except stripe.StripeError as e:
        raise _stripe_failure(e) from e


# =============================================================================
# WEBHOOKS
# =============================================================================


def _find_subscription(obj: Any) -> SubscriptionRecord | None:
    """Locate the local subscription for a Stripe object."""
    user_id = dig(obj, "metadata", "user_id")
    if user_id:
        found = subscriptions_repo.get_by_user(user_id)
        if found is not None:
            return found

    subscription_id = dig(obj, "subscription") if dig(obj, "object") != "subscription" else dig(obj, "id")
    if subscription_id:
        found = subscriptions_repo.get_by_stripe_subscription(subscription_id)
        if found is not None:
            return found

    customer_id = dig(obj, "customer")
    if customer_id:
        return subscriptions_repo.get_by_stripe_customer(customer_id)
    return None


def _on_subscription_changed(obj: Any) -> None:
    subscription = _find_subscription(obj)
    if subscription is None:
        logger.warning("webhook_subscription_unknown", stripe_subscription_id=dig(obj, "id"))
        return

    fields: dict[str, Any] = {
        "status": dig(obj, "status") or subscription.status,
        "stripe_subscription_id": dig(obj, "id"),
        "cancel_at_period_end": bool(dig(obj, "cancel_at_period_end")),
        **_period_fields(obj),
    }
    tier = dig(obj, "metadata", "tier")
    if tier in PAID_TIERS:
        fields["tier"] = tier
    subscriptions_repo.update_subscription(subscription.user_id, **fields)


def _on_subscription_deleted(obj: Any) -> None:
    subscription = _find_subscription(obj)
    if subscription is None:
        return
    subscriptions_repo.update_subscription(
        subscription.user_id, status="canceled", tier="free", cancel_at_period_end=False
    )


def _on_payment_succeeded(obj: Any) -> None:
    subscription = _find_subscription(obj)
    if subscription is None:
        return
    subscriptions_repo.insert_payment(
        subscription.user_id,
        amount=dig(obj, "amount_paid") or 0,
        status="succeeded",
        stripe_invoice_id=dig(obj, "id"),
        currency=dig(obj, "currency") or "usd",
        description=f"{subscription.tier.capitalize()} subscription payment",
    )


def _on_payment_failed(obj: Any) -> None:
    subscription = _find_subscription(obj)
    if subscription is None:
        return
    subscriptions_repo.update_subscription(subscription.user_id, status="past_due")
    subscriptions_repo.insert_payment(
        subscription.user_id,
        amount=dig(obj, "amount_due") or 0,
        status="failed",
        stripe_invoice_id=dig(obj, "id"),
        currency=dig(obj, "currency") or "usd",
        description="Payment failed",
    )


def _on_checkout_completed(obj: Any) -> None:
    subscription = _find_subscription(obj)
    tier = dig(obj, "metadata", "tier")
    if subscription is None or tier not in PAID_TIERS:
        return
    fields: dict[str, Any] = {"tier": tier, "status": "active"}
    if dig(obj, "subscription"):
        fields["stripe_subscription_id"] = dig(obj, "subscription")
    if dig(obj, "customer"):
        fields["stripe_customer_id"] = dig(obj, "customer")
    subscriptions_repo.update_subscription(subscription.user_id, **fields)


WEBHOOK_HANDLERS: dict[str, Callable[[Any], None]] = {
    "customer.subscription.created": _on_subscription_changed,
    "customer.subscription.updated": _on_subscription_changed,
    "customer.subscription.deleted": _on_subscription_deleted,
    "invoice.payment_succeeded": _on_payment_succeeded,
    "invoice.payment_failed": _on_payment_failed,
    "checkout.session.completed": _on_checkout_completed,
}


def handle_webhook(payload: bytes, signature: str | None, service: StripeService | None = None) -> dict[str, Any]:
    """Verify and dispatch a Stripe webhook.

    Raises:
        APIError: 400 when the payload or signature is invalid
    """
    service = service or StripeService()
    try:
        event = service.construct_event(payload, signature)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("webhook_rejected", error=str(e))
        raise APIError.bad_request("Webhook signature verification failed") from e

    event_type = event["type"]
    handler = WEBHOOK_HANDLERS.get(event_type)
    if handler is None:
        logger.debug("webhook_ignored", event_type=event_type)
    else:
        handler(dig(event, "data", "object"))
        logger.info("webhook_processed", event_type=event_type)
    return {"received": True}
