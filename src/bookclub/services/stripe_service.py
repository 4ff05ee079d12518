"""Thin wrapper around the Stripe SDK for subscription billing."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import stripe
import structlog

from bookclub.config.app_config import StripeConfig, load_app_config

logger = structlog.get_logger(__name__)

TRIAL_PERIOD_DAYS = 7


class StripeNotConfiguredError(RuntimeError):
    """Raised when a Stripe call is attempted without a secret key."""


def timestamp_to_iso(value: Any) -> str | None:
    """Convert a Stripe unix timestamp to ISO-8601 UTC."""
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).isoformat()


def dig(obj: Any, *keys: str | int) -> Any:
    """Walk nested Stripe objects (dict-like), returning None on a missing key."""
    current = obj
    for key in keys:
        if current is None:
            return None
        try:
            current = current[key]
        except (KeyError, TypeError, IndexError):
            return None
    return current


class StripeService:
    """Subscription operations against the Stripe API."""

    def __init__(self, config: StripeConfig | None = None):
        self.config = config or load_app_config().stripe

    @property
    def is_configured(self) -> bool:
        return bool(self.config.get_secret_key())

    def _api_key(self) -> str:
        key = self.config.get_secret_key()
        if not key:
            raise StripeNotConfiguredError("Stripe secret key is not configured")
        return key

    def price_for_tier(self, tier: str) -> str:
        price_id = self.config.price_ids.get(tier)
        if not price_id:
            raise ValueError(f"No Stripe price configured for tier '{tier}'")
        return price_id

    def create_customer(self, email: str, name: str, user_id: str) -> Any:
        customer = stripe.Customer.create(
            email=email,
            name=name,
            metadata={"platform": "book-club", "user_id": user_id},
            api_key=self._api_key(),
        )
        logger.info("stripe_customer_created", user_id=user_id, customer_id=customer["id"])
        return customer

    def attach_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        """Attach a payment method and make it the customer's default."""
        api_key = self._api_key()
        stripe.PaymentMethod.attach(payment_method_id, customer=customer_id, api_key=api_key)
        stripe.Customer.modify(
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
            api_key=api_key,
        )

    def create_subscription(self, customer_id: str, tier: str) -> Any:
        """Create a subscription with a trial, waiting for the first payment."""
        subscription = stripe.Subscription.create(
            customer=customer_id,
            items=[{"price": self.price_for_tier(tier)}],
            trial_period_days=TRIAL_PERIOD_DAYS,
            payment_behavior="default_incomplete",
            payment_settings={"save_default_payment_method": "on_subscription"},
            expand=["latest_invoice.payment_intent"],
            metadata={"tier": tier},
            api_key=self._api_key(),
        )
        logger.info("stripe_subscription_created", customer_id=customer_id, tier=tier)
        return subscription

    def cancel_subscription(self, subscription_id: str, immediately: bool = False) -> Any:
        """Cancel now, or flag the subscription to end with the current period."""
        api_key = self._api_key()
        if immediately:
            return stripe.Subscription.cancel(subscription_id, api_key=api_key)
        return stripe.Subscription.modify(subscription_id, cancel_at_period_end=True, api_key=api_key)

    def reactivate_subscription(self, subscription_id: str) -> Any:
        return stripe.Subscription.modify(
            subscription_id, cancel_at_period_end=False, api_key=self._api_key()
        )

    def change_tier(self, subscription_id: str, tier: str) -> Any:
        """Swap the subscription's price, prorating the difference."""
        api_key = self._api_key()
        subscription = stripe.Subscription.retrieve(subscription_id, api_key=api_key)
        item_id = dig(subscription, "items", "data", 0, "id")
        return stripe.Subscription.modify(
            subscription_id,
            items=[{"id": item_id, "price": self.price_for_tier(tier)}],
            proration_behavior="create_prorations",
            metadata={"tier": tier},
            api_key=api_key,
        )

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=return_url,
            api_key=self._api_key(),
        )
        return session["url"]

    def construct_event(self, payload: bytes, signature: str | None) -> Any:
        """Verify a webhook payload against its signature header.

        Raises:
            ValueError: Malformed payload or missing webhook secret
            stripe.SignatureVerificationError: Signature does not match
        """
        secret = self.config.get_webhook_secret()
        if not secret:
            raise ValueError("Stripe webhook secret is not configured")
        return stripe.Webhook.construct_event(payload, signature or "", secret)
