"""Repository functions for subscriptions and payment history."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from typing import Any

import structlog

from bookclub.db.database import get_db, new_id, utc_now
from bookclub.utils.retry import db_retry

logger = structlog.get_logger(__name__)

_UPDATABLE_COLUMNS = {
    "tier",
    "status",
    "stripe_customer_id",
    "stripe_subscription_id",
    "current_period_start",
    "current_period_end",
    "cancel_at_period_end",
}


@dataclass
class SubscriptionRecord:
    """Subscription record (one per user)."""

    id: str
    user_id: str
    tier: str
    status: str
    stripe_customer_id: str | None
    stripe_subscription_id: str | None
    current_period_start: str | None
    current_period_end: str | None
    cancel_at_period_end: bool
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PaymentRecord:
    id: str
    user_id: str
    stripe_invoice_id: str | None
    amount: int
    currency: str
    status: str
    description: str
    created_at: str


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================


@db_retry
def insert_subscription(user_id: str, tier: str = "free", status: str = "active") -> SubscriptionRecord:
    """Create the user's subscription row.

    Raises:
        sqlite3.IntegrityError: If the user already has a subscription
    """
    now = utc_now()
    record = SubscriptionRecord(
        id=new_id(),
        user_id=user_id,
        tier=tier,
        status=status,
        stripe_customer_id=None,
        stripe_subscription_id=None,
        current_period_start=None,
        current_period_end=None,
        cancel_at_period_end=False,
        created_at=now,
        updated_at=now,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO subscriptions (id, user_id, tier, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (record.id, user_id, tier, status, now, now),
        )

    logger.debug("subscriptions.inserted", user_id=user_id, tier=tier)
    return record


@db_retry
def get_by_user(user_id: str) -> SubscriptionRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM subscriptions WHERE user_id = ?", (user_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def get_by_stripe_subscription(stripe_subscription_id: str) -> SubscriptionRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM subscriptions WHERE stripe_subscription_id = ?",
            (stripe_subscription_id,),
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def get_by_stripe_customer(stripe_customer_id: str) -> SubscriptionRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM subscriptions WHERE stripe_customer_id = ?",
            (stripe_customer_id,),
        ).fetchone()
    return _row_to_record(row) if row else None


@db_retry
def update_subscription(user_id: str, **fields: Any) -> SubscriptionRecord | None:
    """Update the given columns of the user's subscription.

    Args:
        user_id: Subscription owner
        **fields: Column values; unknown columns raise ValueError

    Returns:
        The updated record, or None if the user has no subscription
    """
    unknown = set(fields) - _UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Unknown subscription fields: {sorted(unknown)}")

    if "cancel_at_period_end" in fields:
        fields["cancel_at_period_end"] = int(bool(fields["cancel_at_period_end"]))

    assignments = [f"{column} = ?" for column in fields]
    assignments.append("updated_at = ?")
    params = [*fields.values(), utc_now(), user_id]

    with get_db() as conn:
        conn.execute(
            f"UPDATE subscriptions SET {', '.join(assignments)} WHERE user_id = ?",
            params,
        )

    logger.debug("subscriptions.updated", user_id=user_id, fields=sorted(fields))
    return get_by_user(user_id)


# =============================================================================
# PAYMENTS
# =============================================================================


@db_retry
def insert_payment(
    user_id: str,
    amount: int,
    status: str,
    stripe_invoice_id: str | None = None,
    currency: str = "usd",
    description: str = "",
) -> PaymentRecord:
    record = PaymentRecord(
        id=new_id(),
        user_id=user_id,
        stripe_invoice_id=stripe_invoice_id,
        amount=amount,
        currency=currency,
        status=status,
        description=description,
        created_at=utc_now(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO payments (id, user_id, stripe_invoice_id, amount, currency, status, description, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                user_id,
                stripe_invoice_id,
                amount,
                currency,
                status,
                description,
                record.created_at,
            ),
        )

    logger.debug("payments.inserted", user_id=user_id, status=status, amount=amount)
    return record


@db_retry
def list_payments(user_id: str, limit: int = 50) -> list[PaymentRecord]:
    """Payments of a user, most recent first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM payments WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
    return [
        PaymentRecord(
            id=row["id"],
            user_id=row["user_id"],
            stripe_invoice_id=row["stripe_invoice_id"],
            amount=row["amount"],
            currency=row["currency"],
            status=row["status"],
            description=row["description"],
            created_at=row["created_at"],
        )
        for row in rows
    ]


def _row_to_record(row: sqlite3.Row) -> SubscriptionRecord:
    """Convert database row to SubscriptionRecord."""
    return SubscriptionRecord(
        id=row["id"],
        user_id=row["user_id"],
        tier=row["tier"],
        status=row["status"],
        stripe_customer_id=row["stripe_customer_id"],
        stripe_subscription_id=row["stripe_subscription_id"],
        current_period_start=row["current_period_start"],
        current_period_end=row["current_period_end"],
        cancel_at_period_end=bool(row["cancel_at_period_end"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
