"""Subscription billing endpoints backed by Stripe."""

from fastapi import APIRouter, Depends, Header, Request

from bookclub.core import payments
from bookclub.core.subscriptions import subscription_with_features
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import CancelRequest, SubscribeRequest, UpdateTierRequest

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("/pricing")
async def pricing() -> dict:
    return {"pricing": payments.get_pricing()}


@router.get("/subscription")
async def subscription(user: UserRecord = Depends(get_current_user)) -> dict:
    """Current subscription and its features; creates a free one if missing."""
    return subscription_with_features(user.id)


@router.post("/subscribe")
async def subscribe(body: SubscribeRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    """Start a paid subscription with a 7-day trial."""
    return payments.subscribe(user, body.tier, body.payment_method_id)


@router.post("/cancel")
async def cancel(body: CancelRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    sub = payments.cancel(user.id, immediately=body.immediately)
    message = "Subscription canceled" if body.immediately else "Subscription will cancel at period end"
    return {"message": message, "subscription": sub.to_dict()}


@router.post("/reactivate")
async def reactivate(user: UserRecord = Depends(get_current_user)) -> dict:
    sub = payments.reactivate(user.id)
    return {"message": "Subscription reactivated", "subscription": sub.to_dict()}


@router.post("/update-tier")
async def update_tier(body: UpdateTierRequest, user: UserRecord = Depends(get_current_user)) -> dict:
    sub = payments.update_tier(user.id, body.tier)
    return {"message": "Subscription tier updated", "subscription": sub.to_dict()}


@router.get("/payments")
async def payment_history(user: UserRecord = Depends(get_current_user)) -> dict:
    items = payments.list_payments(user.id)
    return {"payments": items, "count": len(items)}


@router.post("/portal")
async def portal(user: UserRecord = Depends(get_current_user)) -> dict:
    """Stripe billing-portal session URL."""
    return {"url": payments.create_portal_session(user.id)}


@router.post("/webhook")
async def webhook(request: Request, stripe_signature: str | None = Header(default=None)) -> dict:
    """Verify and process a Stripe webhook event from the raw body."""
    payload = await request.body()
    return payments.handle_webhook(payload, stripe_signature)
