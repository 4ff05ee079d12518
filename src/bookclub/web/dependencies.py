"""FastAPI dependencies: authentication, tier gating and rate limits."""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookclub.config.constants import ERROR_MESSAGES
from bookclub.core.auth import authenticate_token
from bookclub.core.subscriptions import require_tier
from bookclub.db.users_repository import UserRecord
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> UserRecord:
    """Resolve the bearer token to a user.

    Raises:
        APIError: 401 "No token provided" or "Invalid token"
    """
    if credentials is None or not credentials.credentials:
        raise APIError.unauthorized("No token provided")
    return authenticate_token(credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> UserRecord | None:
    """Like get_current_user, but anonymous or invalid tokens give None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return authenticate_token(credentials.credentials)
    except APIError:
        return None


def require_subscription(min_tier: str) -> Callable[..., Awaitable[UserRecord]]:
    """Dependency factory gating a route on the subscription tier."""

    async def dependency(user: UserRecord = Depends(get_current_user)) -> UserRecord:
        require_tier(user.id, min_tier)
        return user

    return dependency


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_rate_limit(request: Request, name: str, key: str) -> None:
    """Apply the named limiter of this app to a key.

    Raises:
        APIError: 429 with ``retry_after`` in the details
    """
    limiter = request.app.state.rate_limiters.get(name)
    if limiter is None:
        return
    retry_after = limiter.hit(f"{name}:{key}")
    if retry_after is not None:
        logger.warning("rate_limited", limiter=name, path=request.url.path)
        message_key = "CHAT_RATE_LIMIT_EXCEEDED" if name == "chat" else "RATE_LIMIT_EXCEEDED"
        raise APIError.rate_limit(ERROR_MESSAGES[message_key], retry_after=retry_after)


def rate_limit(name: str) -> Callable[[Request], Awaitable[None]]:
    """Dependency factory applying a limiter keyed by client IP."""

    async def dependency(request: Request) -> None:
        check_rate_limit(request, name, client_ip(request))

    return dependency


def user_rate_limit(name: str) -> Callable[..., Awaitable[None]]:
    """Dependency factory applying a limiter keyed by the authenticated user."""

    async def dependency(request: Request, user: UserRecord = Depends(get_current_user)) -> None:
        check_rate_limit(request, name, user.id)

    return dependency
