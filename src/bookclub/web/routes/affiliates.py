"""Affiliate purchase links and click tracking."""

from fastapi import APIRouter, Depends, Request

from bookclub.core import affiliates
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import client_ip, get_current_user, get_optional_user
from bookclub.web.schemas import TrackClickRequest

router = APIRouter(prefix="/api/affiliates", tags=["affiliates"])


@router.get("/book/{book_id}/link/{platform}")
async def get_link(book_id: str, platform: str) -> dict:
    return affiliates.build_link(book_id, platform)


@router.get("/book/{book_id}/platforms")
async def get_platforms(book_id: str) -> dict:
    """Purchase links for every supported platform."""
    return {"book_id": book_id, "platforms": affiliates.list_platforms(book_id)}


@router.post("/track-click")
async def track_click(
    body: TrackClickRequest,
    request: Request,
    user: UserRecord | None = Depends(get_optional_user),
) -> dict:
    """Record a click on an affiliate link; anonymous clicks are allowed."""
    return affiliates.track_click(
        body.book_id,
        body.platform,
        user_id=user.id if user else None,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.get("/stats")
async def stats(user: UserRecord = Depends(get_current_user)) -> dict:
    return affiliates.get_stats()
