"""Community challenge endpoints."""

from fastapi import APIRouter, Depends, Query, status

from bookclub.config.constants import CHALLENGE_LIST_DEFAULT_LIMIT
from bookclub.core import challenges
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user, get_optional_user
from bookclub.web.schemas import ChallengeCreate, ChallengeProgress

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


@router.get("")
async def list_challenges(
    status_filter: str = Query(default="active", alias="status"),
    difficulty: str | None = None,
    limit: int = Query(default=CHALLENGE_LIST_DEFAULT_LIMIT, ge=1),
    user: UserRecord | None = Depends(get_optional_user),
) -> dict:
    """Challenges by status, annotated with the caller's participation."""
    items = challenges.list_challenges(
        user_id=user.id if user else None,
        status=status_filter,
        difficulty=difficulty,
        limit=limit,
    )
    return {"challenges": items, "count": len(items)}


@router.get("/{challenge_id}")
async def get_challenge(challenge_id: str, user: UserRecord | None = Depends(get_optional_user)) -> dict:
    return challenges.get_challenge_detail(challenge_id, user.id if user else None)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_challenge(body: ChallengeCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    challenge = challenges.create_challenge(user.id, body.model_dump())
    return {"challenge": challenge}


@router.post("/{challenge_id}/join")
async def join_challenge(challenge_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    participation = challenges.join_challenge(user.id, challenge_id)
    return {"message": "Joined challenge", "participation": participation}


@router.post("/{challenge_id}/leave")
async def leave_challenge(challenge_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    challenges.leave_challenge(user.id, challenge_id)
    return {"message": "Left challenge"}


@router.put("/{challenge_id}/progress")
async def update_progress(
    challenge_id: str,
    body: ChallengeProgress,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Set the caller's progress; ranks are recomputed."""
    participation = challenges.update_progress(user.id, challenge_id, body.progress)
    return {"participation": participation}
