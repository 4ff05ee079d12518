"""Space (chat room) endpoints."""

from fastapi import APIRouter, Depends, status

from bookclub.core import spaces
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user
from bookclub.web.schemas import MessageCreate, SpaceCreate, VideoToggle

router = APIRouter(prefix="/api/spaces", tags=["spaces"])


@router.get("")
async def list_spaces(type: str | None = None) -> dict:
    """Active public spaces that have not expired."""
    items = spaces.list_spaces(type)
    return {"spaces": items, "count": len(items)}


@router.get("/{space_id}")
async def get_space(space_id: str) -> dict:
    return spaces.get_space_detail(space_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_space(body: SpaceCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    space = spaces.create_space(
        user.id,
        body.name,
        description=body.description,
        type=body.type,
        visibility=body.visibility,
        expires_at=body.expires_at,
        video_enabled=body.video_enabled,
    )
    return {"space": space}


@router.post("/{space_id}/join")
async def join_space(space_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    spaces.join_space(user.id, space_id)
    return {"message": "Joined space"}


@router.post("/{space_id}/leave")
async def leave_space(space_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    spaces.leave_space(user.id, space_id)
    return {"message": "Left space"}


@router.post("/{space_id}/messages", status_code=status.HTTP_201_CREATED)
async def post_message(
    space_id: str,
    body: MessageCreate,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Post a moderated message; members only."""
    return spaces.post_message(user.id, space_id, body.content)


@router.patch("/{space_id}/video")
async def toggle_video(
    space_id: str,
    body: VideoToggle | None = None,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    space = spaces.toggle_video(user.id, space_id, body.enabled if body else None)
    return {"space": space}


@router.delete("/{space_id}")
async def delete_space(space_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    spaces.delete_space(user.id, space_id)
    return {"message": "Space deleted"}
