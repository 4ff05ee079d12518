"""Spaces: temporary or permanent chat rooms with optional video."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from bookclub.config.constants import SPACE_MESSAGES_PREVIEW, TEMPORARY_SPACE_DAYS
from bookclub.core.moderation import check_content
from bookclub.db import spaces_repository as spaces_repo
from bookclub.db.database import utc_now
from bookclub.db.spaces_repository import SpaceRecord
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

logger = structlog.get_logger(__name__)

SPACE_TYPES = ("temporary", "permanent")
VISIBILITIES = ("public", "private")


def _get_active_space(space_id: str) -> SpaceRecord:
    space = spaces_repo.get_space(space_id)
    if space is None or not space.is_active:
        raise APIError.not_found("Space not found")
    return space


def list_spaces(type: str | None = None) -> list[SpaceRecord]:
    return spaces_repo.list_public_spaces(utc_now(), type=type)


def get_space_detail(space_id: str) -> dict[str, Any]:
    space = _get_active_space(space_id)
    return {
        "space": space,
        "members": spaces_repo.list_members(space_id),
        "messages": spaces_repo.list_recent_messages(space_id, SPACE_MESSAGES_PREVIEW),
    }


def create_space(
    user_id: str,
    name: str | None,
    description: str | None = "",
    type: str = "permanent",
    visibility: str = "public",
    expires_at: str | None = None,
    video_enabled: bool = False,
) -> SpaceRecord:
    """Create a space with the creator as admin.

    Temporary spaces expire after 7 days unless an expiry is given.
    """
    name = sanitize_text(name or "", 100)
    if not name:
        raise APIError.bad_request("Space name is required")
    if type not in SPACE_TYPES:
        raise APIError.bad_request("Invalid space type", valid_types=list(SPACE_TYPES))
    if visibility not in VISIBILITIES:
        raise APIError.bad_request("Invalid visibility", valid=list(VISIBILITIES))

    if type == "temporary" and not expires_at:
        expires_at = (datetime.now(timezone.utc) + timedelta(days=TEMPORARY_SPACE_DAYS)).isoformat()

    space_id = spaces_repo.insert_space(
        name,
        user_id,
        description=sanitize_text(description or "", 1000),
        type=type,
        visibility=visibility,
        expires_at=expires_at,
        video_enabled=bool(video_enabled),
    )
    logger.info("space_created", space_id=space_id, type=type, visibility=visibility)
    return spaces_repo.get_space(space_id)


def join_space(user_id: str, space_id: str) -> None:
    space = _get_active_space(space_id)
    if space.visibility == "private":
        raise APIError.forbidden("This space is private")
    if not spaces_repo.add_member(space_id, user_id):
        raise APIError.bad_request("Already a member of this space")
    logger.info("space_joined", space_id=space_id, user_id=user_id)


def leave_space(user_id: str, space_id: str) -> None:
    _get_active_space(space_id)
    if not spaces_repo.remove_member(space_id, user_id):
        raise APIError.bad_request("Not a member of this space")


def post_message(user_id: str, space_id: str, content: str | None) -> dict[str, Any]:
    """Post a moderated message; members only."""
    content = sanitize_text(content or "")
    if not content:
        raise APIError.bad_request("Message content is required")
    _get_active_space(space_id)
    if spaces_repo.get_member_role(space_id, user_id) is None:
        raise APIError.forbidden("You must be a member to post in this space")

    warning = check_content(content)
    message = spaces_repo.insert_message(space_id, user_id, content)
    result: dict[str, Any] = {"message": message}
    if warning:
        result["moderation_warning"] = warning
    return result


def toggle_video(user_id: str, space_id: str, video_enabled: bool | None = None) -> SpaceRecord:
    """Switch video on or off; admins only. The room id is kept once assigned."""
    space = _get_active_space(space_id)
    if spaces_repo.get_member_role(space_id, user_id) != "admin":
        raise APIError.forbidden("Only space admins can change video settings")

    enabled = (not space.video_enabled) if video_enabled is None else bool(video_enabled)
    room_id = space.video_room_id or (f"video-{space_id}" if enabled else None)
    spaces_repo.set_video(space_id, enabled, room_id)
    return spaces_repo.get_space(space_id)


def delete_space(user_id: str, space_id: str) -> None:
    space = _get_active_space(space_id)
    if space.creator_id != user_id and spaces_repo.get_member_role(space_id, user_id) != "admin":
        raise APIError.forbidden("Only the creator or an admin can delete this space")
    spaces_repo.deactivate_space(space_id)
    logger.info("space_deleted", space_id=space_id, user_id=user_id)
