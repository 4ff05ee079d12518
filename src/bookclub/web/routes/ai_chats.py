"""User-defined AI character chat endpoints."""

from fastapi import APIRouter, Depends, status

from bookclub.core import ai_chats
from bookclub.db import ai_chats_repository as chats_repo
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user, rate_limit
from bookclub.web.schemas import AIChatCreate, ChatMessageRequest

router = APIRouter(prefix="/api/ai-chats", tags=["ai-chats"])


@router.get("/my-chats")
async def my_chats(user: UserRecord = Depends(get_current_user)) -> dict:
    items = chats_repo.list_active_chats(user.id)
    return {"chats": items, "count": len(items)}


@router.get("/limits/current")
async def current_limits(user: UserRecord = Depends(get_current_user)) -> dict:
    """Tier chat limits and today's usage."""
    return ai_chats.get_limits(user.id)


@router.post(
    "/create",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("ai"))],
)
async def create_chat(body: AIChatCreate, user: UserRecord = Depends(get_current_user)) -> dict:
    """Create a chat; the AI writes the personality and greeting."""
    chat = ai_chats.create_chat(
        user.id,
        body.character_name,
        body.character_type,
        context=body.context,
        video_enabled=body.video_enabled,
    )
    return {"chat": chat}


@router.get("/{chat_id}")
async def get_chat(chat_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    return ai_chats.get_chat_detail(user.id, chat_id)


@router.post("/{chat_id}/message", dependencies=[Depends(rate_limit("ai"))])
async def send_message(
    chat_id: str,
    body: ChatMessageRequest,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Send a message and get the character's reply; limited per day by tier."""
    return ai_chats.send_message(user.id, chat_id, body.message)


@router.delete("/{chat_id}")
async def archive_chat(chat_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    ai_chats.archive_chat(user.id, chat_id)
    return {"message": "Chat archived"}
