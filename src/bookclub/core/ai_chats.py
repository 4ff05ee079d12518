"""User-defined AI chats with authors and characters, limited by tier."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from bookclub.config.constants import CHAT_HISTORY_WINDOW, MAX_MESSAGE_LENGTH
from bookclub.config.tiers import UNLIMITED, get_chat_limits, limits_to_dict
from bookclub.core.subscriptions import get_user_tier
from bookclub.db import ai_chats_repository as chats_repo
from bookclub.db.ai_chats_repository import AIChatRecord
from bookclub.services.ai_service import get_ai_service
from bookclub.utils.errors import APIError
from bookclub.utils.validators import sanitize_text

logger = structlog.get_logger(__name__)

CHARACTER_TYPES = ("author", "character")


def start_of_day_utc() -> str:
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0).isoformat()


def get_owned_chat(user_id: str, chat_id: str) -> AIChatRecord:
    chat = chats_repo.get_chat(chat_id)
    if chat is None or chat.user_id != user_id:
        raise APIError.not_found("Chat not found")
    return chat


def get_chat_detail(user_id: str, chat_id: str) -> dict[str, Any]:
    chat = get_owned_chat(user_id, chat_id)
    return {"chat": chat, "messages": chats_repo.list_messages(chat_id)}


def create_chat(
    user_id: str,
    character_name: str | None,
    character_type: str | None,
    context: str | None = "",
    video_enabled: bool = False,
) -> AIChatRecord:
    """Start a chat; the AI greeting becomes the first message.

    Raises:
        APIError: 400 on bad input, 403 at the active chat limit or when the
            tier does not include video
    """
    character_name = sanitize_text(character_name or "", 100)
    if not character_name or not character_type:
        raise APIError.bad_request("Character name and type are required")
    if character_type not in CHARACTER_TYPES:
        raise APIError.bad_request("Invalid character type", valid_types=list(CHARACTER_TYPES))

    tier = get_user_tier(user_id)
    limits = get_chat_limits(tier)
    active = chats_repo.count_active_chats(user_id)
    if limits.max_active_chats != UNLIMITED and active >= limits.max_active_chats:
        raise APIError.forbidden(
            "Active chat limit reached for your tier",
            current=active,
            limit=limits.max_active_chats,
            tier=tier,
            upgrade_required=True,
        )
    if video_enabled and not limits.video_enabled:
        raise APIError.forbidden("Video chat requires a premium subscription", tier=tier)

    context = sanitize_text(context or "", MAX_MESSAGE_LENGTH)
    persona = get_ai_service().create_character_personality(character_name, character_type, context)
    chat = chats_repo.insert_chat(
        user_id,
        character_name,
        character_type,
        persona["personality"],
        persona["greeting"],
        context=context,
        video_enabled=bool(video_enabled),
    )
    logger.info("ai_chat_created", chat_id=chat.id, user_id=user_id, character_type=character_type)
    return chat


def send_message(user_id: str, chat_id: str, text: str | None) -> dict[str, Any]:
    """Send a message and store the in-character reply.

    Raises:
        APIError: 400 for empty text, 404 for an unknown chat, 429 at the
            daily message limit
    """
    text = sanitize_text(text or "", MAX_MESSAGE_LENGTH)
    if not text:
        raise APIError.bad_request("Message text is required")

    chat = get_owned_chat(user_id, chat_id)
    if not chat.is_active:
        raise APIError.bad_request("Chat has been archived")

    tier = get_user_tier(user_id)
    limits = get_chat_limits(tier)
    if limits.max_messages_per_day != UNLIMITED:
        sent_today = chats_repo.count_user_messages_since(user_id, start_of_day_utc())
        if sent_today >= limits.max_messages_per_day:
            raise APIError.rate_limit(
                "Daily message limit reached",
                limit=limits.max_messages_per_day,
                used=sent_today,
                tier=tier,
            )

    history = [
        {"role": "user" if msg.sender == "user" else "assistant", "content": msg.content}
        for msg in chats_repo.list_messages(chat_id, CHAT_HISTORY_WINDOW)
    ]
    reply = get_ai_service().generate_character_response(
        chat.character_name, chat.personality, history, text
    )
    user_message, ai_message = chats_repo.append_exchange(chat_id, text, reply)
    return {"user_message": user_message, "ai_message": ai_message}


def archive_chat(user_id: str, chat_id: str) -> None:
    get_owned_chat(user_id, chat_id)
    chats_repo.archive_chat(chat_id)
    logger.info("ai_chat_archived", chat_id=chat_id)


def get_limits(user_id: str) -> dict[str, Any]:
    tier = get_user_tier(user_id)
    return {
        "tier": tier,
        "limits": limits_to_dict(get_chat_limits(tier)),
        "usage": {
            "active_chats": chats_repo.count_active_chats(user_id),
            "messages_today": chats_repo.count_user_messages_since(user_id, start_of_day_utc()),
        },
    }
