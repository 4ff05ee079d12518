"""Conversations with the prebuilt literary characters.

Each conversation keeps its messages as a capped list of
``{role, content, timestamp}`` dicts. Only the most recent messages are
sent to the model together with the character's system prompt.
"""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.config.characters import PrebuiltCharacter, get_character
from bookclub.config.constants import (
    AI_CONTEXT_WINDOW_SIZE,
    MAX_CONVERSATION_RESULTS,
    MAX_CONVERSATIONS_PER_CHARACTER,
    MAX_MESSAGE_LENGTH,
    MAX_MESSAGES_PER_CONVERSATION,
    MAX_STORED_MESSAGES,
)
from bookclub.db import character_conversations_repository as conversations_repo
from bookclub.db.database import utc_now
from bookclub.llm import LLMError, Message
from bookclub.services.ai_service import get_ai_service
from bookclub.utils.errors import APIError, from_llm_error
from bookclub.utils.validators import is_valid_character_id, is_valid_uuid, sanitize_text

logger = structlog.get_logger(__name__)


def get_public_character(character_id: str) -> PrebuiltCharacter:
    """Look up a character by id.

    Raises:
        APIError: 400 for a malformed id, 404 for an unknown one
    """
    if not is_valid_character_id(character_id):
        raise APIError.bad_request("Invalid character ID")
    character = get_character(character_id)
    if character is None:
        raise APIError.not_found("Character not found")
    return character


def chat(
    user_id: str,
    character_id: str,
    message: str | None,
    conversation_id: str | None = None,
) -> dict[str, Any]:
    """Send a message to a prebuilt character.

    Raises:
        APIError: 400 on invalid input or when a conversation cap is reached,
            404 for an unknown character or conversation, 503 without AI,
            500 when the model returns nothing
    """
    character = get_public_character(character_id)

    text = sanitize_text(message or "", MAX_MESSAGE_LENGTH)
    if not text:
        raise APIError.bad_request("Message is required")
    if message and len(message.strip()) > MAX_MESSAGE_LENGTH:
        raise APIError.bad_request(f"Message must be at most {MAX_MESSAGE_LENGTH} characters")

    service = get_ai_service()
    if not service.is_configured():
        raise APIError.service_unavailable("AI service is not configured")

    if conversation_id:
        if not is_valid_uuid(conversation_id):
            raise APIError.bad_request("Invalid conversation ID")
        conversation = conversations_repo.get_conversation(conversation_id, user_id, character_id)
        if conversation is None:
            raise APIError.not_found("Conversation not found")
        if len(conversation.messages) >= MAX_MESSAGES_PER_CONVERSATION:
            raise APIError.bad_request("Conversation message limit reached")
    else:
        if conversations_repo.count_conversations(user_id, character_id) >= MAX_CONVERSATIONS_PER_CHARACTER:
            raise APIError.bad_request("Maximum conversations reached for this character")
        conversation = conversations_repo.insert_conversation(user_id, character_id)

    context = [Message(role="system", content=character.system_prompt)]
    for item in conversation.messages[-AI_CONTEXT_WINDOW_SIZE:]:
        if item.get("role") in ("user", "assistant"):
            context.append(Message(role=item["role"], content=item["content"]))
    context.append(Message(role="user", content=text))

    try:
        reply = service.chat(context)
    except LLMError as e:
        raise from_llm_error(e) from e
    if not reply:
        raise APIError.internal("Failed to generate a response")

    now = utc_now()
    messages = conversation.messages + [
        {"role": "user", "content": text, "timestamp": now},
        {"role": "assistant", "content": reply, "timestamp": now},
    ]
    conversations_repo.save_messages(conversation.id, messages[-MAX_STORED_MESSAGES:])
    logger.info("character_chat", character_id=character_id, conversation_id=conversation.id)

    return {
        "conversation_id": conversation.id,
        "message": reply,
        "character": {"id": character.id, "name": character.name, "avatar": character.avatar},
    }


def list_conversations(user_id: str, character_id: str) -> list[dict[str, Any]]:
    get_public_character(character_id)
    conversations = conversations_repo.list_conversations(
        user_id, character_id, limit=MAX_CONVERSATION_RESULTS
    )
    return [
        {
            "id": conversation.id,
            "character_id": conversation.character_id,
            "message_count": len(conversation.messages),
            "last_message": conversation.messages[-1] if conversation.messages else None,
            "created_at": conversation.created_at,
            "updated_at": conversation.updated_at,
        }
        for conversation in conversations
    ]


def delete_conversation(user_id: str, conversation_id: str) -> None:
    if not is_valid_uuid(conversation_id):
        raise APIError.bad_request("Invalid conversation ID")
    if not conversations_repo.delete_conversation(conversation_id, user_id):
        raise APIError.not_found("Conversation not found")
