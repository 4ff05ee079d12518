"""Prebuilt literary character endpoints."""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from bookclub.config.characters import list_characters
from bookclub.config.constants import CACHE_TTL_SECONDS
from bookclub.core import character_chat
from bookclub.db.users_repository import UserRecord
from bookclub.web.dependencies import get_current_user, rate_limit, user_rate_limit
from bookclub.web.schemas import ChatMessageRequest

router = APIRouter(prefix="/api/prebuilt-characters", tags=["characters"])

CACHE_CONTROL = f"public, max-age={CACHE_TTL_SECONDS}"

# (expires_at, body, etag)
_list_cache: tuple[float, dict[str, Any], str] | None = None


def _character_list() -> tuple[dict[str, Any], str]:
    """Public character list and its ETag, rebuilt once the cache expires."""
    global _list_cache
    now = time.monotonic()
    if _list_cache is None or _list_cache[0] <= now:
        characters = [character.to_public_dict() for character in list_characters()]
        body = {"characters": characters, "count": len(characters)}
        digest = hashlib.sha256(json.dumps(body, sort_keys=True).encode("utf-8")).hexdigest()
        _list_cache = (now + CACHE_TTL_SECONDS, body, f'"{digest[:32]}"')
    return _list_cache[1], _list_cache[2]


def clear_list_cache() -> None:
    global _list_cache
    _list_cache = None


@router.get("")
async def list_prebuilt_characters(request: Request) -> Response:
    """List characters; supports conditional requests with If-None-Match."""
    body, etag = _character_list()
    headers = {"ETag": etag, "Cache-Control": CACHE_CONTROL}
    if request.headers.get("if-none-match") == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return JSONResponse(content=body, headers=headers)


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(conversation_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    character_chat.delete_conversation(user.id, conversation_id)
    return {"message": "Conversation deleted"}


@router.get("/{character_id}")
async def get_character(character_id: str, response: Response) -> dict:
    response.headers["Cache-Control"] = CACHE_CONTROL
    return {"character": character_chat.get_public_character(character_id).to_public_dict()}


@router.post(
    "/{character_id}/chat",
    dependencies=[Depends(user_rate_limit("chat")), Depends(rate_limit("ai"))],
)
async def chat(
    character_id: str,
    body: ChatMessageRequest,
    user: UserRecord = Depends(get_current_user),
) -> dict:
    """Chat with a character, continuing or starting a conversation."""
    return character_chat.chat(user.id, character_id, body.message, body.conversation_id)


@router.get("/{character_id}/conversations")
async def list_conversations(character_id: str, user: UserRecord = Depends(get_current_user)) -> dict:
    items = character_chat.list_conversations(user.id, character_id)
    return {"conversations": items, "count": len(items)}
