"""Content moderation for user posts and messages."""

from __future__ import annotations

import structlog

from bookclub.config.constants import MODERATION_REJECT_SCORE
from bookclub.services.ai_service import get_ai_service
from bookclub.utils.errors import APIError

logger = structlog.get_logger(__name__)


def check_content(content: str) -> str | None:
    """Moderate user content before it is stored.

    Returns:
        A warning reason for mildly flagged content, None when clean

    Raises:
        APIError: 400 when content is flagged above the reject score
    """
    result = get_ai_service().moderate_content(content)
    if not result.get("flagged"):
        return None

    score = result.get("score", 0)
    if score > MODERATION_REJECT_SCORE:
        logger.info("content_rejected", score=score, reason=result.get("reason"))
        raise APIError.bad_request(
            "Message violates community guidelines", reason=result.get("reason", "")
        )

    logger.info("content_flagged", score=score, reason=result.get("reason"))
    return result.get("reason") or "Content flagged for review"
