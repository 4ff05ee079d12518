"""AI features built on the chat-completions client.

Every public method degrades gracefully: when no provider is configured, or
the provider fails, a deterministic fallback is returned instead of an error.
The exception is ``chat``, which raises so callers can map the failure to an
HTTP status.
"""

from __future__ import annotations

from typing import Any

import structlog

from bookclub.config.constants import CHAT_HISTORY_WINDOW
from bookclub.llm.client import LLMClient, LLMError, Message
from bookclub.prompts.registry import get_prompt
from bookclub.utils.text_utils import extract_keywords, strip_think, truncate_words

logger = structlog.get_logger(__name__)

POSITIVE_WORDS = {
    "love", "loved", "great", "excellent", "amazing", "wonderful", "beautiful",
    "brilliant", "enjoyed", "favorite", "masterpiece", "fantastic", "best",
    "delightful", "moving", "recommend", "good", "captivating",
}
NEGATIVE_WORDS = {
    "hate", "hated", "boring", "terrible", "awful", "bad", "worst", "dull",
    "disappointing", "disappointed", "slow", "confusing", "waste", "poor",
    "annoying", "predictable", "tedious",
}

CHARACTER_FALLBACK_REPLY = (
    "I'm having trouble collecting my thoughts right now. Could you ask me that again?"
)
UNCONFIGURED_REPLY = (
    "I appreciate your interest, but I'm currently unable to provide detailed "
    "responses. Please check back later!"
)

NOTIFICATION_TEMPLATES: dict[str, tuple[str, str]] = {
    "streak": ("Keep your streak going", "You're on a {streak}-day reading streak. Read a few pages today!"),
    "achievement": ("Achievement unlocked", "You earned {achievement}. Great work!"),
    "goal": ("Goal progress", "You're {percentage}% of the way to your reading goal."),
    "challenge": ("Challenge update", "There's a new challenge waiting for you: {challenge}."),
    "recommendation": ("A book for you", "We think you'll enjoy {title}."),
}


class _SafeDict(dict):
    """Leaves unknown ``{placeholders}`` untouched in str.format_map."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class AIService:
    """High-level AI operations with fallbacks."""

    def __init__(self, client: LLMClient | None = None):
        self._client = client

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            self._client = LLMClient()
        return self._client

    def is_configured(self) -> bool:
        return bool(self.client.is_configured)

    # =========================================================================
    # RAW CHAT
    # =========================================================================

    def chat(self, messages: list[Message], model: str | None = None, max_tokens: int | None = None) -> str:
        """Send a conversation and return the cleaned reply text.

        Raises:
            LLMError: Provider failure, original error kept as __cause__
        """
        response = self.client.chat(messages, model=model, max_tokens=max_tokens)
        return strip_think(response.content)

    # =========================================================================
    # MODERATION AND CHARACTERS
    # =========================================================================

    def moderate_content(self, content: str) -> dict[str, Any]:
        """Classify user content.

        Fails open: returns ``{"flagged": False, "reason": "", "score": 0}``
        when the provider is unavailable.
        """
        allowed = {"flagged": False, "reason": "", "score": 0}
        if not self.is_configured():
            logger.debug("moderation_skipped", reason="not_configured")
            return allowed

        try:
            result = self.client.simple_json(
                get_prompt("moderation/moderate_content"),
                content,
                temperature=0.3,
                max_tokens=150,
            )
            return {
                "flagged": bool(result.get("flagged", False)),
                "reason": str(result.get("reason") or ""),
                "score": int(result.get("score") or 0),
            }
        except (LLMError, ValueError, TypeError) as e:
            logger.warning("moderation_failed", error=str(e))
            return allowed

    def create_character_personality(self, name: str, character_type: str, context: str = "") -> dict[str, str]:
        """Generate a personality description and greeting for a chat character."""
        if not self.is_configured():
            return {
                "personality": f"I am {name}, and I'm here to discuss with you.",
                "greeting": f"Hello! I'm {name}. Let's talk!",
            }

        if character_type == "author":
            request = (
                f"Create a personality profile for author {name}. Include their "
                "writing style, themes, and known personality traits."
            )
        else:
            extra = f" {context}" if context else ""
            request = (
                f"Create a personality profile for the character {name}{extra}. "
                "Include their personality, background, and how they would speak."
            )

        try:
            result = self.client.simple_json(
                get_prompt("characters/create_personality", character_type=character_type),
                request,
                temperature=0.7,
                max_tokens=250,
            )
            personality = str(result["personality"]).strip()
            greeting = str(result["greeting"]).strip()
            if not personality or not greeting:
                raise ValueError("empty personality or greeting")
            return {"personality": personality, "greeting": greeting}
        except (LLMError, KeyError, ValueError) as e:
            logger.warning("personality_generation_failed", name=name, error=str(e))
            role = "an author" if character_type == "author" else "a character"
            return {
                "personality": f"I am {name}, {role} ready to discuss with you.",
                "greeting": f"Hello! I'm {name}. Ask me anything!",
            }

    def generate_character_response(
        self,
        character_name: str,
        personality: str,
        history: list[dict[str, str]],
        user_message: str,
    ) -> str:
        """Reply in character, using the last few messages as context.

        Args:
            character_name: Who the model speaks as
            personality: Personality description used in the system prompt
            history: Prior messages as ``{"role", "content"}`` dicts
            user_message: Current user message
        """
        if not self.is_configured():
            return UNCONFIGURED_REPLY

        messages = [
            Message(
                role="system",
                content=get_prompt(
                    "characters/respond_as_character",
                    character_name=character_name,
                    personality=personality,
                ),
            )
        ]
        for item in history[-CHAT_HISTORY_WINDOW:]:
            messages.append(Message(role=item["role"], content=item["content"]))
        messages.append(Message(role="user", content=user_message))

        try:
            reply = self.chat(messages, max_tokens=200)
        except LLMError as e:
            logger.warning("character_response_failed", character=character_name, error=str(e))
            return CHARACTER_FALLBACK_REPLY
        return reply or CHARACTER_FALLBACK_REPLY

    # =========================================================================
    # READING
    # =========================================================================

    def generate_book_recommendations(self, books: list[dict[str, Any]], count: int = 5) -> list[dict[str, str]] | None:
        """Recommend books based on the reader's books.

        Args:
            books: Dicts with ``title`` and ``authors``
            count: Number of recommendations

        Returns:
            List of ``{"title", "author", "reason"}`` or None when the AI is
            unavailable, in which case the caller picks a fallback
        """
        if not self.is_configured() or not books:
            return None

        listing = "\n".join(
            f"- {book['title']} by {', '.join(book.get('authors') or []) or 'Unknown'}"
            for book in books
        )
        try:
            result = self.client.simple_json(
                get_prompt("books/recommendations", count=count),
                f"The reader's books:\n{listing}",
                temperature=0.7,
            )
            recommendations = [
                {
                    "title": str(item.get("title", "")),
                    "author": str(item.get("author", "")),
                    "reason": str(item.get("reason", "")),
                }
                for item in result.get("recommendations", [])
                if item.get("title")
            ]
        except (LLMError, AttributeError, TypeError) as e:
            logger.warning("recommendations_failed", error=str(e))
            return None
        return recommendations[:count] or None

    def generate_reading_insights(self, statistics: dict[str, Any]) -> str:
        """Short personalized insight text about reading habits."""
        books_read = statistics.get("books_read", 0)
        current = statistics.get("currently_reading", 0)
        fallback = (
            f"You've read {books_read} {'book' if books_read == 1 else 'books'} and are "
            f"currently reading {current}. Keep going, and try adding a book from a "
            "genre you haven't explored yet!"
        )
        if not self.is_configured():
            return fallback

        recent = ", ".join(statistics.get("recent_books", [])) or "none yet"
        summary = (
            f"Books read: {books_read}\nCurrently reading: {current}\n"
            f"Want to read: {statistics.get('want_to_read', 0)}\nRecent books: {recent}"
        )
        try:
            text = strip_think(self.client.simple_chat(get_prompt("books/reading_insights"), summary))
        except LLMError as e:
            logger.warning("insights_failed", error=str(e))
            return fallback
        return text or fallback

    # =========================================================================
    # TEXT ANALYSIS
    # =========================================================================

    def analyze_sentiment(self, text: str) -> dict[str, Any]:
        """Return ``{"sentiment", "score"}`` with score clamped to [-1, 1]."""
        if self.is_configured():
            try:
                result = self.client.simple_json(
                    get_prompt("analysis/sentiment"), text, temperature=0.2, max_tokens=60
                )
                score = max(-1.0, min(1.0, float(result.get("score", 0))))
                sentiment = str(result.get("sentiment", "")).lower()
                if sentiment not in {"positive", "negative", "neutral"}:
                    sentiment = label_for_score(score)
                return {"sentiment": sentiment, "score": score}
            except (LLMError, ValueError, TypeError) as e:
                logger.warning("sentiment_failed", error=str(e))

        return keyword_sentiment(text)

    def generate_topic_tags(self, text: str, title: str = "") -> list[str]:
        """Up to five lowercase topic tags."""
        if self.is_configured():
            user_message = f"Title: {title}\n\n{text}" if title else text
            try:
                result = self.client.simple_json(
                    get_prompt("analysis/topic_tags"), user_message, temperature=0.4, max_tokens=100
                )
                tags = [str(tag).strip().lower() for tag in result.get("tags", []) if str(tag).strip()]
                if tags:
                    return tags[:5]
            except (LLMError, AttributeError, TypeError) as e:
                logger.warning("tags_failed", error=str(e))

        return extract_keywords(f"{title} {text}", limit=5)

    def generate_summary(self, text: str, max_words: int = 100) -> str:
        fallback = truncate_words(text, max_words)
        if not self.is_configured():
            return fallback
        try:
            summary = strip_think(
                self.client.simple_chat(
                    get_prompt("analysis/summary", max_words=max_words), text, temperature=0.5
                )
            )
        except LLMError as e:
            logger.warning("summary_failed", error=str(e))
            return fallback
        return summary or fallback

    def summarize_discussion(self, posts: list[dict[str, str]]) -> str:
        """Summarize forum posts given as ``{"username", "content"}`` dicts."""
        if not posts:
            return "No discussion yet."

        participants = {post.get("username", "") for post in posts}
        fallback = (
            f"{len(posts)} {'post' if len(posts) == 1 else 'posts'} from "
            f"{len(participants)} {'participant' if len(participants) == 1 else 'participants'}. "
            f"Latest: {truncate_words(posts[0].get('content', ''), 25)}"
        )
        if not self.is_configured():
            return fallback

        thread = "\n".join(f"{p.get('username', 'someone')}: {p.get('content', '')}" for p in posts[:50])
        try:
            summary = strip_think(
                self.client.simple_chat(get_prompt("community/discussion_summary"), thread)
            )
        except LLMError as e:
            logger.warning("discussion_summary_failed", error=str(e))
            return fallback
        return summary or fallback

    def generate_notification(self, notification_type: str, context: dict[str, Any] | None = None) -> dict[str, str]:
        """Compose a notification ``{"title", "message"}``."""
        context = context or {}
        title, template = NOTIFICATION_TEMPLATES.get(
            notification_type,
            ("Book club update", "There's something new waiting for you in your book club."),
        )
        fallback = {"title": title, "message": template.format_map(_SafeDict(context))}
        if not self.is_configured():
            return fallback

        details = "\n".join(f"{key}: {value}" for key, value in context.items()) or "no extra context"
        try:
            result = self.client.simple_json(
                get_prompt("community/notification", notification_type=notification_type),
                details,
                max_tokens=120,
            )
            if result.get("title") and result.get("message"):
                return {"title": str(result["title"]), "message": str(result["message"])}
        except LLMError as e:
            logger.warning("notification_generation_failed", error=str(e))
        return fallback

    def summarize_review(self, review_text: str) -> str:
        """One or two sentence summary; falls back to the first 20 words."""
        fallback = truncate_words(review_text, 20)
        if not self.is_configured():
            return fallback
        try:
            summary = strip_think(
                self.client.simple_chat(
                    get_prompt("reviews/summarize_review"),
                    f"Summarize this book review:\n\n{review_text}",
                    temperature=0.5,
                    max_tokens=100,
                )
            )
        except LLMError as e:
            logger.warning("review_summary_failed", error=str(e))
            return fallback
        return summary or fallback

    def summarize_diary(self, book_title: str, book_author: str, entries: list[str]) -> dict[str, Any] | None:
        """Analyze diary entries, returning ``{"summary", "insights", "themes"}``.

        Returns None when the AI is unavailable so the caller can build a
        count-based summary.
        """
        if not self.is_configured():
            return None

        combined = "\n\n".join(f"Entry {i}: {text}" for i, text in enumerate(entries, start=1))
        try:
            result = self.client.simple_json(
                get_prompt("diary/summarize_diary", book_title=book_title, book_author=book_author),
                f"Diary Entries:\n{combined}",
                temperature=0.7,
            )
        except LLMError as e:
            logger.warning("diary_summary_failed", error=str(e))
            return None

        return {
            "summary": str(result.get("summary", "")),
            "insights": [str(item) for item in result.get("insights", []) or []],
            "themes": [str(item) for item in result.get("themes", []) or []],
        }


def keyword_sentiment(text: str) -> dict[str, Any]:
    """Word-list sentiment used when no provider is available."""
    words = [w.strip(".,!?;:\"'()").lower() for w in text.split()]
    positive = sum(1 for w in words if w in POSITIVE_WORDS)
    negative = sum(1 for w in words if w in NEGATIVE_WORDS)
    total = positive + negative
    score = 0.0 if total == 0 else round((positive - negative) / total, 2)
    return {"sentiment": label_for_score(score), "score": score}


def label_for_score(score: float) -> str:
    if score > 0.3:
        return "positive"
    if score < -0.3:
        return "negative"
    return "neutral"


# =============================================================================
# PROCESS-WIDE INSTANCE
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get the shared AIService, creating it on first use."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service


def set_ai_service(service: AIService) -> None:
    """Replace the shared AIService (used by tests)."""
    global _ai_service
    _ai_service = service


def reset_ai_service() -> None:
    global _ai_service
    _ai_service = None
