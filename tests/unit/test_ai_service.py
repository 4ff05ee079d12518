"""Tests for AIService fallbacks and response handling."""

from unittest.mock import MagicMock

import pytest

from bookclub.llm.client import LLMError
from bookclub.services.ai_service import (
    CHARACTER_FALLBACK_REPLY,
    AIService,
    keyword_sentiment,
    label_for_score,
)


@pytest.fixture
def llm():
    client = MagicMock()
    client.is_configured = True
    return client


@pytest.fixture
def offline():
    client = MagicMock()
    client.is_configured = False
    return AIService(client=client)


class TestKeywordSentiment:
    """Tests for the word-list sentiment fallback."""

    def test_positive(self):
        """Positive words give a positive score."""
        assert keyword_sentiment("A brilliant, moving book!") == {"sentiment": "positive", "score": 1.0}

    def test_mixed(self):
        """More negative than positive words gives a negative label."""
        result = keyword_sentiment("Great characters but a slow, boring middle")
        assert result["score"] == round((1 - 2) / 3, 2)
        assert result["sentiment"] == "negative"

    def test_no_sentiment_words(self):
        """Text without sentiment words is neutral."""
        assert keyword_sentiment("The ship sailed at dawn") == {"sentiment": "neutral", "score": 0.0}

    def test_labels(self):
        """Only scores beyond 0.3 either way leave neutral."""
        assert label_for_score(0.31) == "positive"
        assert label_for_score(-0.31) == "negative"
        assert label_for_score(0.3) == "neutral"


class TestModeration:
    """Tests for moderate_content."""

    def test_fails_open_when_offline(self, offline):
        """Without AI, content is allowed."""
        assert offline.moderate_content("anything") == {"flagged": False, "reason": "", "score": 0}

    def test_fails_open_on_provider_error(self, llm):
        """A provider failure allows the content."""
        llm.simple_json.side_effect = LLMError("down")
        assert AIService(client=llm).moderate_content("anything")["flagged"] is False

    def test_normalizes_result(self, llm):
        """The model verdict is reduced to flagged, reason and score."""
        llm.simple_json.return_value = {"flagged": 1, "reason": "insult", "score": "8"}
        assert AIService(client=llm).moderate_content("x") == {"flagged": True, "reason": "insult", "score": 8}


class TestCharacters:
    """Tests for persona creation and in-character replies."""

    def test_personality_fallback_on_bad_json(self, llm):
        """An unusable persona reply falls back to a generic persona."""
        llm.simple_json.return_value = {"personality": "Bold."}
        persona = AIService(client=llm).create_character_personality("Ahab", "character")
        assert persona["greeting"] == "Hello! I'm Ahab. Ask me anything!"
        assert persona["personality"] == "I am Ahab, a character ready to discuss with you."

    def test_response_uses_history_window(self, llm):
        """Character replies send the persona and only recent history."""
        llm.chat.return_value = MagicMock(content="Call me Ishmael.")
        history = [{"role": "user", "content": f"m{i}"} for i in range(20)]
        reply = AIService(client=llm).generate_character_response("Ishmael", "Sailor.", history, "Name?")

        assert reply == "Call me Ishmael."
        sent = llm.chat.call_args.args[0]
        assert sent[0].role == "system"
        assert "Ishmael" in sent[0].content
        assert sent[-1].content == "Name?"
        assert len(sent) < len(history) + 2

    def test_response_fallback_on_error(self, llm):
        """A provider failure gives the fallback reply."""
        llm.chat.side_effect = LLMError("down")
        reply = AIService(client=llm).generate_character_response("Ishmael", "Sailor.", [], "Hi")
        assert reply == CHARACTER_FALLBACK_REPLY

    def test_chat_raises(self, llm):
        """chat lets provider errors propagate."""
        llm.chat.side_effect = LLMError("down")
        with pytest.raises(LLMError):
            AIService(client=llm).chat([])


class TestReadingFeatures:
    """Tests for recommendations, insights and summaries."""

    def test_recommendations_none_when_offline(self, offline):
        """Without AI, there are no recommendations."""
        assert offline.generate_book_recommendations([{"title": "Dune"}]) is None

    def test_recommendations_are_trimmed(self, llm):
        """Recommendations keep only title, author and reason."""
        llm.simple_json.return_value = {
            "recommendations": [
                {"title": "Hyperion", "author": "Dan Simmons", "reason": "Epic scope"},
                {"title": "", "author": "Nobody"},
                {"title": "Foundation", "author": "Isaac Asimov", "reason": "Galactic politics"},
            ]
        }
        result = AIService(client=llm).generate_book_recommendations([{"title": "Dune", "authors": ["Herbert"]}], count=1)
        assert result == [{"title": "Hyperion", "author": "Dan Simmons", "reason": "Epic scope"}]

    def test_insights_fallback(self, offline):
        """Without AI, insights are built from the reading counts."""
        text = offline.generate_reading_insights({"books_read": 1, "currently_reading": 2})
        assert text.startswith("You've read 1 book and are currently reading 2.")

    def test_review_summary_fallback(self, offline):
        """Without AI, a review summary is its first twenty words."""
        review = " ".join(f"w{i}" for i in range(30))
        assert offline.summarize_review(review) == " ".join(f"w{i}" for i in range(20)) + "..."

    def test_diary_summary_offline(self, offline):
        """Without AI, there is no diary summary."""
        assert offline.summarize_diary("Dune", "Herbert", ["Entry"]) is None

    def test_diary_summary(self, llm):
        """With AI, the diary summary is the model reply."""
        llm.simple_json.return_value = {"summary": "A journey.", "insights": ["Patience"], "themes": None}
        result = AIService(client=llm).summarize_diary("Dune", "Herbert", ["Day one", "Day two"])
        assert result == {"summary": "A journey.", "insights": ["Patience"], "themes": []}
        assert "Entry 2: Day two" in llm.simple_json.call_args.args[1]
