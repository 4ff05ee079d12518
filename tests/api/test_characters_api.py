"""Tests for the prebuilt character endpoints."""

import uuid

from bookclub.config.constants import (
    AI_CONTEXT_WINDOW_SIZE,
    MAX_CONVERSATIONS_PER_CHARACTER,
    MAX_MESSAGES_PER_CONVERSATION,
)
from bookclub.db import character_conversations_repository as conversations_repo
from bookclub.llm.client import LLMError


class _RateLimited(Exception):
    status_code = 429


def _history(count: int) -> list[dict]:
    """Alternating user and assistant turns."""
    return [
        {
            "role": "user" if n % 2 == 0 else "assistant",
            "content": f"message {n}",
            "timestamp": "2024-01-01T00:00:00+00:00",
        }
        for n in range(count)
    ]


class TestCharacterList:
    """Tests for GET /api/prebuilt-characters."""

    def test_list_hides_system_prompts(self, client):
        """The list shows every character without its system prompt."""
        response = client.get("/api/prebuilt-characters")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 8
        assert "system_prompt" not in data["characters"][0]
        assert data["characters"][0]["id"] == "sherlock-holmes"

    def test_list_cache_headers(self, client):
        """The list is cacheable and carries an ETag."""
        response = client.get("/api/prebuilt-characters")
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert response.headers["etag"].startswith('"')

    def test_matching_etag_returns_304(self, client):
        """A matching If-None-Match gives an empty 304."""
        etag = client.get("/api/prebuilt-characters").headers["etag"]
        response = client.get("/api/prebuilt-characters", headers={"If-None-Match": etag})
        assert response.status_code == 304
        assert response.content == b""

    def test_get_character(self, client):
        """A character is returned by id."""
        data = client.get("/api/prebuilt-characters/elizabeth-bennet").json()
        assert data["character"]["book"] == "Pride and Prejudice"

    def test_malformed_id(self, client):
        """A malformed character id is a 400."""
        assert client.get("/api/prebuilt-characters/Bad_ID!").status_code == 400

    def test_unknown_character(self, client):
        """An unknown character id is a 404."""
        assert client.get("/api/prebuilt-characters/captain-nemo").status_code == 404


class TestCharacterChat:
    """Tests for POST /api/prebuilt-characters/{id}/chat."""

    def _chat(self, client, headers, **body):
        return client.post("/api/prebuilt-characters/sherlock-holmes/chat", json=body, headers=headers)

    def test_requires_ai(self, client, auth):
        """Without AI, chat is a 503 and no conversation is stored."""
        _, headers = auth
        response = self._chat(client, headers, message="Hello")
        assert response.status_code == 503
        conversations = client.get(
            "/api/prebuilt-characters/sherlock-holmes/conversations", headers=headers
        ).json()
        assert conversations["count"] == 0

    def test_starts_conversation(self, client, auth, mock_llm):
        """A first message starts a conversation with the system prompt."""
        _, headers = auth
        data = self._chat(client, headers, message="Who stole the pearl?").json()
        assert data["message"] == "A reply from the model."
        assert data["character"]["name"] == "Sherlock Holmes"
        uuid.UUID(data["conversation_id"])

        sent = mock_llm.chat.call_args.args[0]
        assert sent[0].role == "system"
        assert sent[-1].content == "Who stole the pearl?"

    def test_continues_conversation_with_history(self, client, auth, mock_llm):
        """A follow-up message sends the earlier turns."""
        _, headers = auth
        conversation_id = self._chat(client, headers, message="First question").json()["conversation_id"]
        self._chat(client, headers, message="Second question", conversationId=conversation_id)

        sent = mock_llm.chat.call_args.args[0]
        assert [m.content for m in sent[1:]] == [
            "First question",
            "A reply from the model.",
            "Second question",
        ]
        listing = client.get(
            "/api/prebuilt-characters/sherlock-holmes/conversations", headers=headers
        ).json()
        assert listing["conversations"][0]["message_count"] == 4

    def test_invalid_conversation_id(self, client, auth, mock_llm):
        """A malformed conversation id is a 400."""
        _, headers = auth
        response = self._chat(client, headers, message="Hi", conversationId="not-a-uuid")
        assert response.status_code == 400

    def test_unknown_conversation(self, client, auth, mock_llm):
        """An unknown conversation id is a 404."""
        _, headers = auth
        response = self._chat(client, headers, message="Hi", conversationId=str(uuid.uuid4()))
        assert response.status_code == 404

    def test_message_too_long(self, client, auth, mock_llm):
        """A message over the length limit is a 400."""
        _, headers = auth
        response = self._chat(client, headers, message="x" * 2001)
        assert response.status_code == 400

    def test_conversation_cap(self, client, auth, mock_llm):
        """Users cannot start more conversations than the cap per character."""
        _, headers = auth
        for _ in range(MAX_CONVERSATIONS_PER_CHARACTER):
            self._chat(client, headers, message="New case")
        response = self._chat(client, headers, message="One more")
        assert response.status_code == 400
        assert response.json()["detail"] == "Maximum conversations reached for this character"

    def test_provider_rate_limit_maps_to_429(self, client, auth, mock_llm):
        """A provider rate limit becomes a 429 ai_rate_limit."""
        _, headers = auth
        error = LLMError("rate limited")
        error.__cause__ = _RateLimited()
        mock_llm.chat.side_effect = error
        response = self._chat(client, headers, message="Hello")
        assert response.status_code == 429
        assert response.json()["error"] == "ai_rate_limit"

    def test_delete_conversation(self, client, auth, mock_llm):
        """A conversation can be deleted once."""
        _, headers = auth
        conversation_id = self._chat(client, headers, message="Hi").json()["conversation_id"]
        response = client.delete(f"/api/prebuilt-characters/conversations/{conversation_id}", headers=headers)
        assert response.status_code == 200
        response = client.delete(f"/api/prebuilt-characters/conversations/{conversation_id}", headers=headers)
        assert response.status_code == 404

    def test_conversation_message_limit(self, client, auth, mock_llm):
        """A conversation holding the maximum number of messages takes no more."""
        user, headers = auth
        conversation = conversations_repo.insert_conversation(user["id"], "sherlock-holmes")
        conversations_repo.save_messages(conversation.id, _history(MAX_MESSAGES_PER_CONVERSATION))

        response = self._chat(client, headers, message="Still there?", conversationId=conversation.id)
        assert response.status_code == 400
        assert response.json()["detail"] == "Conversation message limit reached"
        mock_llm.chat.assert_not_called()

    def test_only_recent_history_is_sent(self, client, auth, mock_llm):
        """The model sees the system prompt, the last messages in the window and the new one."""
        user, headers = auth
        conversation = conversations_repo.insert_conversation(user["id"], "sherlock-holmes")
        conversations_repo.save_messages(conversation.id, _history(30))

        response = self._chat(client, headers, message="What now?", conversationId=conversation.id)
        assert response.status_code == 200

        sent = mock_llm.chat.call_args.args[0]
        assert len(sent) == 1 + AI_CONTEXT_WINDOW_SIZE + 1
        assert sent[0].role == "system"
        assert [m.content for m in sent[1:-1]] == [f"message {n}" for n in range(10, 30)]
        assert sent[-1].content == "What now?"
