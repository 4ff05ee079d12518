"""Tests for user-defined AI chats."""

from unittest.mock import patch

from bookclub.config.tiers import ChatLimits
from bookclub.services.ai_service import UNCONFIGURED_REPLY


def _create(client, headers, **overrides):
    body = {"characterName": "Jane Austen", "characterType": "author"}
    body.update(overrides)
    return client.post("/api/ai-chats/create", json=body, headers=headers)


class TestCreateChat:
    """Tests for POST /api/ai-chats/create."""

    def test_create_without_ai_uses_fallback_persona(self, client, auth):
        """Without AI, a new chat gets the fallback persona."""
        _, headers = auth
        response = _create(client, headers)
        assert response.status_code == 201
        chat = response.json()["chat"]
        assert chat["greeting"] == "Hello! I'm Jane Austen. Let's talk!"
        assert chat["message_count"] == 1

    def test_create_with_ai_persona(self, client, auth, mock_llm):
        """With AI, the persona is generated by the model."""
        _, headers = auth
        mock_llm.simple_json.return_value = {
            "personality": "Wry observer of manners.",
            "greeting": "Good day! Shall we discuss matrimony?",
        }
        chat = _create(client, headers).json()["chat"]
        assert chat["personality"] == "Wry observer of manners."

        detail = client.get(f"/api/ai-chats/{chat['id']}", headers=headers).json()
        assert detail["messages"][0]["sender"] == "ai"
        assert detail["messages"][0]["content"] == "Good day! Shall we discuss matrimony?"

    def test_invalid_type(self, client, auth):
        """An unknown character type is a 400."""
        _, headers = auth
        response = _create(client, headers, characterType="narrator")
        assert response.status_code == 400

    def test_free_tier_active_chat_limit(self, client, auth):
        """Free users hit the active chat limit with upgrade_required."""
        _, headers = auth
        _create(client, headers)
        _create(client, headers, characterName="Mr. Darcy", characterType="character")
        response = _create(client, headers, characterName="Emma")
        assert response.status_code == 403
        assert response.json()["limit"] == 2
        assert response.json()["upgrade_required"] is True

    def test_archived_chats_free_a_slot(self, client, auth):
        """Archiving a chat frees a slot under the active limit."""
        _, headers = auth
        first = _create(client, headers).json()["chat"]
        _create(client, headers, characterName="Emma")
        client.delete(f"/api/ai-chats/{first['id']}", headers=headers)
        assert _create(client, headers, characterName="Persuasion").status_code == 201

    def test_video_requires_premium(self, client, auth):
        """Free users cannot enable video in a chat."""
        _, headers = auth
        response = _create(client, headers, videoEnabled=True)
        assert response.status_code == 403
        assert response.json()["detail"] == "Video chat requires a premium subscription"

    def test_premium_can_enable_video(self, client, auth, set_tier):
        """Premium users can enable video in a chat."""
        user, headers = auth
        set_tier(user["id"], "premium")
        response = _create(client, headers, enableVideo=True)
        assert response.status_code == 201
        assert response.json()["chat"]["video_enabled"] is True


class TestMessages:
    """Tests for POST /api/ai-chats/{id}/message."""

    def test_reply_without_ai(self, client, auth):
        """Without AI, messages get the unconfigured reply."""
        _, headers = auth
        chat_id = _create(client, headers).json()["chat"]["id"]
        data = client.post(
            f"/api/ai-chats/{chat_id}/message", json={"message": "Hello!"}, headers=headers
        ).json()
        assert data["user_message"]["content"] == "Hello!"
        assert data["ai_message"]["content"] == UNCONFIGURED_REPLY

    def test_reply_from_model(self, client, auth, mock_llm):
        """With AI, the model reply is stored and counted."""
        _, headers = auth
        chat_id = _create(client, headers).json()["chat"]["id"]
        data = client.post(
            f"/api/ai-chats/{chat_id}/message", json={"text": "Tell me about Bath."}, headers=headers
        ).json()
        assert data["ai_message"]["content"] == "A reply from the model."
        assert client.get(f"/api/ai-chats/{chat_id}", headers=headers).json()["chat"]["message_count"] == 3

    def test_daily_message_limit(self, client, auth):
        """Messages past the daily limit are rejected."""
        _, headers = auth
        chat_id = _create(client, headers).json()["chat"]["id"]
        limits = ChatLimits(max_active_chats=2, max_messages_per_day=1, video_enabled=False)
        with patch("bookclub.core.ai_chats.get_chat_limits", return_value=limits):
            client.post(f"/api/ai-chats/{chat_id}/message", json={"message": "One"}, headers=headers)
            response = client.post(
                f"/api/ai-chats/{chat_id}/message", json={"message": "Two"}, headers=headers
            )
        assert response.status_code == 429
        assert response.json()["detail"] == "Daily message limit reached"
        assert response.json()["used"] == 1

    def test_empty_message(self, client, auth):
        """An empty message is a 400."""
        _, headers = auth
        chat_id = _create(client, headers).json()["chat"]["id"]
        response = client.post(f"/api/ai-chats/{chat_id}/message", json={"message": " "}, headers=headers)
        assert response.status_code == 400

    def test_archived_chat_rejects_messages(self, client, auth):
        """An archived chat takes no new messages."""
        _, headers = auth
        chat_id = _create(client, headers).json()["chat"]["id"]
        client.delete(f"/api/ai-chats/{chat_id}", headers=headers)
        response = client.post(f"/api/ai-chats/{chat_id}/message", json={"message": "Hi"}, headers=headers)
        assert response.status_code == 400

    def test_other_users_chat(self, client, register):
        """Another user's chat is a 404."""
        _, alice = register("alice")
        _, bob = register("bob")
        chat_id = _create(client, alice).json()["chat"]["id"]
        assert client.get(f"/api/ai-chats/{chat_id}", headers=bob).status_code == 404


class TestListsAndLimits:
    """Tests for my-chats and limits/current."""

    def test_my_chats_lists_active_only(self, client, auth):
        """my-chats lists only active chats."""
        _, headers = auth
        first = _create(client, headers).json()["chat"]
        _create(client, headers, characterName="Emma")
        client.delete(f"/api/ai-chats/{first['id']}", headers=headers)
        data = client.get("/api/ai-chats/my-chats", headers=headers).json()
        assert [c["character_name"] for c in data["chats"]] == ["Emma"]

    def test_current_limits(self, client, auth):
        """Current limits report the tier limits and usage."""
        _, headers = auth
        chat_id = _create(client, headers).json()["chat"]["id"]
        client.post(f"/api/ai-chats/{chat_id}/message", json={"message": "Hi"}, headers=headers)
        data = client.get("/api/ai-chats/limits/current", headers=headers).json()
        assert data["tier"] == "free"
        assert data["limits"] == {"max_active_chats": 2, "max_messages_per_day": 20, "video_enabled": False}
        assert data["usage"] == {"active_chats": 1, "messages_today": 1}
