"""Tests for author and character persona models."""

from bookclub.core.fine_tuning import CHAT_FALLBACK_REPLY
from bookclub.db.database import get_db


class TestCreateModels:
    """Tests for the author, character and quick model endpoints."""

    def test_author_model_without_ai_stays_pending(self, client, auth):
        """Without AI, an author model is pending with training data and a style guide."""
        _, headers = auth
        response = client.post(
            "/api/fine-tune/author",
            json={"authorName": "Virginia Woolf", "works": ["Mrs Dalloway"], "styleNotes": "Themes of loss and identity"},
            headers=headers,
        )
        assert response.status_code == 201
        model = response.json()["model"]
        assert model["status"] == "pending"
        assert model["training_job_id"] is None
        assert len(model["training_data"]) == 10
        assert "Themes: loss, identity" in model["style_guide"]

    def test_author_model_with_ai_starts_training(self, client, auth, mock_llm):
        """With AI, an author model starts a mock training job."""
        _, headers = auth
        model = client.post(
            "/api/fine-tune/author", json={"authorName": "Virginia Woolf"}, headers=headers
        ).json()["model"]
        assert model["status"] == "training"
        assert model["training_job_id"].startswith("ftjob-")

    def test_existing_model_is_returned(self, client, auth):
        """Creating the same model again returns the existing one."""
        _, headers = auth
        first = client.post("/api/fine-tune/author", json={"authorName": "Woolf"}, headers=headers)
        second = client.post("/api/fine-tune/author", json={"authorName": "Woolf"}, headers=headers)
        assert second.status_code == 200
        assert second.json()["message"] == "Model already exists"
        assert second.json()["model"]["id"] == first.json()["model"]["id"]

    def test_author_name_required(self, client, auth):
        """An author model without a name is a 400."""
        _, headers = auth
        assert client.post("/api/fine-tune/author", json={}, headers=headers).status_code == 400

    def test_character_model(self, client, auth):
        """A character model is built from the character details."""
        _, headers = auth
        model = client.post(
            "/api/fine-tune/character",
            json={"characterName": "Clarissa", "book": "Mrs Dalloway", "characterDescription": "A society hostess."},
            headers=headers,
        ).json()["model"]
        assert model["model_type"] == "character"
        assert 'a character from "Mrs Dalloway"' in model["style_guide"]
        assert model["training_data"][0]["messages"][1]["content"] == "Tell me about yourself, Clarissa."

    def test_quick_model_is_ready(self, client, auth):
        """A quick model is ready at once."""
        _, headers = auth
        data = client.post(
            "/api/fine-tune/quick", json={"entityName": "Gatsby", "type": "character"}, headers=headers
        ).json()
        assert data["status"] == "ready"
        assert data["training_examples"] == 5
        assert data["model_id"].startswith("quick-character-")

    def test_quick_model_invalid_type(self, client, auth):
        """A quick model with an unknown type is a 400."""
        _, headers = auth
        response = client.post(
            "/api/fine-tune/quick", json={"entityName": "Gatsby", "entityType": "villain"}, headers=headers
        )
        assert response.status_code == 400
        assert response.json()["valid_types"] == ["author", "character"]


class TestStatus:
    """Tests for GET /api/fine-tune/status/{id}."""

    def test_training_completes_on_check(self, client, auth, mock_llm):
        """A status check completes a model in training."""
        _, headers = auth
        model_id = client.post(
            "/api/fine-tune/author", json={"authorName": "Woolf"}, headers=headers
        ).json()["model"]["id"]
        data = client.get(f"/api/fine-tune/status/{model_id}", headers=headers).json()
        assert data["status"] == "completed"
        assert data["ready"] is True
        assert data["model"]["fine_tuned_model_id"].startswith("ft:")

    def test_pending_model_is_not_ready(self, client, auth):
        """A pending model reports not ready."""
        _, headers = auth
        model_id = client.post(
            "/api/fine-tune/author", json={"authorName": "Woolf"}, headers=headers
        ).json()["model"]["id"]
        data = client.get(f"/api/fine-tune/status/{model_id}", headers=headers).json()
        assert data["ready"] is False

    def test_other_users_private_model(self, client, register):
        """Another user's private model is a 404."""
        _, alice = register("alice")
        _, bob = register("bob")
        model_id = client.post(
            "/api/fine-tune/author", json={"authorName": "Woolf"}, headers=alice
        ).json()["model"]["id"]
        assert client.get(f"/api/fine-tune/status/{model_id}", headers=bob).status_code == 404


class TestChat:
    """Tests for chatting with models."""

    def _quick(self, client, headers):
        return client.post(
            "/api/fine-tune/quick", json={"entityName": "Gatsby", "entityType": "character"}, headers=headers
        ).json()["model"]["id"]

    def test_model_not_ready(self, client, auth):
        """Chatting with a model that is not ready is a 400 with its status."""
        _, headers = auth
        model_id = client.post(
            "/api/fine-tune/author", json={"authorName": "Woolf"}, headers=headers
        ).json()["model"]["id"]
        response = client.post(f"/api/fine-tune/chat/{model_id}", json={"message": "Hi"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["status"] == "pending"

    def test_chat_without_ai_uses_fallback(self, client, auth):
        """Without AI, chat returns the fallback reply."""
        _, headers = auth
        model_id = self._quick(client, headers)
        data = client.post(f"/api/fine-tune/chat/{model_id}", json={"message": "Hi"}, headers=headers).json()
        assert data["response"] == CHAT_FALLBACK_REPLY
        assert data["conversation_id"].startswith("conv_")

    def test_chat_sends_style_guide_and_history(self, client, auth, mock_llm):
        """Chat sends the style guide and the conversation history."""
        _, headers = auth
        model_id = self._quick(client, headers)
        first = client.post(
            f"/api/fine-tune/chat/{model_id}", json={"message": "Old sport?"}, headers=headers
        ).json()
        client.post(
            f"/api/fine-tune/chat/{model_id}",
            json={"message": "And Daisy?", "conversationId": first["conversation_id"]},
            headers=headers,
        )

        sent = mock_llm.chat.call_args.args[0]
        assert sent[0].role == "system"
        assert sent[0].content.startswith("You are Gatsby")
        assert [m.content for m in sent[1:]] == ["Old sport?", "A reply from the model.", "And Daisy?"]

        conversations = client.get(f"/api/fine-tune/conversations/{model_id}", headers=headers).json()
        assert len(conversations["conversations"]) == 1
        assert len(conversations["conversations"][0]["messages"]) == 4

    def test_empty_message(self, client, auth):
        """An empty message is a 400."""
        _, headers = auth
        model_id = self._quick(client, headers)
        response = client.post(f"/api/fine-tune/chat/{model_id}", json={"message": ""}, headers=headers)
        assert response.status_code == 400

    def test_public_model_history_is_per_user(self, client, register, mock_llm):
        """Reusing another user's conversation id on a public model does not expose their turns."""
        _, alice = register("alice")
        _, bob = register("bob")
        model_id = self._quick(client, alice)
        with get_db() as conn:
            conn.execute("UPDATE fine_tuned_models SET is_public = 1 WHERE id = ?", (model_id,))

        conversation_id = client.post(
            f"/api/fine-tune/chat/{model_id}", json={"message": "My secret plan"}, headers=alice
        ).json()["conversation_id"]
        response = client.post(
            f"/api/fine-tune/chat/{model_id}",
            json={"message": "Hello", "conversationId": conversation_id},
            headers=bob,
        )
        assert response.status_code == 200

        sent = mock_llm.chat.call_args.args[0]
        assert [m.content for m in sent[1:]] == ["Hello"]
        bob_conversations = client.get(f"/api/fine-tune/conversations/{model_id}", headers=bob).json()
        messages = bob_conversations["conversations"][0]["messages"]
        assert [m["message_order"] for m in messages] == [1, 2]


class TestListAndDelete:
    """Tests for listing and deleting models."""

    def test_list_models(self, client, auth):
        """The user's models are listed."""
        _, headers = auth
        client.post("/api/fine-tune/author", json={"authorName": "Woolf"}, headers=headers)
        client.post("/api/fine-tune/character", json={"characterName": "Orlando"}, headers=headers)
        assert client.get("/api/fine-tune/models", headers=headers).json()["count"] == 2

    def test_delete_requires_owner(self, client, register):
        """Only the owner can delete a model."""
        _, alice = register("alice")
        _, bob = register("bob")
        model_id = client.post(
            "/api/fine-tune/author", json={"authorName": "Woolf"}, headers=alice
        ).json()["model"]["id"]
        assert client.delete(f"/api/fine-tune/{model_id}", headers=bob).status_code == 403
        assert client.delete(f"/api/fine-tune/{model_id}", headers=alice).status_code == 200
        assert client.get(f"/api/fine-tune/status/{model_id}", headers=alice).status_code == 404
