"""Shared pytest fixtures.

Every test runs in its own temporary working directory with a fresh SQLite
database, default configuration and no AI or Stripe credentials. Tests that
need the AI pass the ``mock_llm`` fixture.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from bookclub.config.app_config import clear_config_cache
from bookclub.config.characters import clear_characters_cache
from bookclub.core.achievements import seed_catalog
from bookclub.db import books_repository as books_repo
from bookclub.db import subscriptions_repository as subscriptions_repo
from bookclub.db.database import init_db
from bookclub.services.ai_service import AIService, reset_ai_service, set_ai_service
from bookclub.web.api import create_app
from bookclub.web.routes.characters import clear_list_cache


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Isolated working directory, database and configuration."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BOOKCLUB_JWT_SECRET", "test-secret")
    for name in ("OPENAI_API_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "BOOKCLUB_ENV"):
        monkeypatch.delenv(name, raising=False)

    clear_config_cache()
    clear_characters_cache()
    clear_list_cache()
    reset_ai_service()

    init_db(Path("db/bookclub.db"))
    seed_catalog()
    yield tmp_path

    reset_ai_service()
    clear_config_cache()


@pytest.fixture
def client():
    """Test client; the context manager runs the app lifespan."""
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def mock_llm():
    """Configured AI service backed by a mock LLM client."""
    llm = MagicMock()
    llm.is_configured = True
    llm.chat.return_value = MagicMock(content="A reply from the model.")
    llm.simple_chat.return_value = "Generated text."
    llm.simple_json.return_value = {}
    set_ai_service(AIService(client=llm))
    return llm


@pytest.fixture
def register(client):
    """Factory that registers a user and returns (user, headers)."""
    counter = {"n": 0}

    def _register(username: str | None = None, email: str | None = None):
        counter["n"] += 1
        username = username or f"reader{counter['n']}"
        email = email or f"{username}@example.com"
        response = client.post(
            "/api/auth/register",
            json={"email": email, "username": username, "password": "password123"},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        headers = {"Authorization": f"Bearer {data['session']['access_token']}"}
        return data["user"], headers

    return _register


@pytest.fixture
def auth(register):
    """A registered user and their auth headers."""
    return register("alice")


@pytest.fixture
def book():
    """A catalog book with an ISBN."""
    return books_repo.insert_book(
        title="The Left Hand of Darkness",
        authors=["Ursula K. Le Guin"],
        description="An envoy visits a planet whose people have no fixed gender.",
        isbn="9780441478125",
        categories=["Science Fiction"],
    )


@pytest.fixture
def make_book():
    """Factory for additional catalog books."""
    counter = {"n": 0}

    def _make(title: str | None = None, **fields):
        counter["n"] += 1
        return books_repo.insert_book(title=title or f"Book {counter['n']}", **fields)

    return _make


@pytest.fixture
def set_tier():
    """Put a user on a paid tier without going through Stripe."""

    def _set(user_id: str, tier: str, status: str = "active"):
        return subscriptions_repo.update_subscription(user_id, tier=tier, status=status)

    return _set
