"""Tests for the YAML application config loader."""

from pathlib import Path

from bookclub.config.app_config import CONFIG_FILE, load_app_config


def _write_config(text: str) -> None:
    path = Path(CONFIG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class TestLoadAppConfig:
    """Tests for load_app_config."""

    def test_defaults_without_file(self):
        """Without a config file the built-in defaults apply."""
        config = load_app_config(force_reload=True)

        assert config.server.environment == "development"
        assert config.database.path == "db/bookclub.db"
        assert config.stripe.price_ids == {"premium": "price_premium_monthly", "pro": "price_pro_monthly"}
        assert config.rate_limits.rules["general"].max_requests == 100
        assert config.rate_limits.rules["ai"].window_seconds == 900

    def test_yaml_overrides_are_merged(self):
        """YAML values are merged over the defaults."""
        _write_config(
            """
server:
  environment: staging
rate_limits:
  chat:
    max_requests: 5
llm:
  model: gpt-4o-mini
"""
        )
        config = load_app_config(force_reload=True)

        assert config.server.environment == "staging"
        assert config.server.client_url == "http://localhost:3000"
        assert config.rate_limits.rules["chat"].max_requests == 5
        assert config.rate_limits.rules["chat"].window_seconds == 60
        assert config.llm.model == "gpt-4o-mini"
        assert config.llm.temperature == 0.8

    def test_env_override_wins(self, monkeypatch):
        """BOOKCLUB_ENV overrides the configured environment."""
        _write_config("server:\n  environment: staging\n")
        monkeypatch.setenv("BOOKCLUB_ENV", "production")

        config = load_app_config(force_reload=True)
        assert config.server.is_production

    def test_rate_limits_can_be_disabled(self):
        """Rate limiting can be switched off in YAML."""
        _write_config("rate_limits:\n  enabled: false\n")
        assert load_app_config(force_reload=True).rate_limits.enabled is False

    def test_empty_file_uses_defaults(self):
        """An empty config file gives the defaults."""
        _write_config("")
        assert load_app_config(force_reload=True).server.environment == "development"

    def test_cached(self):
        """The loaded config is cached."""
        first = load_app_config()
        assert load_app_config() is first

    def test_secrets_come_from_environment(self, monkeypatch):
        """Secrets are read from environment variables."""
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
        config = load_app_config(force_reload=True)
        assert config.stripe.get_secret_key() == "sk_test_123"
        assert config.stripe.get_webhook_secret() is None
        assert config.auth.get_jwt_secret() == "test-secret"
