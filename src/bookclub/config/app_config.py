"""Application configuration loader.

Loads centralized configuration from data/config/app_config.yaml with
built-in defaults when the file is missing. Secrets are never stored in the
YAML file: sections name the environment variable that holds them.

Usage:
    from bookclub.config.app_config import load_app_config

    config = load_app_config()
    secret = config.stripe.get_secret_key()
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config.yaml")

ENV_OVERRIDE = "BOOKCLUB_ENV"


@dataclass
class ServerConfig:
    """HTTP server settings."""

    environment: str = "development"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    client_url: str = "http://localhost:3000"
    slow_request_ms: int = 1000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass
class DatabaseConfig:
    """SQLite database settings."""

    path: str = "db/bookclub.db"
    max_retries: int = 3
    retry_delay_ms: int = 1000


@dataclass
class AuthConfig:
    """Bearer token settings."""

    jwt_secret_env: str = "BOOKCLUB_JWT_SECRET"
    access_token_ttl_minutes: int = 60
    refresh_token_ttl_days: int = 30

    def get_jwt_secret(self) -> str:
        """Get signing secret from environment, with a development fallback."""
        return os.environ.get(self.jwt_secret_env) or "bookclub-dev-secret-change-me"


@dataclass
class LLMSettings:
    """Chat-completions provider settings."""

    provider: str = "openai"
    base_url: str | None = None
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.8
    max_tokens: int = 500
    timeout: int = 60
    presence_penalty: float = 0.6
    frequency_penalty: float = 0.3
    api_key_env: str | None = "OPENAI_API_KEY"

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class StripeConfig:
    """Stripe billing settings."""

    secret_key_env: str = "STRIPE_SECRET_KEY"
    webhook_secret_env: str = "STRIPE_WEBHOOK_SECRET"
    price_ids: dict[str, str] = field(default_factory=dict)

    def get_secret_key(self) -> str | None:
        return os.environ.get(self.secret_key_env)

    def get_webhook_secret(self) -> str | None:
        return os.environ.get(self.webhook_secret_env)


@dataclass
class AffiliateConfig:
    """Affiliate program identifiers."""

    amazon_tag: str = "bookclub-20"
    bookshop_id: str = "bookclub"
    barnes_noble_id: str = "bookclub"


@dataclass
class GoogleBooksConfig:
    """Google Books volumes API settings."""

    base_url: str = "https://www.googleapis.com/books/v1/volumes"
    api_key_env: str = "GOOGLE_BOOKS_API_KEY"
    max_results: int = 20
    timeout: float = 10.0

    def get_api_key(self) -> str | None:
        return os.environ.get(self.api_key_env)


@dataclass
class RateLimitRule:
    """A sliding-window limit: max_requests within window_seconds."""

    max_requests: int
    window_seconds: int


@dataclass
class RateLimitConfig:
    """Rate limiter settings."""

    enabled: bool = True
    rules: dict[str, RateLimitRule] = field(default_factory=dict)


@dataclass
class AppConfig:
    """Application-wide configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    llm: LLMSettings = field(default_factory=LLMSettings)
    stripe: StripeConfig = field(default_factory=StripeConfig)
    affiliates: AffiliateConfig = field(default_factory=AffiliateConfig)
    google_books: GoogleBooksConfig = field(default_factory=GoogleBooksConfig)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "server": {
            "environment": "development",
            "cors_origins": ["*"],
            "client_url": "http://localhost:3000",
            "slow_request_ms": 1000,
        },
        "database": {
            "path": "db/bookclub.db",
            "max_retries": 3,
            "retry_delay_ms": 1000,
        },
        "auth": {
            "jwt_secret_env": "BOOKCLUB_JWT_SECRET",
            "access_token_ttl_minutes": 60,
            "refresh_token_ttl_days": 30,
        },
        "llm": {
            "provider": "openai",
            "base_url": None,
            "model": "gpt-3.5-turbo",
            "temperature": 0.8,
            "max_tokens": 500,
            "timeout": 60,
            "presence_penalty": 0.6,
            "frequency_penalty": 0.3,
            "api_key_env": "OPENAI_API_KEY",
        },
        "stripe": {
            "secret_key_env": "STRIPE_SECRET_KEY",
            "webhook_secret_env": "STRIPE_WEBHOOK_SECRET",
            "price_ids": {
                "premium": "price_premium_monthly",
                "pro": "price_pro_monthly",
            },
        },
        "affiliates": {
            "amazon_tag": "bookclub-20",
            "bookshop_id": "bookclub",
            "barnes_noble_id": "bookclub",
        },
        "google_books": {
            "base_url": "https://www.googleapis.com/books/v1/volumes",
            "api_key_env": "GOOGLE_BOOKS_API_KEY",
            "max_results": 20,
            "timeout": 10.0,
        },
        "rate_limits": {
            "enabled": True,
            "general": {"max_requests": 100, "window_seconds": 15 * 60},
            "chat": {"max_requests": 20, "window_seconds": 60},
            "ai": {"max_requests": 20, "window_seconds": 15 * 60},
        },
    }


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    result = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    server = ServerConfig(**data.get("server", {}))
    environment = os.environ.get(ENV_OVERRIDE)
    if environment:
        server.environment = environment

    rate_data = dict(data.get("rate_limits", {}))
    enabled = rate_data.pop("enabled", True)
    rules = {
        name: RateLimitRule(
            max_requests=int(rule.get("max_requests", 100)),
            window_seconds=int(rule.get("window_seconds", 60)),
        )
        for name, rule in rate_data.items()
    }

    return AppConfig(
        server=server,
        database=DatabaseConfig(**data.get("database", {})),
        auth=AuthConfig(**data.get("auth", {})),
        llm=LLMSettings(**data.get("llm", {})),
        stripe=StripeConfig(**data.get("stripe", {})),
        affiliates=AffiliateConfig(**data.get("affiliates", {})),
        google_books=GoogleBooksConfig(**data.get("google_books", {})),
        rate_limits=RateLimitConfig(enabled=enabled, rules=rules),
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to built-in defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data = _get_defaults()

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        loaded = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        data = _merge(data, loaded)
    else:
        logger.info("using_default_config")

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
