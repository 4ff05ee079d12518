"""Configuration package for the book club platform."""

from bookclub.config.app_config import (
    AppConfig,
    clear_config_cache,
    load_app_config,
)
from bookclub.config.characters import (
    PrebuiltCharacter,
    get_character,
    list_characters,
    load_characters,
)

__all__ = [
    "AppConfig",
    "clear_config_cache",
    "load_app_config",
    "PrebuiltCharacter",
    "get_character",
    "list_characters",
    "load_characters",
]
