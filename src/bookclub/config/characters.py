"""Prebuilt character configuration loader.

Loads literary characters from prebuilt_characters.yaml next to this module.

Usage:
    from bookclub.config.characters import get_character, list_characters

    holmes = get_character("sherlock-holmes")
    public = [c.to_public_dict() for c in list_characters()]
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

CHARACTERS_FILE = Path(__file__).parent / "prebuilt_characters.yaml"


@dataclass
class PrebuiltCharacter:
    """A literary character with a fixed system prompt."""

    id: str
    name: str
    type: str
    book: str
    author: str
    avatar: str
    description: str
    personality: str
    background: str
    speaking_style: str
    system_prompt: str

    def to_public_dict(self) -> dict[str, Any]:
        """Serialize without the system prompt."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "book": self.book,
            "author": self.author,
            "avatar": self.avatar,
            "description": self.description,
            "personality": self.personality,
            "background": self.background,
            "speaking_style": self.speaking_style,
        }


# Module-level cache
_cached_characters: dict[str, PrebuiltCharacter] | None = None


def _get_default_characters() -> dict[str, PrebuiltCharacter]:
    """Get default characters when the config file is missing."""
    return {
        "sherlock-holmes": PrebuiltCharacter(
            id="sherlock-holmes",
            name="Sherlock Holmes",
            type="character",
            book="The Adventures of Sherlock Holmes",
            author="Arthur Conan Doyle",
            avatar="🔍",
            description="The world's greatest detective.",
            personality="Analytical, observant, eccentric",
            background="Consulting detective at 221B Baker Street.",
            speaking_style="Formal Victorian English",
            system_prompt="You are Sherlock Holmes. Stay in character.",
        ),
    }


def load_characters(force_reload: bool = False) -> dict[str, PrebuiltCharacter]:
    """Load all prebuilt characters from the config file.

    Args:
        force_reload: If True, ignore cache and reload from file.

    Returns:
        Dictionary mapping character ID to PrebuiltCharacter, in file order.
    """
    global _cached_characters

    if _cached_characters is not None and not force_reload:
        return _cached_characters

    if not CHARACTERS_FILE.exists():
        logger.warning("characters_file_not_found", path=str(CHARACTERS_FILE))
        _cached_characters = _get_default_characters()
        return _cached_characters

    data = yaml.safe_load(CHARACTERS_FILE.read_text(encoding="utf-8")) or {}

    _cached_characters = {}
    for cid, cdata in data.get("characters", {}).items():
        _cached_characters[cid] = PrebuiltCharacter(
            id=cid,
            name=cdata.get("name", cid),
            type=cdata.get("type", "character"),
            book=cdata.get("book", ""),
            author=cdata.get("author", ""),
            avatar=cdata.get("avatar", ""),
            description=cdata.get("description", ""),
            personality=cdata.get("personality", ""),
            background=cdata.get("background", ""),
            speaking_style=cdata.get("speaking_style", ""),
            system_prompt=cdata.get("system_prompt", "").strip(),
        )

    logger.debug("loaded_characters", count=len(_cached_characters))
    return _cached_characters


def get_character(character_id: str) -> PrebuiltCharacter | None:
    """Get a specific character by ID.

    Args:
        character_id: Kebab-case identifier (e.g., "gandalf")

    Returns:
        PrebuiltCharacter or None if not found.
    """
    return load_characters().get(character_id)


def list_characters() -> list[PrebuiltCharacter]:
    """List all prebuilt characters."""
    return list(load_characters().values())


def clear_characters_cache() -> None:
    """Clear the characters cache."""
    global _cached_characters
    _cached_characters = None
