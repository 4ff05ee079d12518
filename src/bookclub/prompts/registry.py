"""Prompt Registry - Load prompts from Markdown templates.

Prompts live as Markdown files under ``templates/`` and support
``{variable}`` substitution.

Usage:
    from bookclub.prompts.registry import get_prompt

    prompt = get_prompt(
        "characters/respond_as_character",
        character_name="Sherlock Holmes",
        personality="Brilliant and observant.",
    )
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

PROMPTS_DIR = Path(__file__).parent / "templates"


def _get_prompt_uncached(key: str) -> str:
    """Load raw prompt from file without caching.

    Args:
        key: Path-like key, e.g., "analysis/sentiment"

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    file_path = PROMPTS_DIR / f"{key}.md"
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt not found: {key} (looked at {file_path})")

    return file_path.read_text(encoding="utf-8")


@lru_cache(maxsize=64)
def _get_cached_prompt(key: str) -> str:
    return _get_prompt_uncached(key)


def get_prompt(key: str, use_cache: bool = True, **variables: object) -> str:
    """Load prompt from file and substitute variables.

    Only the named ``{variable}`` placeholders are replaced, so literal
    JSON braces in a template are left alone.

    Args:
        key: Path-like key, e.g., "analysis/sentiment"
        use_cache: Whether to use cached version (default True)
        **variables: Variables to substitute

    Returns:
        Prompt string with variables substituted
    """
    content = _get_cached_prompt(key) if use_cache else _get_prompt_uncached(key)

    for var_name, var_value in variables.items():
        content = content.replace(f"{{{var_name}}}", str(var_value))

    return content.strip()


def list_prompts() -> list[str]:
    """List all available prompt keys, sorted."""
    if not PROMPTS_DIR.exists():
        logger.warning("prompts_dir_not_found", path=str(PROMPTS_DIR))
        return []

    return sorted(
        path.relative_to(PROMPTS_DIR).with_suffix("").as_posix()
        for path in PROMPTS_DIR.rglob("*.md")
    )


def clear_cache() -> None:
    """Clear the prompt cache."""
    _get_cached_prompt.cache_clear()
