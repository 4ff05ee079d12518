"""Prompt templates and the registry that loads them."""

from bookclub.prompts.registry import get_prompt, list_prompts

__all__ = ["get_prompt", "list_prompts"]
