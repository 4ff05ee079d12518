"""Input validation and sanitization helpers.

Functions:
- sanitize_text(text, max_len) -> str: Strip NUL bytes, trim and truncate
- is_valid_character_id(value) -> bool: Kebab-case character identifier
- is_valid_uuid(value) -> bool: Canonical UUID string
- validate_email(email) -> bool: Basic email shape check
"""

from __future__ import annotations

import re
import uuid

from bookclub.config.constants import MAX_CHARACTER_ID_LENGTH, MAX_SANITIZED_TEXT_LENGTH

CHARACTER_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")


def sanitize_text(text: str | None, max_len: int = MAX_SANITIZED_TEXT_LENGTH) -> str:
    """Remove NUL bytes, trim whitespace and truncate.

    Args:
        text: Raw user input (None is treated as empty)
        max_len: Maximum length after trimming

    Returns:
        Cleaned text, possibly empty
    """
    if not text:
        return ""
    return text.replace("\x00", "").strip()[:max_len]


def is_valid_character_id(value: str) -> bool:
    """Check a prebuilt character identifier."""
    return (
        bool(value)
        and len(value) <= MAX_CHARACTER_ID_LENGTH
        and bool(CHARACTER_ID_PATTERN.match(value))
    )


def is_valid_uuid(value: str) -> bool:
    """Check that value is a canonical UUID string."""
    try:
        return str(uuid.UUID(value)) == value.lower()
    except (ValueError, AttributeError, TypeError):
        return False


def validate_email(email: str) -> bool:
    """Validate email format."""
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def validate_username(username: str) -> bool:
    """Usernames are 3-30 letters, digits, dots, dashes or underscores."""
    return bool(username) and bool(USERNAME_PATTERN.match(username))
