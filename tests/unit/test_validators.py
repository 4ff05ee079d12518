"""Tests for input validation helpers."""

import uuid

from bookclub.utils.validators import (
    is_valid_character_id,
    is_valid_uuid,
    sanitize_text,
    validate_email,
    validate_username,
)


class TestSanitizeText:
    """Tests for sanitize_text."""

    def test_strips_and_removes_nul(self):
        """Whitespace is stripped and NUL bytes removed."""
        assert sanitize_text("  hello\x00 world  ") == "hello world"

    def test_truncates(self):
        """Text is cut to the maximum length."""
        assert sanitize_text("abcdef", max_len=3) == "abc"

    def test_none_is_empty(self):
        """None becomes an empty string."""
        assert sanitize_text(None) == ""


class TestIdentifiers:
    """Tests for character ids and UUIDs."""

    def test_character_ids(self):
        """Character ids are lowercase words joined by dashes."""
        assert is_valid_character_id("sherlock-holmes")
        assert not is_valid_character_id("Sherlock_Holmes")
        assert not is_valid_character_id("")
        assert not is_valid_character_id("a" * 200)

    def test_uuids(self):
        """Only canonical UUID strings are accepted."""
        value = str(uuid.uuid4())
        assert is_valid_uuid(value)
        assert is_valid_uuid(value.upper())
        assert not is_valid_uuid(value.replace("-", ""))
        assert not is_valid_uuid("not-a-uuid")


class TestAccountFields:
    """Tests for email and username checks."""

    def test_emails(self):
        """Email addresses are checked for shape."""
        assert validate_email("reader@example.com")
        assert not validate_email("reader@example")
        assert not validate_email("two words@example.com")

    def test_usernames(self):
        """Usernames are 3 to 30 allowed characters."""
        assert validate_username("book_worm.42")
        assert not validate_username("ab")
        assert not validate_username("has space")
