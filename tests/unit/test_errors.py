"""Tests for APIError and the error mapping helpers."""

import sqlite3

from bookclub.llm.client import LLMError
from bookclub.utils.errors import APIError, from_db_error, from_llm_error


class ProviderError(Exception):
    def __init__(self, status_code=None, code=None):
        super().__init__("provider failure")
        self.status_code = status_code
        self.code = code


def _wrapped(cause: Exception) -> LLMError:
    error = LLMError("LLM call failed")
    error.__cause__ = cause
    return error


class TestAPIError:
    """Tests for the APIError factories."""

    def test_factories(self):
        """Each factory sets its status code and error code."""
        cases = [
            (APIError.bad_request(), 400, "bad_request"),
            (APIError.unauthorized(), 401, "unauthorized"),
            (APIError.forbidden(), 403, "forbidden"),
            (APIError.not_found(), 404, "not_found"),
            (APIError.conflict(), 409, "conflict"),
            (APIError.rate_limit(), 429, "rate_limit_exceeded"),
            (APIError.internal(), 500, "internal_error"),
            (APIError.service_unavailable(), 503, "service_unavailable"),
        ]
        for error, status, code in cases:
            assert (error.status_code, error.code) == (status, code)

    def test_details(self):
        """Extra keyword arguments become details."""
        error = APIError.forbidden("Limit reached", limit=2, upgrade_required=True)
        assert error.message == "Limit reached"
        assert error.details == {"limit": 2, "upgrade_required": True}
        assert str(error) == "Limit reached"


class TestFromDbError:
    """Tests for mapping sqlite3 errors."""

    def test_unique_is_conflict(self):
        """A unique violation is a 409."""
        error = from_db_error(sqlite3.IntegrityError("UNIQUE constraint failed: users.email"))
        assert error.status_code == 409

    def test_foreign_key_is_bad_request(self):
        """A foreign key violation is a 400."""
        error = from_db_error(sqlite3.IntegrityError("FOREIGN KEY constraint failed"))
        assert error.status_code == 400

    def test_check_is_bad_request(self):
        """A check constraint violation is a 400."""
        error = from_db_error(sqlite3.IntegrityError("CHECK constraint failed: rating"))
        assert error.message == "Invalid data"

    def test_other_errors(self):
        """Other database errors are a 500."""
        error = from_db_error(sqlite3.OperationalError("database is locked"))
        assert (error.status_code, error.code) == (500, "database_error")


class TestFromLLMError:
    """Tests for mapping provider failures."""

    def test_rate_limit(self):
        """A provider 429 is an ai_rate_limit 429."""
        error = from_llm_error(_wrapped(ProviderError(status_code=429)))
        assert (error.status_code, error.code) == (429, "ai_rate_limit")

    def test_rate_limit_by_code(self):
        """A rate limit code without a status is still a 429."""
        error = from_llm_error(_wrapped(ProviderError(code="rate_limit_exceeded")))
        assert error.status_code == 429

    def test_bad_key_is_unavailable(self):
        """A rejected API key is a 503 ai_auth_error."""
        error = from_llm_error(_wrapped(ProviderError(status_code=401)))
        assert (error.status_code, error.code) == (503, "ai_auth_error")

    def test_outage(self):
        """A provider outage is a 503."""
        error = from_llm_error(_wrapped(ProviderError(status_code=503)))
        assert (error.status_code, error.code) == (503, "ai_unavailable")

    def test_unknown_failure(self):
        """Any other provider failure is a 500."""
        error = from_llm_error(LLMError("something odd"))
        assert (error.status_code, error.code) == (500, "ai_error")
