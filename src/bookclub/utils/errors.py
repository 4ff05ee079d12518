"""API error type and error mapping helpers.

``APIError`` carries an HTTP status and a machine-readable code. Core modules
raise it directly; the web layer turns it into a JSON response.

Helpers map lower-level failures onto ``APIError``:
- from_db_error: sqlite3 errors (unique, foreign key, constraint)
- from_llm_error: OpenAI-compatible API failures (rate limit, auth, outage)
"""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class APIError(Exception):
    """Error with an HTTP status code and a short error code."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "internal_error",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(message)

    @classmethod
    def bad_request(cls, message: str = "Bad request", **details: Any) -> APIError:
        return cls(message, 400, "bad_request", details)

    @classmethod
    def unauthorized(cls, message: str = "Authentication required", **details: Any) -> APIError:
        return cls(message, 401, "unauthorized", details)

    @classmethod
    def forbidden(cls, message: str = "Access denied", **details: Any) -> APIError:
        return cls(message, 403, "forbidden", details)

    @classmethod
    def not_found(cls, message: str = "Resource not found", **details: Any) -> APIError:
        return cls(message, 404, "not_found", details)

    @classmethod
    def conflict(cls, message: str = "Resource already exists", **details: Any) -> APIError:
        return cls(message, 409, "conflict", details)

    @classmethod
    def rate_limit(cls, message: str = "Too many requests. Please try again later.", **details: Any) -> APIError:
        return cls(message, 429, "rate_limit_exceeded", details)

    @classmethod
    def internal(cls, message: str = "An unexpected error occurred", **details: Any) -> APIError:
        return cls(message, 500, "internal_error", details)

    @classmethod
    def service_unavailable(cls, message: str = "Service temporarily unavailable", **details: Any) -> APIError:
        return cls(message, 503, "service_unavailable", details)


def from_db_error(exc: sqlite3.Error) -> APIError:
    """Map a sqlite3 error to an APIError.

    Args:
        exc: Error raised by the sqlite3 driver

    Returns:
        APIError with the matching status code
    """
    message = str(exc)
    upper = message.upper()

    if isinstance(exc, sqlite3.IntegrityError):
        if "UNIQUE" in upper:
            return APIError.conflict("Resource already exists")
        if "FOREIGN KEY" in upper:
            return APIError.bad_request("Referenced resource does not exist")
        if "NOT NULL" in upper or "CHECK" in upper:
            return APIError.bad_request("Invalid data")

    logger.error("database_error", error=message, error_type=type(exc).__name__)
    return APIError("Database operation failed", 500, "database_error")


def _llm_status_and_code(exc: BaseException) -> tuple[int | None, str | None]:
    """Find the HTTP status and error code of an LLM failure.

    Looks at the exception and the chain of causes, since the LLM client
    wraps provider errors in its own types.
    """
    current: BaseException | None = exc
    while current is not None:
        status = getattr(current, "status_code", None)
        code = getattr(current, "code", None)
        if status is not None or code is not None:
            return status, code
        current = current.__cause__
    return None, None


def from_llm_error(exc: BaseException) -> APIError:
    """Map an LLM provider failure to an APIError.

    Args:
        exc: Error raised while calling the chat-completions API

    Returns:
        APIError with the matching status code
    """
    status, code = _llm_status_and_code(exc)

    if status == 429 or code == "rate_limit_exceeded":
        return APIError("AI service rate limit exceeded", 429, "ai_rate_limit")
    if status == 401 or code == "invalid_api_key":
        return APIError("AI service authentication failed", 503, "ai_auth_error")
    if status == 503:
        return APIError("AI service temporarily unavailable", 503, "ai_unavailable")

    logger.error("ai_service_error", error=str(exc), status=status, code=code)
    return APIError("AI service error", 500, "ai_error")
