"""Exponential backoff for database calls.

Transient SQLite failures (``database is locked``) surface as
``sqlite3.OperationalError``. Repository functions are wrapped with
``db_retry`` so those are retried with exponential backoff. Integrity
errors and application errors propagate immediately.

Attempt count and initial delay come from ``database.max_retries`` and
``database.retry_delay_ms`` in the app config, read on every call.
"""

from __future__ import annotations

import sqlite3
from typing import Callable, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bookclub.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log each retry attempt."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "db_retry",
        operation=getattr(retry_state.fn, "__name__", "unknown"),
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
    )


def _backoff(max_attempts: int, delay_ms: int) -> tuple[stop_after_attempt, wait_exponential]:
    base = delay_ms / 1000
    return (
        stop_after_attempt(max(1, max_attempts)),
        wait_exponential(multiplier=base, min=base, max=base * 2 ** max_attempts),
    )


def _configured_stop(retry_state: RetryCallState) -> bool:
    settings = load_app_config().database
    stop, _ = _backoff(settings.max_retries, settings.retry_delay_ms)
    return stop(retry_state)


def _configured_wait(retry_state: RetryCallState) -> float:
    settings = load_app_config().database
    _, wait = _backoff(settings.max_retries, settings.retry_delay_ms)
    return wait(retry_state)


def with_retry(
    max_attempts: int | None = None,
    delay_ms: int | None = None,
) -> Callable[[F], F]:
    """Build a retry decorator for database operations.

    Waits delay_ms, then 2 * delay_ms, then 4 * delay_ms between attempts.
    Without arguments both values are taken from the app config at call time.

    Args:
        max_attempts: Total attempts including the first call
        delay_ms: Initial delay in milliseconds

    Returns:
        Decorator that retries on sqlite3.OperationalError
    """
    if max_attempts is None or delay_ms is None:
        stop, wait = _configured_stop, _configured_wait
    else:
        stop, wait = _backoff(max_attempts, delay_ms)
    return retry(
        retry=retry_if_exception_type(sqlite3.OperationalError),
        stop=stop,
        wait=wait,
        before_sleep=_log_retry,
        reraise=True,
    )


db_retry = with_retry()
