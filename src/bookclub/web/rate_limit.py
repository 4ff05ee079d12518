"""In-memory sliding-window rate limiting."""

from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from typing import Callable

from bookclub.config.app_config import RateLimitConfig


class SlidingWindowLimiter:
    """Allow at most ``max_requests`` per key within ``window_seconds``.

    Keys whose newest hit has left the window are swept at most once per
    window, so the key map only holds clients seen recently.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> int | None:
        """Record a request.

        Returns:
            None when allowed, otherwise seconds until the next request is allowed
        """
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            hits = self._hits[key]
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return max(1, int(hits[0] + self.window_seconds - now) + 1)
            hits.append(now)
            return None

    def _sweep(self, now: float) -> None:
        cutoff = now - self.window_seconds
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def build_limiters(config: RateLimitConfig) -> dict[str, SlidingWindowLimiter]:
    """One limiter per configured rule; empty when rate limiting is disabled."""
    if not config.enabled:
        return {}
    return {
        name: SlidingWindowLimiter(rule.max_requests, rule.window_seconds)
        for name, rule in config.rules.items()
    }
