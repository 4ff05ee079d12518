"""Tests for the sliding-window limiter."""

from bookclub.config.app_config import RateLimitConfig, RateLimitRule
from bookclub.web.rate_limit import SlidingWindowLimiter, build_limiters


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestSlidingWindowLimiter:
    """Tests for SlidingWindowLimiter.hit."""

    def test_allows_up_to_limit(self):
        """The request after max_requests is rejected."""
        limiter = SlidingWindowLimiter(3, 60, clock=FakeClock())
        assert [limiter.hit("ip") for _ in range(3)] == [None, None, None]
        assert limiter.hit("ip") is not None

    def test_retry_after_counts_down(self):
        """Retry-After shrinks as the oldest hit ages."""
        clock = FakeClock()
        limiter = SlidingWindowLimiter(1, 60, clock=clock)
        limiter.hit("ip")
        assert limiter.hit("ip") == 61
        clock.now += 30
        assert limiter.hit("ip") == 31

    def test_window_slides(self):
        """Hits older than the window stop counting."""
        clock = FakeClock()
        limiter = SlidingWindowLimiter(2, 60, clock=clock)
        limiter.hit("ip")
        clock.now += 30
        limiter.hit("ip")
        clock.now += 31
        # The first hit has left the window
        assert limiter.hit("ip") is None
        assert limiter.hit("ip") is not None

    def test_rejected_hits_are_not_counted(self):
        """Rejected requests do not extend the block."""
        clock = FakeClock()
        limiter = SlidingWindowLimiter(1, 10, clock=clock)
        limiter.hit("ip")
        for _ in range(5):
            limiter.hit("ip")
        clock.now += 10
        assert limiter.hit("ip") is None

    def test_keys_are_independent(self):
        """Each key has its own window."""
        limiter = SlidingWindowLimiter(1, 60, clock=FakeClock())
        assert limiter.hit("a") is None
        assert limiter.hit("b") is None
        assert limiter.hit("a") is not None

    def test_reset(self):
        """reset forgets every key."""
        limiter = SlidingWindowLimiter(1, 60, clock=FakeClock())
        limiter.hit("ip")
        limiter.reset()
        assert limiter.hit("ip") is None
        assert limiter.tracked_keys() == 1


class TestStaleKeySweep:
    """Tests for dropping keys that have left the window."""

    def test_idle_keys_are_dropped(self):
        """Many one-off clients do not accumulate once their window passes."""
        clock = FakeClock()
        limiter = SlidingWindowLimiter(5, 60, clock=clock)
        for n in range(10_000):
            limiter.hit(f"10.0.{n // 256}.{n % 256}")
        assert limiter.tracked_keys() == 10_000

        clock.now += 61
        assert limiter.hit("192.168.1.1") is None
        assert limiter.tracked_keys() == 1

    def test_active_keys_survive_sweep(self):
        """Keys with hits still inside the window keep their count."""
        clock = FakeClock()
        limiter = SlidingWindowLimiter(2, 60, clock=clock)
        limiter.hit("old")
        clock.now += 30
        limiter.hit("busy")
        limiter.hit("busy")
        clock.now += 31

        limiter.hit("other")
        assert limiter.tracked_keys() == 2
        assert limiter.hit("busy") is not None

    def test_no_sweep_within_window(self):
        """Keys are kept until a full window has passed since the last sweep."""
        clock = FakeClock()
        limiter = SlidingWindowLimiter(1, 60, clock=clock)
        limiter.hit("a")
        clock.now += 59
        limiter.hit("b")
        assert limiter.tracked_keys() == 2


class TestBuildLimiters:
    """Tests for build_limiters."""

    def test_one_limiter_per_rule(self):
        """Each configured rule becomes a limiter with its own settings."""
        config = RateLimitConfig(rules={"general": RateLimitRule(100, 900), "chat": RateLimitRule(20, 60)})
        limiters = build_limiters(config)
        assert set(limiters) == {"general", "chat"}
        assert limiters["chat"].max_requests == 20
        assert limiters["general"].window_seconds == 900

    def test_disabled(self):
        """Disabled rate limiting builds no limiters."""
        config = RateLimitConfig(enabled=False, rules={"general": RateLimitRule(1, 1)})
        assert build_limiters(config) == {}
