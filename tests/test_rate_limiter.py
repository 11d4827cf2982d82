"""Tests for the rate limiter."""

from __future__ import annotations

import pytest

from resilient_llm.exceptions import RateLimitExceededError
from resilient_llm.rate_limiter import RateLimiter


class TestRateLimiter:
    """Tests for the rolling window."""

    def test_third_call_in_window_rejected(self, small_limiter: RateLimiter) -> None:
        """With max 2, the third call inside the window is rejected."""
        assert small_limiter.allow() is True
        assert small_limiter.allow() is True
        assert small_limiter.allow() is False

    def test_allowed_again_after_window(self, small_limiter: RateLimiter, clock) -> None:
        """Once the window has passed, calls are admitted again."""
        small_limiter.allow()
        small_limiter.allow()
        assert small_limiter.allow() is False

        clock.advance(60.0)
        assert small_limiter.allow() is True

    def test_partial_expiry(self, small_limiter: RateLimiter, clock) -> None:
        """Only instants older than the window are pruned."""
        small_limiter.allow()
        clock.advance(30.0)
        small_limiter.allow()
        clock.advance(31.0)
        # First instant is 61s old, second is 31s old
        assert small_limiter.remaining == 1
        assert small_limiter.allow() is True
        assert small_limiter.allow() is False

    def test_rejected_calls_not_recorded(self, small_limiter: RateLimiter, clock) -> None:
        """A rejected call does not extend the window."""
        small_limiter.allow()
        small_limiter.allow()
        clock.advance(59.0)
        assert small_limiter.allow() is False
        clock.advance(1.0)
        assert small_limiter.remaining == 2

    def test_acquire_raises(self, small_limiter: RateLimiter) -> None:
        """acquire raises once the quota is used."""
        small_limiter.acquire()
        small_limiter.acquire()
        with pytest.raises(RateLimitExceededError):
            small_limiter.acquire()

    def test_reset(self, small_limiter: RateLimiter) -> None:
        """reset empties the window."""
        small_limiter.allow()
        small_limiter.allow()
        small_limiter.reset()
        assert small_limiter.remaining == 2

    def test_default_quota(self) -> None:
        """Default limiter admits 100 requests per minute."""
        limiter = RateLimiter(clock=lambda: 0.0)
        assert all(limiter.allow() for _ in range(100))
        assert limiter.allow() is False
