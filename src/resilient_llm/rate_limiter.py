"""Fixed-window request rate limiter."""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable, Deque, Optional

from resilient_llm.exceptions import RateLimitExceededError
from resilient_llm.models import RateLimitConfig

logger = logging.getLogger(__name__)


class RateLimiter:
    """Rolling-window request counter.

    Keeps the instants of admitted requests in arrival order. Each check drops
    instants older than the window before comparing the count against the
    quota. Callers only get a boolean back; there is no queueing.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            config: Rate limit configuration (uses defaults if not provided)
            clock: Source of the current instant in seconds
        """
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._window: Deque[float] = deque()

    def allow(self) -> bool:
        """Admit one request if the window has capacity.

        Returns:
            True if the request was recorded, False if the quota is used up
        """
        now = self._clock()
        self._prune(now)

        if len(self._window) >= self.config.max_requests:
            logger.warning(
                f"Rate limit exceeded: {len(self._window)}/{self.config.max_requests} "
                f"requests in {self.config.window_seconds}s"
            )
            return False

        self._window.append(now)
        return True

    def acquire(self) -> None:
        """Admit one request or raise.

        Raises:
            RateLimitExceededError: If the quota for the window is used up
        """
        if not self.allow():
            raise RateLimitExceededError("Rate limit exceeded")

    @property
    def remaining(self) -> int:
        """Requests still admissible in the current window."""
        self._prune(self._clock())
        return self.config.max_requests - len(self._window)

    def reset(self) -> None:
        """Forget every recorded request."""
        self._window.clear()

    def _prune(self, now: float) -> None:
        while self._window and now - self._window[0] >= self.config.window_seconds:
            self._window.popleft()
