"""
In-memory fixed-window rate limiter.

Each key gets ``max_requests`` hits per window; the window starts at the
first hit. State is per process, so limits are per worker when the server
runs several.
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0


class FixedWindowRateLimiter:
    """Thread-safe fixed-window counter keyed by ``identifier:caller``."""

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 3600,
        identifier: str = "ai-scrape-website",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.identifier = identifier
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}
        self._last_prune = clock()

    def hit(self, caller_key: str) -> RateLimitDecision:
        """
        Count one request for ``caller_key``.

        Returns:
            RateLimitDecision; when not allowed, retry_after is the whole
            number of seconds until the window resets (at least 1)
        """
        key = f"{self.identifier}:{caller_key}"
        with self._lock:
            now = self._clock()
            self._prune(now)

            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return RateLimitDecision(allowed=True, remaining=self.max_requests - 1)

            window.count += 1
            if window.count > self.max_requests:
                retry_after = max(1, math.ceil(window.reset_at - now))
                logger.warning(
                    "Rate limit exceeded",
                    extra={"extra_fields": {"key": key, "retry_after": retry_after}},
                )
                return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)

            return RateLimitDecision(allowed=True, remaining=self.max_requests - window.count)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        # Caller holds the lock
        if now - self._last_prune < self.window_seconds:
            return
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        self._last_prune = now
