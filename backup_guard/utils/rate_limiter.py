"""
Sliding window rate limiter for expensive operations.

Security:
- Prevents resource exhaustion from repeated calls (CWE-770)
- Tracks accepted requests per subject (route, user, resource key)

Timestamps are pruned lazily on every access, there is no background timer.
State lives in memory only and is lost on restart.
"""

import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from .audit_logger import log_security_event

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def wall_clock_ms() -> float:
    """Current time in milliseconds since the epoch."""
    return time.time() * 1000


def _require_positive_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


class RateLimiter:
    """
    Sliding window rate limiter for a single subject.

    Admits at most ``max_requests`` calls within any rolling ``window_ms``
    period. Each instance owns one timestamp queue (oldest first) and one
    lock, so prune-then-decide is atomic across threads.

    Attributes:
        max_requests: Maximum accepted requests in the window
        window_ms: Window length in milliseconds

    Examples:
        >>> limiter = RateLimiter(max_requests=2, window_ms=60000)
        >>> limiter.can_make_request()
        True
        >>> limiter.can_make_request()
        True
        >>> limiter.can_make_request()
        False
        >>> limiter.get_remaining_requests()
        0
    """

    def __init__(self, max_requests: int = 10, window_ms: int = 60000, clock: Optional[Clock] = None) -> None:
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum requests in window (default: 10)
            window_ms: Time window in milliseconds (default: 60000)
            clock: Callable returning the current time in milliseconds

        Raises:
            ValueError: If max_requests or window_ms is not a positive integer
        """
        self._max_requests = _require_positive_int("max_requests", max_requests)
        self._window_ms = _require_positive_int("window_ms", window_ms)
        self._clock = clock or wall_clock_ms
        self._timestamps: Deque[float] = deque()
        self._lock = threading.Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def _prune(self, now: float) -> None:
        """Drop timestamps that fell out of the window. Caller holds the lock."""
        while self._timestamps and now - self._timestamps[0] >= self._window_ms:
            self._timestamps.popleft()

    def can_make_request(self) -> bool:
        """
        Check the limit and record the request if it is allowed.

        Returns:
            True if the request is accepted, False if the limit is reached
            (rejected requests are not recorded)
        """
        with self._lock:
            now = self._clock()
            self._prune(now)

            if len(self._timestamps) < self._max_requests:
                self._timestamps.append(now)
                return True

            wait_ms = self._reset_time(now)

        logger.warning(f"Rate limit: {self._max_requests} requests in {self._window_ms}ms reached "
                       f"(retry after {wait_ms}ms)")
        log_security_event(
            "rate_limit_exceeded",
            "warning",
            "Request rejected by rate limiter",
            max_requests=self._max_requests,
            window_ms=self._window_ms,
            retry_after_ms=wait_ms,
        )
        return False

    def get_remaining_requests(self) -> int:
        """Number of requests still allowed in the current window (never negative)."""
        with self._lock:
            self._prune(self._clock())
            return max(0, self._max_requests - len(self._timestamps))

    def _reset_time(self, now: float) -> int:
        if not self._timestamps:
            return 0
        remaining = self._window_ms - (now - self._timestamps[0])
        # Rounded up so a full window never reports 0
        return min(self._window_ms, max(0, math.ceil(remaining)))

    def get_reset_time(self) -> int:
        """
        Milliseconds until the oldest recorded request leaves the window.

        Returns:
            0 when nothing is recorded, otherwise a value in [0, window_ms]
        """
        with self._lock:
            now = self._clock()
            self._prune(now)
            return self._reset_time(now)

    def reset(self) -> None:
        """Reset rate limiter (clear all recorded requests)."""
        with self._lock:
            self._timestamps.clear()


class RateLimiterRegistry:
    """
    Per-subject rate limiters created on first use.

    Every key gets its own independently windowed ``RateLimiter``. Lookup and
    creation happen under one registry lock so two threads asking for a new
    key at the same time always share a single limiter. Evicting idle keys
    is left to the owner through ``discard``.
    """

    def __init__(self, max_requests: int = 10, window_ms: int = 60000, clock: Optional[Clock] = None) -> None:
        self.max_requests = _require_positive_int("max_requests", max_requests)
        self.window_ms = _require_positive_int("window_ms", window_ms)
        self._clock = clock
        self._limiters: Dict[str, RateLimiter] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> RateLimiter:
        """Return the limiter for ``key``, creating it atomically if needed."""
        with self._lock:
            limiter = self._limiters.get(key)
            if limiter is None:
                limiter = RateLimiter(self.max_requests, self.window_ms, clock=self._clock)
                self._limiters[key] = limiter
                logger.debug(f"Rate limiter created for key {key!r}")
            return limiter

    def can_make_request(self, key: str) -> bool:
        """Shortcut for ``get(key).can_make_request()``."""
        return self.get(key).can_make_request()

    def discard(self, key: str) -> bool:
        """
        Forget the limiter for ``key``.

        Returns:
            True if a limiter was removed
        """
        with self._lock:
            return self._limiters.pop(key, None) is not None

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._limiters

    def __len__(self) -> int:
        with self._lock:
            return len(self._limiters)


# Shared limiter for the exchange rate API (5 requests per minute)
exchange_rate_limiter = RateLimiter(max_requests=5, window_ms=60000)

_registry: Optional[RateLimiterRegistry] = None
_registry_lock = threading.Lock()


def get_rate_limiter_registry() -> RateLimiterRegistry:
    """Get singleton registry with default limits."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = RateLimiterRegistry()
        return _registry
