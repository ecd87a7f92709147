"""In-memory sliding-window rate limiter keyed by client identifier."""

import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Mapping, Optional

from proposal_relay.core.config import get_settings
from proposal_relay.core.errors import RateLimitError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

# Table size above which check() drops idle identifiers
SWEEP_THRESHOLD = 1000


def client_identifier(headers: Mapping[str, str]) -> str:
    """
    Derive the rate-limit key for a request.

    Args:
        headers: Request headers (case-insensitive mapping)

    Returns:
        First X-Forwarded-For address, X-Real-IP, or "unknown"
    """
    forwarded = headers.get("x-forwarded-for") or ""
    first = forwarded.split(",")[0].strip()
    if first:
        return first

    real_ip = (headers.get("x-real-ip") or "").strip()
    return real_ip or UNKNOWN_CLIENT


class SlidingWindowRateLimiter:
    """
    Tracks admitted request times per identifier.

    State lives for the lifetime of the process and is never persisted.
    A single lock guards the whole table.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, hits: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def hit(self, identifier: str) -> bool:
        """Record a request for identifier; False if it is over the limit."""
        with self._lock:
            now = self._clock()
            hits = self._hits.setdefault(identifier, deque())
            self._prune(hits, now)

            if len(hits) >= self.max_requests:
                return False

            hits.append(now)
            return True

    def retry_after(self, identifier: str) -> int:
        """Seconds until identifier has room for another request."""
        with self._lock:
            hits = self._hits.get(identifier)
            if not hits:
                return 0
            now = self._clock()
            self._prune(hits, now)
            if len(hits) < self.max_requests:
                return 0
            return max(1, math.ceil(hits[0] + self.window_seconds - now))

    def check(self, identifier: str) -> None:
        """
        Admit a request or raise.

        Raises:
            RateLimitError: identifier exceeded max_requests in the window
        """
        if len(self) > SWEEP_THRESHOLD:
            self.sweep()

        if self.hit(identifier):
            return

        retry_after = self.retry_after(identifier)
        logger.warning(f"Rate limit exceeded for {identifier} (retry in {retry_after}s)")
        raise RateLimitError(
            "Too many requests. Please try again later.",
            retry_after=retry_after
        )

    def sweep(self) -> None:
        """Drop identifiers whose window has emptied."""
        with self._lock:
            now = self._clock()
            for identifier in list(self._hits):
                hits = self._hits[identifier]
                self._prune(hits, now)
                if not hits:
                    del self._hits[identifier]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def __len__(self) -> int:
        return len(self._hits)


_rate_limiter: Optional[SlidingWindowRateLimiter] = None


def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Process-wide limiter built from settings on first use."""
    global _rate_limiter
    if _rate_limiter is None:
        settings = get_settings()
        _rate_limiter = SlidingWindowRateLimiter(
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS
        )
    return _rate_limiter
