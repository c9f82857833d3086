"""
Create-endpoint Rate Limiter — per-client sliding window.

Buckets (defaults, see Settings):
  comments.create:  10 requests / 600 s per client IP
  feedback.create:  20 requests / 600 s per client IP

Implementation: in-memory sliding window per (bucket, client). Client
windows live in a TTLCache so idle clients age out; state resets on restart.
"""
from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable, Optional

from cachetools import TTLCache
from fastapi import Request

from app.core.errors import RateLimited

logger = logging.getLogger(__name__)

MAX_TRACKED_CLIENTS = 10_000


class _SlidingWindow:
    """Thread-safe sliding-window counter for a single client."""

    __slots__ = ("_timestamps", "_lock")

    def __init__(self):
        self._timestamps: list[float] = []
        self._lock = Lock()

    def try_acquire(self, limit: int, window_s: float, now: float) -> bool:
        """Prune, then record the event if under ``limit``."""
        cutoff = now - window_s
        with self._lock:
            self._timestamps = [t for t in self._timestamps if t > cutoff]
            if len(self._timestamps) >= limit:
                return False
            self._timestamps.append(now)
            return True

    def retry_after(self, window_s: float, now: float) -> float:
        with self._lock:
            if not self._timestamps:
                return 0.0
            return max(0.0, self._timestamps[0] + window_s - now)


class RateLimiter:
    """Fixed budget of ``limit`` requests per ``window_s`` for each client key."""

    def __init__(
        self,
        bucket: str,
        limit: int,
        window_s: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.bucket = bucket
        self.limit = limit
        self.window_s = window_s
        self._clock = clock
        self._windows: TTLCache = TTLCache(
            maxsize=MAX_TRACKED_CLIENTS, ttl=window_s, timer=clock,
        )
        self._lock = Lock()

    def _window_for(self, client_key: str) -> _SlidingWindow:
        with self._lock:
            window = self._windows.get(client_key)
            if window is None:
                window = _SlidingWindow()
            # Re-insert to refresh the entry's TTL on every hit
            self._windows[client_key] = window
            return window

    def hit(self, client_key: str) -> None:
        """Count one request for ``client_key``; raise RateLimited when over budget."""
        now = self._clock()
        window = self._window_for(client_key)
        if window.try_acquire(self.limit, self.window_s, now):
            return

        retry_after = window.retry_after(self.window_s, now)
        logger.warning(
            "Rate limit exceeded: bucket=%s client=%s limit=%d window_s=%s",
            self.bucket, client_key, self.limit, self.window_s,
        )
        raise RateLimited(
            detail=f"{self.bucket}: more than {self.limit} requests in {self.window_s}s",
            context={"bucket": self.bucket, "retry_after_s": round(retry_after, 1)},
        )

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def client_key(request: Request) -> str:
    """Client identity for limiting: first X-Forwarded-For hop, else peer address."""
    forwarded: Optional[str] = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(name: str):
    """FastAPI dependency: apply the limiter registered as ``name`` on app.state."""

    async def _dependency(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiters[name]
        limiter.hit(client_key(request))

    return _dependency
