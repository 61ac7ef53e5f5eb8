"""
Per-user request throttling for write endpoints (investment submissions,
top-up requests, support tickets).

Counters live in Redis when it is reachable so every worker shares them; a
process-local sliding window takes over when it is not.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Deque, Dict, Optional, Tuple

import redis
from fastapi import HTTPException, status
from redis.exceptions import RedisError

from config import REDIS_URL

logger = logging.getLogger(__name__)

KEY_PREFIX = "crowdlend:ratelimit:"


@dataclass
class RateLimitResult:
    allowed: bool
    retry_after_seconds: int


@lru_cache(maxsize=1)
def _redis_client() -> redis.Redis:
    return redis.Redis.from_url(REDIS_URL, socket_connect_timeout=1, socket_timeout=1)


class RateLimiter:
    sweep_interval_seconds = 60.0

    def __init__(self):
        self._lock = Lock()
        # key -> (window_seconds, hit timestamps)
        self._windows: Dict[str, Tuple[int, Deque[float]]] = {}
        self._last_sweep = time.monotonic()

    def allow(self, *, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        if limit <= 0 or window_seconds <= 0:
            return RateLimitResult(allowed=True, retry_after_seconds=0)

        result = self._allow_redis(KEY_PREFIX + key, limit, window_seconds)
        if result is None:
            result = self._allow_memory(key, limit, window_seconds)
        return result

    def _allow_redis(self, key: str, limit: int, window_seconds: int) -> Optional[RateLimitResult]:
        """Fixed window counter; None when Redis cannot be reached."""
        try:
            client = _redis_client()
            pipe = client.pipeline()
            pipe.set(key, 0, ex=window_seconds, nx=True)
            pipe.incr(key)
            pipe.ttl(key)
            _, count, ttl = pipe.execute()
        except (RedisError, OSError) as exc:
            logger.debug("Redis unavailable for rate limiting, using memory: %s", exc)
            return None

        if int(count) <= limit:
            return RateLimitResult(allowed=True, retry_after_seconds=0)
        return RateLimitResult(allowed=False, retry_after_seconds=max(1, int(ttl) if ttl and ttl > 0 else window_seconds))

    def _allow_memory(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = time.monotonic()
        with self._lock:
            if now - self._last_sweep >= self.sweep_interval_seconds:
                self._sweep(now)

            _, window = self._windows.get(key, (window_seconds, deque()))
            _drain(window, now - window_seconds)
            if len(window) >= limit:
                self._windows[key] = (window_seconds, window)
                return RateLimitResult(
                    allowed=False,
                    retry_after_seconds=max(1, int(window[0] + window_seconds - now)),
                )
            window.append(now)
            self._windows[key] = (window_seconds, window)
            return RateLimitResult(allowed=True, retry_after_seconds=0)

    def _sweep(self, now: float):
        """Forget keys whose window has fully drained. Caller holds the lock."""
        for key in list(self._windows):
            window_seconds, window = self._windows[key]
            _drain(window, now - window_seconds)
            if not window:
                del self._windows[key]
        self._last_sweep = now

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self):
        with self._lock:
            self._windows.clear()
            self._last_sweep = time.monotonic()


def _drain(window: Deque[float], cutoff: float):
    while window and window[0] <= cutoff:
        window.popleft()


default_rate_limiter = RateLimiter()


def enforce_rate_limit(*, key: str, limit: int, window_seconds: int, detail: str):
    """Raise 429 when `key` has used up its budget for the window."""
    result = default_rate_limiter.allow(key=key, limit=limit, window_seconds=window_seconds)
    if not result.allowed:
        logger.warning("RATE_LIMITED | key=%s | retry_after=%s", key, result.retry_after_seconds)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={"Retry-After": str(result.retry_after_seconds)},
        )
