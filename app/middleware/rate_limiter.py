"""
In-process fixed-window rate limiting.

Independent of the monthly quota: this only protects the service from
bursts. Keys are "user:<id>" for authenticated routes and "ip:<addr>"
for signup/login.
"""
import time
import logging
import threading
from typing import Dict, Any, Tuple, Callable
from fastapi import Depends, Request

from app.config import settings
from app.domain.errors import RateLimitError
from app.middleware.auth import get_current_user
from app.utils.geoip import get_peer_ip

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """At most `limit` hits per key in each `window_seconds` window."""

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        message: str,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = 1024
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.message = message
        self.clock = clock
        self.sweep_threshold = sweep_threshold
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> int:
        """
        Record one request for key.

        Returns:
            Requests left in the current window

        Raises:
            RateLimitError: limit already reached in this window
        """
        now = self.clock()
        with self._lock:
            if len(self._windows) >= self.sweep_threshold:
                self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            if count >= self.limit:
                logger.warning(f"[RateLimiter] {key} exceeded {self.limit}/{self.window_seconds}s")
                raise RateLimitError(self.message)
            self._windows[key] = (started, count + 1)
            return self.limit - count - 1

    def _sweep(self, now: float) -> None:
        """Drop windows that have already expired. Caller holds the lock."""
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    @property
    def tracked_keys(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


generate_limiter = FixedWindowRateLimiter(
    settings.GENERATE_RATE_LIMIT,
    settings.GENERATE_RATE_WINDOW_SECONDS,
    "Too many requests. Please try again later.",
)
auth_limiter = FixedWindowRateLimiter(
    settings.AUTH_RATE_LIMIT,
    settings.AUTH_RATE_WINDOW_SECONDS,
    "Too many auth attempts. Try again in 15 minutes.",
)


def limit_generation(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    generate_limiter.hit(f"user:{user['_id']}")
    return user


def limit_auth(request: Request) -> None:
    # Keyed on the socket peer; forwarded headers are only trusted via uvicorn proxy_headers
    auth_limiter.hit(f"ip:{get_peer_ip(request) or 'unknown'}")
