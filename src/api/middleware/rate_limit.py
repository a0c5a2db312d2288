"""Fixed-window rate limiting for the JSON API.

Counters live in process memory and reset on restart. All bookkeeping
happens synchronously between awaits, so the event loop needs no lock.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from litestar.datastructures import MutableScopeHeaders
from litestar.enums import ScopeType
from litestar.middleware import MiddlewareProtocol
from litestar.types import ASGIApp, Message, Receive, Scope, Send

from src.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@dataclass
class Window:
    """Request count for one key in the current window."""

    started_at: float
    count: int = 0


class FixedWindowLimiter:
    """Counts hits per key in fixed windows of ``window_seconds``."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize limiter.

        Args:
            max_requests: Hits allowed per key per window.
            window_seconds: Window length.
            clock: Time source in seconds.
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, Window] = {}

    def hit(self, key: str) -> tuple[bool, int, float]:
        """Record a request for ``key``.

        Args:
            key: Client identifier.

        Returns:
            Tuple of (allowed, remaining hits, seconds until the window resets).
        """
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            self._evict_expired(now)
            window = self._windows[key] = Window(started_at=now)

        window.count += 1
        reset_in = window.started_at + self.window_seconds - now
        remaining = max(0, self.max_requests - window.count)
        return window.count <= self.max_requests, remaining, reset_in

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]


class RateLimitMiddleware(MiddlewareProtocol):
    """Rejects API requests beyond the per-address limit with 429.

    Allowed responses carry ``X-RateLimit-*`` headers; rejections also
    carry ``Retry-After``.
    """

    def __init__(self, app: ASGIApp, limiter: FixedWindowLimiter) -> None:
        self.app = app
        self._limiter = limiter

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != ScopeType.HTTP or not scope["path"].startswith(API_PREFIX):
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        key = client[0] if client else "unknown"
        allowed, remaining, reset_in = self._limiter.hit(key)
        headers = {
            "X-RateLimit-Limit": str(self._limiter.max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(int(reset_in)),
        }

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key} on {scope['path']}")
            raise RateLimitExceededError(headers={**headers, "Retry-After": str(int(reset_in))})

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                response_headers = MutableScopeHeaders(message)
                for name, value in headers.items():
                    response_headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)
