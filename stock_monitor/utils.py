"""Helper utilities.

This module centralises common helpers: creating a configured HTTP
session and the token-bucket rate limiter that gates polling.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import requests

from .config import USER_AGENT


logger = logging.getLogger(__name__)


def get_http_session(user_agent: Optional[str] = None) -> requests.Session:
    """Return a new HTTP session with sensible defaults.

    The session identifies itself with a fixed User-Agent that carries
    contact info and the polling rate.  Caller is responsible for
    closing the session or letting it be garbage collected.
    """
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": user_agent or USER_AGENT,
            "Accept": "application/json, text/javascript, */*; q=0.01",
        }
    )
    # Respect environment proxies if configured (requests does this by default)
    return session


class RateLimiter:
    """Token bucket with a capacity of one token.

    One token is refilled every `interval` seconds.  `acquire()` blocks
    until a token is available and consumes it, so callers run at most
    once per interval.  The first call is admitted immediately.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = float(interval)
        self._clock = clock
        self._sleep = sleep
        self._tokens = 1.0
        self._updated = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(1.0, self._tokens + elapsed / self.interval)
        self._updated = now

    def acquire(self) -> None:
        self._refill()
        while self._tokens < 1.0:
            wait = (1.0 - self._tokens) * self.interval
            logger.debug("Rate limiter: waiting %.2fs for next token", wait)
            self._sleep(wait)
            self._refill()
        self._tokens -= 1.0


__all__ = ["get_http_session", "RateLimiter"]
