"""
Per-service sliding window request throttle.
"""

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, Mapping, Optional
import logging

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class RateLimiter:
    """
    Cap requests per service within any trailing 60 second interval.

    The check-and-record step of ``acquire`` contains no await, so on a single
    event loop two concurrent callers for the same service cannot both slip
    under the limit.
    """

    def __init__(
        self,
        limits: Optional[Mapping[str, int]] = None,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.limits: Dict[str, int] = dict(limits or {})
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._windows: Dict[str, Deque[float]] = {}

    async def acquire(self, source_id: str):
        """Return once a request to ``source_id`` is allowed, recording it."""
        limit = self.limits.get(source_id)
        if not limit:
            return

        window = self._windows.setdefault(source_id, deque())

        while True:
            now = self._clock()

            while window and now - window[0] >= self.window_seconds:
                window.popleft()

            if len(window) < limit:
                window.append(now)
                return

            wait = self.window_seconds - (now - window[0])
            logger.warning(f"Rate limit reached for {source_id}, waiting {wait:.2f}s")
            await self._sleep(wait)

    def pending(self, source_id: str) -> int:
        """Number of requests currently counted against ``source_id``."""
        return len(self._windows.get(source_id, ()))
