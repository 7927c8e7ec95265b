"""
Response caches used by the HTTP fetcher.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class ResponseCache(ABC):
    """Key/value cache with a per-entry time to live (seconds)."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired"""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float):
        pass

    @abstractmethod
    async def clear(self):
        pass


class MemoryCache(ResponseCache):
    """Process-local cache; expired entries are dropped on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._clock() < expires_at:
            return value

        del self._entries[key]
        return None

    async def set(self, key: str, value: Any, ttl: float):
        self._entries[key] = (value, self._clock() + ttl)

    async def clear(self):
        self._entries.clear()
        logger.info("Response cache cleared")

    def __len__(self) -> int:
        return len(self._entries)
