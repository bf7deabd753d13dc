"""
Time-boxed response cache shared by all workers.

Keys name a logical operation (``serp-<title>``, ``sk-<title>``).
Writes are last-write-wins; an entry older than the TTL is a miss.
"""

import time
from typing import Any, Callable, Optional

from content_hub.utils.logger import get_logger


logger = get_logger(__name__)


class TTLCache:
    """
    In-memory cache with a fixed time-to-live.

    Example:
        cache = TTLCache(ttl_seconds=3600)
        cache.set("sk-composting", ["compost bin", "brown material"])
        keywords = cache.get("sk-composting")
    """

    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or expired entry."""
        entry = self._entries.get(key)
        if entry is not None and self._clock() - entry[0] < self.ttl_seconds:
            logger.debug(f"[Cache] HIT for key: {key}")
            return entry[1]
        if entry is not None:
            del self._entries[key]
        logger.debug(f"[Cache] MISS for key: {key}")
        return None

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
