"""
In-memory response cache for live API data.

Entries expire after a fixed TTL (2 minutes by default) so tool responses
stay close to live without hitting the API on every call.
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple


class ResponseCache:
    """
    Keyed TTL cache.

    Expired entries are dropped lazily on read. Hit and set counters are kept
    for ``stats()``.
    """

    def __init__(self, ttl_seconds: float = 120, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._hits = 0
        self._sets = 0

    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Returns None if not cached or expired.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, stored_at = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None

        self._hits += 1
        return value

    def set(self, key: str, value: Any) -> None:
        """Cache a value."""
        self._entries[key] = (value, self._clock())
        self._sets += 1

    def clear(self) -> int:
        """
        Clear all entries.

        Returns:
            Number of entries cleared.
        """
        cleared = len(self._entries)
        self._entries.clear()
        return cleared

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": len(self._entries),
            "keys": list(self._entries),
            "hits": self._hits,
            "sets": self._sets,
        }
