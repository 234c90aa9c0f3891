"""
Response Cache

Small time-to-live cache keyed by query signature. Entries are invalidated
purely by age; nothing is evicted in the background.
"""

import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


def is_fresh(fetched_at: float, now: float, ttl: float) -> bool:
    """True while an entry fetched at `fetched_at` is younger than `ttl`"""
    return now - fetched_at < ttl


class TTLCache:
    """
    Map of key -> (value, fetched_at).

    Example usage:
        cache = TTLCache(ttl=30.0)
        cache.set(("history", "1m"), history)
        cache.get(("history", "1m"))  # history, until 30s have passed
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if missing or expired"""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, fetched_at = entry
        if not is_fresh(fetched_at, self._clock(), self.ttl):
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def __len__(self) -> int:
        return len(self._entries)
