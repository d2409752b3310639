# recruitment_model/utils/cache.py
"""
Time-based memoization for estimator results.

A ``TTLCache`` holds a single ``(value, computed_at)`` entry per key. Estimators
receive an instance at construction so tests can build fresh caches and drive
expiry through an injected clock instead of sleeping.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Wall-clock time, used when no clock is injected."""
    return datetime.now()


@dataclass
class CacheEntry:
    value: Any
    computed_at: datetime


class TTLCache:
    """Single-writer memoization keyed by a fixed query, expiring after ``ttl``."""

    def __init__(self, ttl: timedelta, clock: Optional[Clock] = None):
        if ttl < timedelta(0):
            raise ValueError(f"Cache TTL must be non-negative, got {ttl}")
        self.ttl = ttl
        self.clock = clock or system_clock
        self._entries: Dict[Hashable, CacheEntry] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value for key, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        age = self.clock() - entry.computed_at
        if age >= self.ttl:
            logger.debug(f"Cache entry {key!r} expired after {age}")
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, computed_at=self.clock())

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """Return the cached value, calling compute() and storing the result on a miss."""
        value = self.get(key)
        if value is not None:
            logger.debug(f"Cache hit for {key!r}")
            return value
        value = compute()
        self.set(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or every entry when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["Clock", "system_clock", "CacheEntry", "TTLCache"]
