"""
NoteKeeper Client: Query Cache
===============================

What:  In-memory cache for read results, keyed by query key tuples such as
       ("notes",) or ("note", 42).
How:   Two timers per entry:

       stale_time  How long a fetched value counts as fresh. get() only
                   returns fresh values; a stale one forces a refetch.
       gc_time     How long an entry may go unused before it is evicted.
                   Every cache access sweeps expired entries.

       invalidate() marks an entry stale without dropping it, so peek()
       can still show the last known value while a refetch runs.

The clock is injectable (defaults to time.monotonic) so tests can move
time forward without sleeping.
"""

import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_STALE_TIME = 5 * 60   # seconds
DEFAULT_GC_TIME = 10 * 60     # seconds

QueryKey = Tuple[Hashable, ...]


class CacheEntry:
    """A cached value plus the bookkeeping for both timers."""

    __slots__ = ("data", "fetched_at", "last_used", "invalidated")

    def __init__(self, data: Any, now: float):
        self.data = data
        self.fetched_at = now
        self.last_used = now
        self.invalidated = False


class QueryCache:
    """
    Freshness-aware cache for client reads.

    Args:
        stale_time: Seconds a value stays fresh after it was stored.
        gc_time:    Seconds of disuse after which an entry is evicted.
        clock:      Zero-argument callable returning seconds.
    """

    def __init__(
        self,
        stale_time: float = DEFAULT_STALE_TIME,
        gc_time: float = DEFAULT_GC_TIME,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = stale_time
        self.gc_time = gc_time
        self._clock = clock
        self._entries: Dict[QueryKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        self.collect_garbage()
        return key in self._entries

    def is_fresh(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.invalidated:
            return False
        return self._clock() - entry.fetched_at < self.stale_time

    def get(self, key: QueryKey) -> Optional[Any]:
        """Return the cached value if it is fresh, else None."""
        self.collect_garbage()
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.last_used = self._clock()
        if not self.is_fresh(key):
            return None
        return entry.data

    def peek(self, key: QueryKey) -> Optional[Any]:
        """Return the cached value regardless of freshness."""
        self.collect_garbage()
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.last_used = self._clock()
        return entry.data

    def set(self, key: QueryKey, data: Any) -> None:
        self.collect_garbage()
        self._entries[key] = CacheEntry(data, self._clock())

    def invalidate(self, key: QueryKey) -> None:
        """Mark an entry stale; the next get() misses and forces a refetch."""
        entry = self._entries.get(key)
        if entry is not None:
            entry.invalidated = True
            logger.debug("Invalidated cache entry %s", key)

    def remove(self, key: QueryKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def collect_garbage(self) -> int:
        """Evict entries unused for longer than gc_time. Returns how many."""
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if now - entry.last_used >= self.gc_time
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d unused cache entries", len(expired))
        return len(expired)
