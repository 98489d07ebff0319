"""Time-bounded memoization of optimization results."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from ...config import settings
from ...errors import CacheMiss
from ...models.domain import CacheEntry, OptimizationResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Thread-safe TTL cache keyed by GeoCacheKey strings.

    Stale entries are not removed on read. They are replaced by the next
    ``put`` for the same key, dropped by ``sweep`` or evicted when the cache
    is full.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self.max_entries = max_entries if max_entries is not None else settings.cache_max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at < self.ttl_seconds

    def lookup(self, key: str) -> OptimizationResult:
        """Return the fresh result for ``key`` or raise CacheMiss."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, self._clock()):
            raise CacheMiss(key)
        return entry.result

    def get(self, key: str) -> Optional[OptimizationResult]:
        try:
            return self.lookup(key)
        except CacheMiss:
            return None

    def put(self, key: str, result: OptimizationResult) -> None:
        now = self._clock()
        entry = CacheEntry(key=key, result=result, stored_at=now)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict_locked(now)
            self._entries[key] = entry

    def _evict_locked(self, now: float) -> None:
        removed = self._sweep_locked(now)
        if len(self._entries) >= self.max_entries:
            oldest = min(self._entries.values(), key=lambda item: item.stored_at)
            del self._entries[oldest.key]
            removed += 1
        logger.debug(f"Evicted {removed} cache entries (limit {self.max_entries})")

    def _sweep_locked(self, now: float) -> int:
        stale = [key for key, entry in self._entries.items() if not self._is_fresh(entry, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def sweep(self) -> int:
        """Remove every stale entry and return how many were dropped."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
