# core/quote_cache.py
"""
core/quote_cache.py
------------------------------------------------------------
In-memory quote cache: instrument key -> (payload, fetched_at).

Semantics
- put() overwrites unconditionally and stamps the current clock reading.
- Entries never self-expire. Freshness is judged lazily by the reader via
  is_fresh(entry, ttl); stale entries stay readable for the fallback tier.
- Backing store is a cachetools.LRUCache sized well above the instrument
  universe, so in practice nothing is evicted; the bound only caps memory if
  callers start feeding it unbounded keys.
- A single put/get is atomic w.r.t. other readers (one lock, entry objects are
  immutable). Read-then-write sequences are NOT atomic: concurrent misses on
  the same key may each call upstream.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from cachetools import LRUCache

logger = logging.getLogger("core.quote_cache")

T = TypeVar("T")

DEFAULT_TTL_SEC = 120.0
DEFAULT_MAX_SIZE = 1024


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    fetched_at: float


class QuoteCache(Generic[T]):
    """Per-key payload store with lazy staleness checks."""

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SEC,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = float(ttl_seconds)
        self.max_size = int(max_size)
        self._clock = clock
        self._data: LRUCache = LRUCache(maxsize=self.max_size)
        self._lock = threading.Lock()
        self.metrics: Dict[str, int] = {"hits": 0, "stale_hits": 0, "misses": 0, "updates": 0}

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry[T]]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, payload: T) -> CacheEntry[T]:
        entry = CacheEntry(payload=payload, fetched_at=self._clock())
        with self._lock:
            self._data[key] = entry
            self.metrics["updates"] += 1
        return entry

    def is_fresh(self, entry: Optional[CacheEntry[T]], ttl: Optional[float] = None) -> bool:
        if entry is None:
            return False
        limit = self.ttl if ttl is None else float(ttl)
        return (self._clock() - entry.fetched_at) < limit

    def record(self, outcome: str) -> None:
        with self._lock:
            self.metrics[outcome] = self.metrics.get(outcome, 0) + 1

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            entries = list(self._data.values())
            metrics = dict(self.metrics)
        now = self._clock()
        fresh = sum(1 for e in entries if (now - e.fetched_at) < self.ttl)
        total = metrics["hits"] + metrics["stale_hits"] + metrics["misses"]
        hit_rate = (metrics["hits"] / total * 100) if total > 0 else 0
        return {
            "total_items": len(entries),
            "fresh_items": fresh,
            "stale_items": len(entries) - fresh,
            "max_size": self.max_size,
            "ttl_seconds": self.ttl,
            "performance": {**metrics, "hit_rate": round(hit_rate, 2)},
        }


__all__ = ["CacheEntry", "QuoteCache", "DEFAULT_TTL_SEC", "DEFAULT_MAX_SIZE"]
