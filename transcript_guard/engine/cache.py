# transcript_guard/engine/cache.py
"""
In-memory result cache for repeated content.

Features:
- Keyed by SHA-256 of the exact input (byte-for-byte, not semantic)
- TTL expiry and pattern-generation pinning (a rule update invalidates everything)
- Bounded size, oldest-inserted entry evicted first
- Thread-safe with a simple lock

Usage:
    cache = ResultCache(max_size=1000, ttl_seconds=86400)
    cache.set(text, result, generation="1.0.0")
    hit = cache.get(text, generation="1.0.0")   # copy with metadata.cache_hit=True
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from transcript_guard.engine.models import CacheEntry, SanitizationResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL_SECONDS = 24 * 60 * 60
CLEANUP_INTERVAL = 300           # sweep expired entries at most every 5 min (on access)


def cache_key(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8", errors="surrogatepass")).hexdigest()


class ResultCache:
    """
    Thread-safe memo of full screening decisions.
    Entries are immutable once written.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._last_cleanup = clock()

    def _is_stale(self, entry: CacheEntry, generation: str, now: float) -> bool:
        return now - entry.stored_at > self.ttl_seconds or entry.pattern_generation != generation

    def _sweep(self, generation: str, now: float) -> int:
        stale = [k for k, e in self._store.items() if self._is_stale(e, generation, now)]
        for key in stale:
            del self._store[key]
        return len(stale)

    def get(self, content: str, generation: str) -> Optional[SanitizationResult]:
        """Cached result for content under this pattern generation, or None."""
        key = cache_key(content)
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._is_stale(entry, generation, now):
                del self._store[key]
                self._misses += 1
                return None
            self._hits += 1

        return replace(entry.result, metadata=replace(entry.result.metadata, cache_hit=True))

    def set(self, content: str, result: SanitizationResult, generation: str) -> None:
        """Store a result. Failures are logged and dropped; a lost entry is just a future miss."""
        try:
            key = cache_key(content)
            now = self._clock()
            entry = CacheEntry(result=result, stored_at=now, pattern_generation=generation)
            with self._lock:
                if now - self._last_cleanup >= CLEANUP_INTERVAL:
                    self._last_cleanup = now
                    removed = self._sweep(generation, now)
                    if removed:
                        logger.debug("Swept %d stale cache entries", removed)

                if key in self._store:
                    del self._store[key]
                while len(self._store) >= self.max_size:
                    self._store.popitem(last=False)
                    self._evictions += 1
                self._store[key] = entry
        except Exception:
            logger.exception("Failed to store screening result in cache")

    def cleanup_expired(self, generation: str) -> int:
        """Remove expired and stale-generation entries. Returns the number removed."""
        with self._lock:
            return self._sweep(generation, self._clock())

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._store),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": round(self._hits / total, 4) if total else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, content: str) -> bool:
        with self._lock:
            return cache_key(content) in self._store
