# transcript_guard/engine/stats.py
"""
Running statistics for the screening engine.

Sums and counts are stored; averages are computed on read so concurrent
updates never race on an in-place running mean.
"""

from __future__ import annotations

import threading

from transcript_guard.engine.models import Action, SanitizerStats


class SanitizerStatistics:
    """Process-wide counters, mutated on every call, reset only on request."""

    def __init__(self):
        self._lock = threading.Lock()
        self._reset_unlocked()

    def _reset_unlocked(self) -> None:
        self._counts = {action: 0 for action in Action}
        self._score_sum = 0.0
        self._duration_sum_ms = 0.0
        self._cache_hits = 0
        self._cache_misses = 0

    def record(self, action: Action, score: float, duration_ms: float) -> None:
        with self._lock:
            self._counts[action] += 1
            self._score_sum += score
            self._duration_sum_ms += duration_ms

    def record_cache_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_cache_miss(self) -> None:
        with self._lock:
            self._cache_misses += 1

    def reset(self) -> None:
        with self._lock:
            self._reset_unlocked()

    def snapshot(self, pattern_generation: str) -> SanitizerStats:
        with self._lock:
            total = sum(self._counts.values())
            lookups = self._cache_hits + self._cache_misses
            return SanitizerStats(
                total_requests=total,
                allowed_requests=self._counts[Action.ALLOW],
                sanitized_requests=self._counts[Action.SANITIZE],
                blocked_requests=self._counts[Action.BLOCK],
                average_score=self._score_sum / total if total else 0.0,
                average_processing_ms=self._duration_sum_ms / total if total else 0.0,
                cache_hits=self._cache_hits,
                cache_misses=self._cache_misses,
                cache_hit_rate=self._cache_hits / lookups if lookups else 0.0,
                pattern_generation=pattern_generation,
            )
