# transcript_guard/engine/utils.py
"""
Timing and log helpers for the screening engine.
"""

import logging
import time
from typing import Dict, Iterable

from transcript_guard.engine.models import Action, DetectedThreat


class Timer:
    """Wall-clock timer with optional named stages, all in milliseconds."""

    def __init__(self):
        self._start = time.perf_counter()
        self._stages: Dict[str, float] = {}

    def stage(self, name: str):
        """Context manager timing a named stage."""
        return _Stage(self, name)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000

    def stages(self) -> Dict[str, float]:
        return dict(self._stages)


class _Stage:
    def __init__(self, timer: Timer, name: str):
        self._timer = timer
        self._name = name
        self._start = 0.0

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_):
        self._timer._stages[self._name] = round((time.perf_counter() - self._start) * 1000, 3)


def log_decision(
    log: logging.Logger,
    action: Action,
    score: int,
    threats: Iterable[DetectedThreat],
    timer: Timer,
    cache_hit: bool = False,
) -> None:
    """One structured line per decision; ALLOW only at debug level."""
    level = logging.DEBUG if action is Action.ALLOW else logging.INFO
    if not log.isEnabledFor(level):
        return
    names = sorted({t.pattern_name for t in threats})
    log.log(
        level,
        "[GUARD] action=%s score=%d threats=%s cache_hit=%s stages=%s total_ms=%.3f",
        action.value, score, names, cache_hit, timer.stages(), timer.elapsed_ms(),
    )
