# transcript_guard/engine/events.py
"""
Event reporting boundary.

The persistent security log and alerting live outside this package. The
engine only hands an InjectionEvent to whatever EventSink the host injects.
LoggingEventSink is the default; BackgroundEventSink makes any sink
fire-and-forget so a slow log backend never delays analyze().
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, Protocol, Tuple

from transcript_guard.engine.models import Action

logger = logging.getLogger(__name__)
event_logger = logging.getLogger("transcript_guard.events")

PREVIEW_CHARS = 200


@dataclass(frozen=True)
class InjectionEvent:
    content_preview: str
    score: int
    action: Action
    requester: Optional[str] = None
    user_id: Optional[str] = None
    content_id: Optional[str] = None
    threat_names: Tuple[str, ...] = field(default_factory=tuple)


class EventSink(Protocol):
    def report(self, event: InjectionEvent) -> None:
        ...


class LoggingEventSink:
    """Writes one structured line per event. BLOCK is a warning, the rest info."""

    def __init__(self, log: logging.Logger = event_logger):
        self._log = log

    def report(self, event: InjectionEvent) -> None:
        level = logging.WARNING if event.action is Action.BLOCK else logging.INFO
        self._log.log(
            level,
            "[AI_INJECTION] action=%s score=%d requester=%s user=%s content=%s threats=%s preview=%r",
            event.action.value,
            event.score,
            event.requester or "unknown",
            event.user_id or "-",
            event.content_id or "-",
            list(event.threat_names),
            event.content_preview,
        )


class BackgroundEventSink:
    """Forwards events to `inner` on a worker thread; failures are logged, never raised."""

    def __init__(self, inner: EventSink, max_workers: int = 1):
        self._inner = inner
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="guard-events")

    def _deliver(self, event: InjectionEvent) -> None:
        try:
            self._inner.report(event)
        except Exception:
            logger.exception("Event sink failed to record injection event")

    def report(self, event: InjectionEvent) -> None:
        try:
            self._executor.submit(self._deliver, event)
        except RuntimeError:
            # Executor already shut down
            logger.warning("Dropped injection event after sink shutdown (score=%d)", event.score)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def build_event(
    content: str,
    score: int,
    action: Action,
    threat_names: Tuple[str, ...] = (),
    requester: Optional[str] = None,
    user_id: Optional[str] = None,
    content_id: Optional[str] = None,
) -> InjectionEvent:
    return InjectionEvent(
        content_preview=(content or "")[:PREVIEW_CHARS],
        score=score,
        action=action,
        requester=requester,
        user_id=user_id,
        content_id=content_id,
        threat_names=threat_names,
    )
