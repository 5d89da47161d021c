"""
Shared fixtures. Every test builds its own analyzer and cache; nothing is
shared between tests except the (immutable) bundled pattern database.
"""

from datetime import datetime, timezone
from typing import List

import pytest

from transcript_guard.engine.models import (
    Action,
    DetectedThreat,
    ResultMetadata,
    SanitizationConfig,
    SanitizationResult,
    Severity,
    ThreatCategory,
)
from transcript_guard.engine.orchestrator import ThreatAnalyzer
from transcript_guard.engine.patterns import get_pattern_database

# A few hundred characters of ordinary market commentary with no pattern hits
LEGIT_TRANSCRIPT = (
    "Bitcoin closed the week above its 200-day moving average, and volume on the breakout "
    "was the strongest since March. I expect a retest of the prior range high before any "
    "continuation, so my target for the next quarter is a move toward the upper channel. "
)


class RecordingSink:
    """Event sink that keeps every event it is given."""

    def __init__(self):
        self.events: List = []

    def report(self, event) -> None:
        self.events.append(event)


class FailingSink:
    def report(self, event) -> None:
        raise RuntimeError("log backend down")


def make_threat(
    name: str = "ignore_previous_instructions",
    severity: Severity = Severity.CRITICAL,
    score: int = 100,
    position: int = 0,
    matched_text: str = "ignore previous instructions",
    decoded_from=None,
) -> DetectedThreat:
    return DetectedThreat(
        pattern_name=name,
        category=ThreatCategory.INSTRUCTION_OVERRIDE,
        severity=severity,
        score=score,
        matched_text=matched_text,
        position=position,
        context=matched_text,
        decoded_from=decoded_from,
    )


def make_result(content: str = "hello", action: Action = Action.ALLOW, score: int = 0,
                generation: str = "1.0.0") -> SanitizationResult:
    return SanitizationResult(
        action=action,
        score=score,
        threats=(),
        original_content=content,
        metadata=ResultMetadata(
            processed_at=datetime.now(timezone.utc),
            processing_duration_ms=0.5,
            content_length=len(content),
            threat_count=0,
            sections_removed=0,
            cache_hit=False,
            pattern_generation=generation,
        ),
    )


@pytest.fixture
def database():
    return get_pattern_database()


@pytest.fixture
def config():
    """Production defaults with the cache off."""
    return SanitizationConfig(cache_enabled=False)


@pytest.fixture
def analyzer(config, database):
    return ThreatAnalyzer(config=config, database=database)


@pytest.fixture
def cached_analyzer(database):
    return ThreatAnalyzer(config=SanitizationConfig(cache_enabled=True), database=database)


@pytest.fixture
def sink():
    return RecordingSink()
