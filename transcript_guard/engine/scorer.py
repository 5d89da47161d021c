# transcript_guard/engine/scorer.py
"""
Threat scoring and action policy.

Composite score:
    sum(threat scores) + length penalty + repetition penalty - whitelist discount
floored at 0.

Actions: ALLOW, SANITIZE, BLOCK (thresholds come from SanitizationConfig).

The penalty caps and escalation limits below are heuristics; tune them
against real traffic rather than treating them as fixed.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence

from transcript_guard.engine.models import (
    Action,
    DetectedThreat,
    SanitizationConfig,
    Severity,
)
from transcript_guard.engine.patterns import PatternDatabase, get_pattern_database

# Length penalty: points per block of characters over max_input_length
LENGTH_PENALTY_BLOCK = 10_000
LENGTH_PENALTY_POINTS = 5
LENGTH_PENALTY_CAP = 25

# Repetition penalty: points per block of characters inside over-long runs
REPETITION_PENALTY_BLOCK = 100
REPETITION_PENALTY_POINTS = 5
REPETITION_PENALTY_CAP = 20

WHITELIST_DISCOUNT = 10
WHITELIST_DISCOUNT_CEILING = 100   # never discount a CRITICAL-level score

# SANITIZE -> BLOCK escalation
ESCALATE_REMOVAL_PERCENT = 50.0
ESCALATE_MIN_LENGTH = 100
ESCALATE_CRITICAL_COUNT = 2

# Multi-field weights
BODY_WEIGHT = 0.7
TITLE_WEIGHT = 0.2
DESCRIPTION_WEIGHT = 0.1

SEVERITY_BREAKPOINTS = (
    (100, Severity.CRITICAL),
    (75, Severity.HIGH),
    (50, Severity.MEDIUM),
    (25, Severity.LOW),
)


@lru_cache(maxsize=8)
def _run_pattern(max_repeated: int) -> re.Pattern:
    return re.compile(r'(.)\1{%d,}' % max_repeated)


def length_penalty(content: str, max_input_length: int) -> int:
    excess = len(content) - max_input_length
    if excess <= 0:
        return 0
    return min(LENGTH_PENALTY_CAP, (excess // LENGTH_PENALTY_BLOCK) * LENGTH_PENALTY_POINTS)


def repetition_penalty(content: str, max_repeated: int) -> int:
    """
    Penalty for single characters repeated more than `max_repeated` times.

    "aaaa...a" (hundreds) -> penalty
    "Normal text with some !!! marks" -> 0
    """
    total = sum(len(m.group()) for m in _run_pattern(max_repeated).finditer(content))
    if not total:
        return 0
    return min(REPETITION_PENALTY_CAP, (total // REPETITION_PENALTY_BLOCK) * REPETITION_PENALTY_POINTS)


def calculate_threat_score(
    threats: Iterable[DetectedThreat],
    content: str,
    config: SanitizationConfig,
    database: Optional[PatternDatabase] = None,
) -> int:
    """Composite threat score for one piece of content, >= 0."""
    content = content or ""
    score = sum(t.score for t in threats)
    score += length_penalty(content, config.max_input_length)
    score += repetition_penalty(content, config.max_repeated_chars)

    db = database if database is not None else get_pattern_database()
    if score < WHITELIST_DISCOUNT_CEILING and db.contains_whitelisted_phrase(content):
        score -= WHITELIST_DISCOUNT

    return max(0, score)


def determine_action(score: float, config: SanitizationConfig) -> Action:
    if not config.enabled:
        return Action.ALLOW
    if score >= config.block_threshold:
        return Action.BLOCK
    if score >= config.sanitize_threshold:
        return Action.SANITIZE
    return Action.ALLOW


def score_severity(score: float) -> Optional[Severity]:
    """Severity tier for a composite score, or None below the lowest breakpoint."""
    for floor, severity in SEVERITY_BREAKPOINTS:
        if score >= floor:
            return severity
    return None


def should_escalate_to_block(
    original_length: int,
    sanitized_length: int,
    threats: Sequence[DetectedThreat],
) -> bool:
    """
    Whether a SANITIZE verdict must become BLOCK.

    Escalates when:
    - half or more of the content would be removed
    - fewer than 100 characters would remain
    - two or more CRITICAL threats were detected
    """
    if original_length > 0:
        removed = (original_length - sanitized_length) / original_length * 100
        if removed >= ESCALATE_REMOVAL_PERCENT:
            return True

    if sanitized_length < ESCALATE_MIN_LENGTH:
        return True

    critical = sum(1 for t in threats if t.severity is Severity.CRITICAL)
    return critical >= ESCALATE_CRITICAL_COUNT


def should_report(
    score: int,
    action: Action,
    config: SanitizationConfig,
    threat_count: int = 0,
) -> bool:
    """Whether a decision is forwarded to the event sink."""
    if action is not Action.ALLOW or score > config.warn_threshold:
        return True
    return config.log_all_attempts and threat_count > 0


def calculate_average_score(scores: List[float]) -> float:
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def calculate_weighted_score(body_score: float, title_score: float, description_score: float) -> float:
    """Body 0.7, title 0.2, description 0.1."""
    return (
        body_score * BODY_WEIGHT
        + title_score * TITLE_WEIGHT
        + description_score * DESCRIPTION_WEIGHT
    )
