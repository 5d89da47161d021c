# transcript_guard/engine/orchestrator.py
"""
Main orchestrator for transcript screening.

Pipeline:
  1. Disabled? -> ALLOW with score 0 (fail-open)
  2. Cache lookup (hit -> statistics, report, return)
  3. Detect threats on the body and its decoded variants
  4. Composite score -> action
  5. SANITIZE: cut threats, then usability and escalation checks (may become BLOCK)
  6. Assemble result, update statistics, cache, report

The host constructs one ThreatAnalyzer per configuration and shares it
between request handlers; analyze() is synchronous and safe to call from
many threads.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

from transcript_guard.engine.cache import ResultCache
from transcript_guard.engine.config import load_config
from transcript_guard.engine.detector import detect_threats
from transcript_guard.engine.events import EventSink, build_event
from transcript_guard.engine.models import (
    Action,
    ContentInput,
    DetectedThreat,
    FieldScores,
    ResultMetadata,
    SanitizationConfig,
    SanitizationResult,
    SanitizerStats,
)
from transcript_guard.engine.patterns import PatternDatabase, get_pattern_database
from transcript_guard.engine.sanitize import is_sanitized_content_usable, sanitize_content
from transcript_guard.engine.scorer import (
    calculate_threat_score,
    calculate_weighted_score,
    determine_action,
    should_escalate_to_block,
    should_report,
)
from transcript_guard.engine.stats import SanitizerStatistics
from transcript_guard.engine.utils import Timer, log_decision

logger = logging.getLogger(__name__)


class ThreatAnalyzer:
    """Screens untrusted text before it reaches a language model."""

    def __init__(
        self,
        config: Optional[SanitizationConfig] = None,
        database: Optional[PatternDatabase] = None,
        cache: Optional[ResultCache] = None,
        event_sink: Optional[EventSink] = None,
    ):
        self.config = config if config is not None else load_config()
        self.database = database if database is not None else get_pattern_database()
        self.cache = cache if cache is not None else ResultCache(
            max_size=self.config.cache_max_size,
            ttl_seconds=self.config.cache_ttl,
        )
        self.event_sink = event_sink
        self._stats = SanitizerStatistics()

    @property
    def pattern_generation(self) -> str:
        return self.database.version

    def analyze(
        self,
        content: Union[ContentInput, str],
        requester: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> SanitizationResult:
        """
        Screen the primary body of a content record.
        Never raises on content; the only failure verdict is Action.BLOCK.
        """
        timer = Timer()
        record = content if isinstance(content, ContentInput) else ContentInput(body=content)
        body = record.body or ""

        if not self.config.enabled:
            result = self._build_result(body, Action.ALLOW, 0, [], None, 0, timer)
            self._stats.record(Action.ALLOW, 0, result.metadata.processing_duration_ms)
            return result

        # =====================================================================
        # Cache lookup
        # =====================================================================
        if self.config.cache_enabled:
            with timer.stage("cache_lookup"):
                cached = self.cache.get(body, self.pattern_generation)
            if cached is not None:
                self._stats.record_cache_hit()
                self._stats.record(cached.action, cached.score, timer.elapsed_ms())
                log_decision(logger, cached.action, cached.score, cached.threats, timer, cache_hit=True)
                if should_report(cached.score, cached.action, self.config, len(cached.threats)):
                    self._report(cached, record, requester, user_id)
                return cached
            self._stats.record_cache_miss()

        # =====================================================================
        # Detection + scoring
        # =====================================================================
        with timer.stage("detect"):
            threats = detect_threats(body, self.database)

        with timer.stage("score"):
            score = calculate_threat_score(threats, body, self.config, self.database)
            action = determine_action(score, self.config)

        # =====================================================================
        # Sanitization + escalation
        # =====================================================================
        sanitized: Optional[str] = None
        sections_removed = 0
        if action is Action.SANITIZE:
            with timer.stage("sanitize"):
                outcome = sanitize_content(body, threats)
            sanitized = outcome.sanitized
            sections_removed = outcome.sections_removed

            if not is_sanitized_content_usable(sanitized, body):
                action = Action.BLOCK
            elif should_escalate_to_block(len(body), len(sanitized), threats):
                action = Action.BLOCK

            if action is Action.BLOCK:
                sanitized = None

        result = self._build_result(body, action, score, threats, sanitized, sections_removed, timer)

        self._stats.record(action, score, result.metadata.processing_duration_ms)
        if self.config.cache_enabled:
            self.cache.set(body, result, self.pattern_generation)

        log_decision(logger, action, score, threats, timer)
        if should_report(score, action, self.config, len(threats)):
            self._report(result, record, requester, user_id)

        return result

    def analyze_fields(self, content: ContentInput) -> FieldScores:
        """
        Score body, title and description separately and combine them
        (0.7 / 0.2 / 0.1). Pure scoring: no sanitization, caching or statistics.
        """
        scores = {}
        for name in ("body", "title", "description"):
            text = getattr(content, name) or ""
            threats = detect_threats(text, self.database)
            scores[name] = calculate_threat_score(threats, text, self.config, self.database)
        return FieldScores(
            body=scores["body"],
            title=scores["title"],
            description=scores["description"],
            weighted=calculate_weighted_score(scores["body"], scores["title"], scores["description"]),
        )

    def get_stats(self) -> SanitizerStats:
        return self._stats.snapshot(self.pattern_generation)

    def reset_stats(self) -> None:
        self._stats.reset()

    def _build_result(
        self,
        body: str,
        action: Action,
        score: int,
        threats: Sequence[DetectedThreat],
        sanitized: Optional[str],
        sections_removed: int,
        timer: Timer,
    ) -> SanitizationResult:
        return SanitizationResult(
            action=action,
            score=score,
            threats=tuple(threats),
            original_content=body,
            sanitized_content=sanitized if action is Action.SANITIZE else None,
            metadata=ResultMetadata(
                processed_at=datetime.now(timezone.utc),
                processing_duration_ms=round(timer.elapsed_ms(), 3),
                content_length=len(body),
                threat_count=len(threats),
                sections_removed=sections_removed,
                cache_hit=False,
                pattern_generation=self.pattern_generation,
            ),
        )

    def _report(
        self,
        result: SanitizationResult,
        record: ContentInput,
        requester: Optional[str],
        user_id: Optional[str],
    ) -> None:
        if self.event_sink is None:
            return
        event = build_event(
            result.original_content,
            result.score,
            result.action,
            threat_names=tuple(t.pattern_name for t in result.threats),
            requester=requester or record.source_id,
            user_id=user_id,
            content_id=record.content_id,
        )
        try:
            self.event_sink.report(event)
        except Exception:
            logger.exception("Failed to report injection event")
