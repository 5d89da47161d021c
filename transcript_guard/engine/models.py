# transcript_guard/engine/models.py
"""
Core data types for transcript screening.

Patterns, threats and results are frozen dataclasses: a result handed to a
caller and the copy retained by the cache can never drift apart.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from transcript_guard.engine.errors import ConfigError, PatternConfigError


class Severity(str, Enum):
    """Severity tier. Each tier owns the band of scores its patterns may carry."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def score_range(self) -> Tuple[int, int]:
        return _SCORE_BANDS[self]

    def accepts(self, score: int) -> bool:
        low, high = self.score_range
        return low <= score <= high


_SCORE_BANDS: Dict[Severity, Tuple[int, int]] = {
    Severity.CRITICAL: (100, 100),
    Severity.HIGH: (50, 75),
    Severity.MEDIUM: (25, 40),
    Severity.LOW: (10, 20),
}


class ThreatCategory(str, Enum):
    INSTRUCTION_OVERRIDE = "instruction_override"
    JAILBREAK = "jailbreak"
    DATA_EXFILTRATION = "data_exfiltration"
    OUTPUT_MANIPULATION = "output_manipulation"
    PREDICTION_BIAS = "prediction_bias"
    RESOURCE_EXHAUSTION = "resource_exhaustion"


class Action(str, Enum):
    ALLOW = "ALLOW"
    SANITIZE = "SANITIZE"
    BLOCK = "BLOCK"


@dataclass(frozen=True)
class ThreatPattern:
    """A named, scored detection rule."""

    name: str
    regex: re.Pattern
    score: int
    severity: Severity
    category: ThreatCategory
    description: str = ""

    def __post_init__(self) -> None:
        if not self.severity.accepts(self.score):
            low, high = self.severity.score_range
            raise PatternConfigError(
                f"Pattern '{self.name}': score {self.score} outside "
                f"{self.severity.value} band {low}-{high}"
            )


@dataclass(frozen=True)
class DetectedThreat:
    """One pattern match. `decoded_from` names the decoder whose output matched."""

    pattern_name: str
    category: ThreatCategory
    severity: Severity
    score: int
    matched_text: str
    position: int
    context: str
    decoded_from: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        data["severity"] = self.severity.value
        return data


@dataclass
class SanitizationConfig:
    enabled: bool = True
    block_threshold: int = 75
    sanitize_threshold: int = 50
    warn_threshold: int = 25
    max_input_length: int = 100_000
    max_repeated_chars: int = 50
    cache_enabled: bool = True
    cache_ttl: float = 24 * 60 * 60   # seconds
    cache_max_size: int = 1000
    log_all_attempts: bool = False

    def __post_init__(self) -> None:
        if not (self.block_threshold >= self.sanitize_threshold >= self.warn_threshold >= 0):
            raise ConfigError(
                "Thresholds must satisfy block >= sanitize >= warn >= 0, got "
                f"block={self.block_threshold} sanitize={self.sanitize_threshold} "
                f"warn={self.warn_threshold}"
            )
        if self.max_input_length <= 0:
            raise ConfigError(f"max_input_length must be positive, got {self.max_input_length}")
        if self.max_repeated_chars <= 0:
            raise ConfigError(f"max_repeated_chars must be positive, got {self.max_repeated_chars}")
        if self.cache_ttl < 0 or self.cache_max_size <= 0:
            raise ConfigError("cache_ttl must be >= 0 and cache_max_size > 0")


@dataclass(frozen=True)
class ResultMetadata:
    processed_at: datetime
    processing_duration_ms: float
    content_length: int
    threat_count: int
    sections_removed: int
    cache_hit: bool
    pattern_generation: str


@dataclass(frozen=True)
class SanitizationResult:
    """Verdict for one piece of content. `sanitized_content` is set only for SANITIZE."""

    action: Action
    score: int
    threats: Tuple[DetectedThreat, ...]
    original_content: str
    metadata: ResultMetadata
    sanitized_content: Optional[str] = None

    @property
    def is_blocked(self) -> bool:
        return self.action is Action.BLOCK

    @property
    def content_for_model(self) -> Optional[str]:
        """What the downstream call should receive, or None if it must abort."""
        if self.action is Action.BLOCK:
            return None
        if self.action is Action.SANITIZE:
            return self.sanitized_content
        return self.original_content

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "score": self.score,
            "threats": [t.to_dict() for t in self.threats],
            "original_content": self.original_content,
            "sanitized_content": self.sanitized_content,
            "metadata": asdict(self.metadata),
        }


@dataclass(frozen=True)
class CacheEntry:
    result: SanitizationResult
    stored_at: float
    pattern_generation: str


@dataclass
class ContentInput:
    """A content record from the ingestion pipeline. Only `body` is screened by default."""

    body: str
    title: Optional[str] = None
    description: Optional[str] = None
    content_id: Optional[str] = None
    source_id: Optional[str] = None


@dataclass(frozen=True)
class SanitizerStats:
    total_requests: int
    allowed_requests: int
    sanitized_requests: int
    blocked_requests: int
    average_score: float
    average_processing_ms: float
    cache_hits: int
    cache_misses: int
    cache_hit_rate: float
    pattern_generation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FieldScores:
    """Per-field scores and their weighted combination."""

    body: int
    title: int
    description: int
    weighted: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
