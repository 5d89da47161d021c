"""
Screening engine - prompt injection detection and mitigation for untrusted transcripts.
"""

from transcript_guard.engine.cache import ResultCache
from transcript_guard.engine.config import load_config
from transcript_guard.engine.detector import detect_threats
from transcript_guard.engine.events import BackgroundEventSink, InjectionEvent, LoggingEventSink
from transcript_guard.engine.models import (
    Action,
    ContentInput,
    DetectedThreat,
    SanitizationConfig,
    SanitizationResult,
    Severity,
    ThreatCategory,
)
from transcript_guard.engine.orchestrator import ThreatAnalyzer
from transcript_guard.engine.patterns import get_pattern_database, load_pattern_database
from transcript_guard.engine.sanitize import sanitize_content
from transcript_guard.engine.scorer import calculate_threat_score, determine_action

__all__ = [
    'ThreatAnalyzer',
    'ResultCache',
    'load_config',
    'detect_threats',
    'sanitize_content',
    'calculate_threat_score',
    'determine_action',
    'get_pattern_database',
    'load_pattern_database',
    'LoggingEventSink',
    'BackgroundEventSink',
    'InjectionEvent',
    'Action',
    'ContentInput',
    'DetectedThreat',
    'SanitizationConfig',
    'SanitizationResult',
    'Severity',
    'ThreatCategory',
]
