"""
Exceptions raised by the screening engine.

These only surface at load / construction time. `ThreatAnalyzer.analyze()`
never raises on content; a bad verdict is expressed as Action.BLOCK.
"""


class TranscriptGuardError(Exception):
    """Base class for all engine errors."""


class PatternConfigError(TranscriptGuardError):
    """The threat pattern file is missing, malformed or inconsistent."""


class ConfigError(TranscriptGuardError):
    """SanitizationConfig values are invalid or could not be parsed."""
