# transcript_guard/engine/patterns.py
"""
Pattern database for threat detection.

Loads scored regex patterns and the benign-phrase whitelist from a YAML file
at startup and caches the compiled result. Keeping the rules in data means a
rule change is a one-line edit plus a version bump, and the version bump is
what invalidates cached decisions.

Usage:
    from transcript_guard.engine.patterns import get_pattern_database

    db = get_pattern_database()
    for pattern in db.by_severity(Severity.CRITICAL):
        if pattern.regex.search(text):
            # matched!
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from transcript_guard.engine.errors import PatternConfigError
from transcript_guard.engine.models import Severity, ThreatCategory, ThreatPattern

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "data"
PATTERNS_FILE = DATA_DIR / "threat_patterns.yml"


class PatternDatabase:
    """
    Immutable pattern generation: the compiled patterns, the whitelist and
    the version string they were published under.
    """

    def __init__(
        self,
        patterns: Iterable[ThreatPattern],
        whitelist: Iterable[str],
        version: str,
    ):
        self._patterns: Tuple[ThreatPattern, ...] = tuple(patterns)
        self._whitelist: Tuple[str, ...] = tuple(p.lower() for p in whitelist)
        self._version = version

        names = [p.name for p in self._patterns]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise PatternConfigError(f"Duplicate pattern names: {', '.join(duplicates)}")

    @property
    def patterns(self) -> Tuple[ThreatPattern, ...]:
        return self._patterns

    @property
    def whitelist(self) -> Tuple[str, ...]:
        return self._whitelist

    @property
    def version(self) -> str:
        return self._version

    def by_severity(self, severity: Severity) -> List[ThreatPattern]:
        return [p for p in self._patterns if p.severity is severity]

    def by_category(self, category: ThreatCategory) -> List[ThreatPattern]:
        return [p for p in self._patterns if p.category is category]

    def get(self, name: str) -> Optional[ThreatPattern]:
        for p in self._patterns:
            if p.name == name:
                return p
        return None

    def contains_whitelisted_phrase(self, text: str) -> bool:
        """Case-insensitive substring check against the whitelist."""
        if not text:
            return False
        lowered = text.lower()
        return any(phrase in lowered for phrase in self._whitelist)

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        return f"PatternDatabase(version={self._version!r}, patterns={len(self._patterns)})"


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load the pattern file. A missing or unreadable file is a configuration error."""
    if not path.exists():
        raise PatternConfigError(f"Pattern file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise PatternConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise PatternConfigError(f"Pattern file {path} must contain a mapping")
    return data


def _compile_pattern(severity: Severity, entry: Dict[str, Any]) -> ThreatPattern:
    """
    Build one ThreatPattern from its YAML entry.

    Input format:
        - name: str
          category: str (ThreatCategory value)
          score: int (within the severity band)
          regex: str
          case_sensitive: bool (optional, default false)
          description: str
    """
    if not isinstance(entry, dict):
        raise PatternConfigError(f"Pattern entry under '{severity.value.lower()}' must be a mapping")

    missing = [k for k in ("name", "category", "score", "regex") if k not in entry]
    if missing:
        raise PatternConfigError(
            f"Pattern {entry.get('name', '<unnamed>')!r} missing keys: {', '.join(missing)}"
        )

    name = str(entry["name"])
    try:
        category = ThreatCategory(entry["category"])
    except ValueError as e:
        raise PatternConfigError(f"Pattern '{name}': unknown category {entry['category']!r}") from e

    flags = 0 if entry.get("case_sensitive") else re.IGNORECASE
    try:
        compiled = re.compile(entry["regex"], flags)
    except re.error as e:
        raise PatternConfigError(f"Pattern '{name}': invalid regex {entry['regex']!r} - {e}") from e

    return ThreatPattern(
        name=name,
        regex=compiled,
        score=int(entry["score"]),
        severity=severity,
        category=category,
        description=entry.get("description", ""),
    )


def load_pattern_database(path: Optional[Union[str, Path]] = None) -> PatternDatabase:
    """
    Parse and compile a pattern file into a PatternDatabase.
    Raises PatternConfigError on any inconsistency.
    """
    path = Path(path) if path is not None else PATTERNS_FILE
    config = _load_yaml(path)

    version = config.get("version")
    if not version:
        raise PatternConfigError(f"Pattern file {path} has no version")

    groups = config.get("patterns") or {}
    if not isinstance(groups, dict):
        raise PatternConfigError("'patterns' must map severity names to pattern lists")

    patterns: List[ThreatPattern] = []
    # Severity order, not file order, so CRITICAL hits always come first
    for severity in Severity:
        for entry in groups.get(severity.value.lower()) or []:
            patterns.append(_compile_pattern(severity, entry))

    unknown = set(groups) - {s.value.lower() for s in Severity}
    if unknown:
        raise PatternConfigError(f"Unknown severity groups: {', '.join(sorted(unknown))}")

    whitelist = config.get("whitelist") or []
    db = PatternDatabase(patterns, whitelist, str(version))
    logger.info("Loaded pattern generation %s (%d patterns, %d whitelisted phrases)",
                db.version, len(db), len(db.whitelist))
    return db


@lru_cache(maxsize=1)
def get_pattern_database() -> PatternDatabase:
    """Load and cache the bundled pattern database."""
    return load_pattern_database()


def reload_patterns() -> PatternDatabase:
    """Force a reload of the bundled patterns (hot-reload after a rule update)."""
    get_pattern_database.cache_clear()
    return get_pattern_database()
