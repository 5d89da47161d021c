# transcript_guard/engine/detector.py
"""
Threat detection over raw content and its decoded variants.

Every pattern is run as a global scan (all matches, not just the first), so
repeated injections each contribute to the score and each get removed by the
sanitizer. If the whole input decodes as Base64 or URL-encoding, the decoded
text is scanned too and its hits are appended, tagged with the decoder name.
"""

from __future__ import annotations

from typing import List, Optional

from transcript_guard.engine.decoders import decoded_variants, extract_context
from transcript_guard.engine.models import DetectedThreat
from transcript_guard.engine.patterns import PatternDatabase, get_pattern_database


def scan_text(
    text: str,
    database: PatternDatabase,
    decoded_from: Optional[str] = None,
) -> List[DetectedThreat]:
    """Run every pattern over `text`, in database order."""
    threats: List[DetectedThreat] = []
    for pattern in database.patterns:
        for match in pattern.regex.finditer(text):
            threats.append(DetectedThreat(
                pattern_name=pattern.name,
                category=pattern.category,
                severity=pattern.severity,
                score=pattern.score,
                matched_text=match.group(),
                position=match.start(),
                context=extract_context(text, match.start(), len(match.group())),
                decoded_from=decoded_from,
            ))
    return threats


def detect_threats(content: str, database: Optional[PatternDatabase] = None) -> List[DetectedThreat]:
    """
    Detect threats in content and in any decoding of it.
    Returns raw-text threats first, then decoded-variant threats.
    """
    if not content:
        return []
    db = database if database is not None else get_pattern_database()

    threats = scan_text(content, db)
    for decoder_name, variant in decoded_variants(content):
        threats.extend(scan_text(variant, db, decoded_from=decoder_name))
    return threats
