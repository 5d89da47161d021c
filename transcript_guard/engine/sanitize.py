"""
Sanitization module for transcript screening.
Removes detected injection sentences while preserving legitimate content.

Steps:
1. Delete the sentence enclosing each detected threat,
   together with text between known boundary-marker fences
2. Redact long encoded runs (Base64, hex escapes, unicode escapes)
3. Normalize whitespace
"""

import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from transcript_guard.engine.models import DetectedThreat

SENTENCE_DELIMITERS = ('. ', '! ', '? ', '\n\n')

# Fence pairs: everything from the opening marker to the closing one goes
BOUNDARY_PATTERNS: List[re.Pattern] = [
    re.compile(r'---\s*END\s*---.*?---\s*START\s*---', re.I | re.S),
    re.compile(r'###\s*OVERRIDE\s*###.*?###\s*END\s*###', re.I | re.S),
    re.compile(r'===\s*STOP\s*===.*?===\s*RESUME\s*===', re.I | re.S),
    re.compile(r'\[SYSTEM\].*?\[/SYSTEM\]', re.I | re.S),
]

ENCODED_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r'(?:^|(?<=[\s,]))[A-Za-z0-9+/]{50,}={0,2}(?=$|[\s,])'),
     ' [encoded content removed] '),
    (re.compile(r'(?:\\x[0-9a-fA-F]{2}){10,}'),
     ' [hex content removed] '),
    (re.compile(r'(?:\\u[0-9a-fA-F]{4}){10,}'),
     ' [unicode content removed] '),
]

MIN_USABLE_LENGTH = 100
MAX_USABLE_REMOVAL_PERCENT = 70.0


@dataclass(frozen=True)
class SanitizeOutcome:
    sanitized: str
    sections_removed: int


def _sentence_span(content: str, position: int, length: int) -> Tuple[int, int]:
    """
    Span [start, end) of the sentence around content[position:position+length].
    The delimiter that ends the sentence is part of the span; the one before it is kept.
    """
    before = content[:position]
    starts = [before.rfind(d) for d in SENTENCE_DELIMITERS]
    start = max(starts)
    start = 0 if start == -1 else start + 2

    tail_from = position + length
    ends = [i for i in (content.find(d, tail_from) for d in SENTENCE_DELIMITERS) if i != -1]
    end = min(ends) + 2 if ends else len(content)
    return start, end


def _merge_spans(spans: List[Tuple[int, int, str]]) -> List[Tuple[int, int, str]]:
    """Merge overlapping (start, end, filler) spans; a fence filler wins over a sentence cut."""
    merged: List[Tuple[int, int, str]] = []
    for start, end, filler in sorted(spans):
        if merged and start < merged[-1][1]:
            prev_start, prev_end, prev_filler = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end), prev_filler or filler)
        else:
            merged.append((start, end, filler))
    return merged


def threat_sentence_spans(content: str, threats: Sequence[DetectedThreat]) -> List[Tuple[int, int, str]]:
    """
    Sentence spans around each raw-text threat.
    Threats from decoded variants are skipped: their offsets are into the decoded text.
    """
    spans = []
    for threat in threats:
        if threat.decoded_from is not None:
            continue
        end = threat.position + len(threat.matched_text)
        if content[threat.position:end] != threat.matched_text:
            continue
        start, stop = _sentence_span(content, threat.position, len(threat.matched_text))
        spans.append((start, stop, ''))
    return spans


def boundary_spans(content: str) -> List[Tuple[int, int, str]]:
    """
    Fenced regions, found regardless of detection, e.g.
    "Text... --- END --- malicious --- START --- more text"
    """
    return [(m.start(), m.end(), ' ') for pattern in BOUNDARY_PATTERNS for m in pattern.finditer(content)]


def cut_spans(content: str, spans: List[Tuple[int, int, str]]) -> Tuple[str, int]:
    """Cut merged spans last-first so earlier offsets stay valid. Returns (text, spans cut)."""
    merged = _merge_spans(spans)
    result = content
    for start, end, filler in reversed(merged):
        result = result[:start] + filler + result[end:]
    return result, len(merged)


def redact_encoded_content(content: str) -> str:
    for pattern, placeholder in ENCODED_PATTERNS:
        content = pattern.sub(placeholder, content)
    return content


def normalize_whitespace(content: str) -> str:
    content = re.sub(r' {2,}', ' ', content)
    content = re.sub(r'\n{3,}', '\n\n', content)
    return content.strip()


def sanitize_content(content: str, threats: Sequence[DetectedThreat]) -> SanitizeOutcome:
    """
    Remove injection segments from content while preserving legitimate text.
    Threat sentences and fenced regions are located on the original text and
    cut in one pass. With no threats and nothing fenced or encoded, returns
    content unchanged.
    """
    if not content:
        return SanitizeOutcome(content or "", 0)

    spans = threat_sentence_spans(content, threats) + boundary_spans(content)
    cut, sections = cut_spans(content, spans)

    redacted = redact_encoded_content(cut)
    if not threats and redacted == content:
        # Nothing to do: leave even the whitespace alone
        return SanitizeOutcome(content, 0)

    return SanitizeOutcome(normalize_whitespace(redacted), sections)


def removal_percentage(original: str, sanitized: str) -> float:
    if not original:
        return 0.0
    return (len(original) - len(sanitized)) / len(original) * 100


def is_sanitized_content_usable(sanitized: str, original: str) -> bool:
    """
    Sanitized content is unusable if:
    - it is empty after trimming
    - fewer than 100 characters remain
    - more than 70% of the original was removed
    """
    trimmed = (sanitized or "").strip()
    if not trimmed:
        return False
    if len(trimmed) < MIN_USABLE_LENGTH:
        return False
    return removal_percentage(original, sanitized or "") <= MAX_USABLE_REMOVAL_PERCENT
