# transcript_guard/engine/decoders.py
"""
Whole-input decoders for obfuscated payloads.
Handles: Base64 and URL percent-encoding.

Each decoder returns the decoded text, or None when the input is not a valid
encoding (or decoding would not change it). None is the common case and is
not an error.
"""

import base64
import binascii
import re
from typing import Callable, List, Optional, Tuple
from urllib.parse import unquote

BASE64_BODY_PATTERN = re.compile(r'^[A-Za-z0-9+/]+={0,2}$')
URL_ESCAPE_PATTERN = re.compile(r'%[0-9A-Fa-f]{2}')

MIN_BASE64_LENGTH = 16
MIN_PRINTABLE_RATIO = 0.8
CONTEXT_CHARS = 100


def _mostly_printable(text: str) -> bool:
    if not text:
        return False
    printable = sum(1 for c in text if c.isprintable() or c.isspace())
    return printable / len(text) > MIN_PRINTABLE_RATIO


def try_base64_decode(text: str) -> Optional[str]:
    """
    Decode text that is, as a whole, a Base64 blob.
    Returns decoded text if valid UTF-8 and mostly printable, None otherwise.
    """
    if not text:
        return None
    blob = text.strip()
    if len(blob) < MIN_BASE64_LENGTH or not BASE64_BODY_PATTERN.match(blob):
        return None

    # Add padding if needed
    padded = blob + '=' * (-len(blob) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
        decoded = raw.decode('utf-8', errors='strict')
    except (binascii.Error, ValueError):
        return None

    if decoded == text or not _mostly_printable(decoded):
        return None
    return decoded


def try_url_decode(text: str) -> Optional[str]:
    """
    Decode URL percent-encoding.
    Returns None if there are no escapes or they do not form valid UTF-8.
    """
    if not text or not URL_ESCAPE_PATTERN.search(text):
        return None
    try:
        decoded = unquote(text, errors='strict')
    except UnicodeDecodeError:
        return None
    return decoded if decoded != text else None


DECODERS: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ('base64', try_base64_decode),
    ('url', try_url_decode),
]


def decoded_variants(text: str) -> List[Tuple[str, str]]:
    """
    Run every decoder over the full input.
    Returns [(decoder_name, decoded_text), ...] for the ones that succeeded.
    """
    variants = []
    for name, decoder in DECODERS:
        decoded = decoder(text)
        if decoded is not None:
            variants.append((name, decoded))
    return variants


def extract_context(content: str, position: int, match_length: int, size: int = CONTEXT_CHARS) -> str:
    """Return ~`size` characters either side of a match, with ellipses where truncated."""
    start = max(0, position - size)
    end = min(len(content), position + match_length + size)
    context = content[start:end]
    if start > 0:
        context = '...' + context
    if end < len(content):
        context = context + '...'
    return context
