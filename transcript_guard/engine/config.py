# transcript_guard/engine/config.py
"""
Environment-driven configuration.

Values come from the process environment, after `.env` (if present) has been
loaded with python-dotenv. Unset variables fall back to safe defaults.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from dotenv import load_dotenv

from transcript_guard.engine.errors import ConfigError
from transcript_guard.engine.models import SanitizationConfig

_TRUE = frozenset(["1", "true", "yes", "on"])
_FALSE = frozenset(["0", "false", "no", "off"])


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name}={raw!r} is not a boolean")


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name}={raw!r} is not an integer") from e


def load_config(env: Optional[Mapping[str, str]] = None) -> SanitizationConfig:
    """
    Build a SanitizationConfig from environment variables.
    Pass `env` to read from a mapping instead of os.environ (.env is not loaded then).
    """
    if env is None:
        load_dotenv()
        env = os.environ

    return SanitizationConfig(
        enabled=_get_bool(env, "ENABLE_AI_SANITIZATION", True),
        block_threshold=_get_int(env, "AI_BLOCK_THRESHOLD", 75),
        sanitize_threshold=_get_int(env, "AI_SANITIZE_THRESHOLD", 50),
        warn_threshold=_get_int(env, "AI_WARN_THRESHOLD", 25),
        max_input_length=_get_int(env, "AI_MAX_INPUT_LENGTH", 100_000),
        max_repeated_chars=_get_int(env, "AI_MAX_REPEATED_CHARS", 50),
        cache_enabled=_get_bool(env, "AI_CACHE_ENABLED", True),
        cache_ttl=_get_int(env, "AI_CACHE_TTL_HOURS", 24) * 60 * 60,
        cache_max_size=_get_int(env, "AI_CACHE_MAX_SIZE", 1000),
        log_all_attempts=_get_bool(env, "AI_LOG_ALL_ATTEMPTS", False),
    )
