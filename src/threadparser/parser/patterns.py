"""Timeout-guarded regex helpers shared by the matchers.

All matching of thread text goes through the `regex` library with a timeout
so that pathological input cannot stall a worker. A timeout is logged and
treated as a no-match; the parser never raises on bad input.
"""

from __future__ import annotations

import regex

from threadparser.core.logging import get_logger

logger = get_logger(__name__)

# Regex timeout in seconds (overridable per matcher)
REGEX_TIMEOUT = 1.0


def _pattern_preview(pattern: regex.Pattern) -> str:
    return pattern.pattern[:50] if len(pattern.pattern) > 50 else pattern.pattern


def safe_match(
    pattern: regex.Pattern,
    text: str,
    timeout: float = REGEX_TIMEOUT,
) -> regex.Match | None:
    """Anchored match with timeout.

    Args:
        pattern: Compiled regex pattern
        text: Text to match against
        timeout: Seconds before giving up

    Returns:
        Match object, or None on no-match or timeout
    """
    try:
        return pattern.match(text, timeout=timeout)
    except TimeoutError:
        logger.warning(
            "Regex timeout during match",
            pattern=_pattern_preview(pattern),
            text_length=len(text),
        )
        return None


def safe_search(
    pattern: regex.Pattern,
    text: str,
    timeout: float = REGEX_TIMEOUT,
) -> regex.Match | None:
    """Unanchored search with timeout; None on no-match or timeout."""
    try:
        return pattern.search(text, timeout=timeout)
    except TimeoutError:
        logger.warning(
            "Regex timeout during search",
            pattern=_pattern_preview(pattern),
            text_length=len(text),
        )
        return None
