"""Subject and sender cleanup for stored conversations."""

from __future__ import annotations

import regex

from threadparser.parser.patterns import REGEX_TIMEOUT, safe_match

# One layer only: "Re: Fwd: Hello" -> "Fwd: Hello"
SUBJECT_PREFIX_PATTERN = regex.compile(
    r"\s*\**\s*(?:(?:re|fwd|fw)\s*:)?[\s*]*(?P<subject>.*?)[\s*]*\Z",
    regex.IGNORECASE | regex.DOTALL,
)

SENDER_DECORATION_PATTERN = regex.compile(r"[\[\]'\"]")


def normalize_subject(raw_subject: str | None, timeout: float = REGEX_TIMEOUT) -> str:
    """Strip a single reply/forward prefix and decorative asterisks.

    Args:
        raw_subject: Subject as stored on the conversation

    Returns:
        Normalized subject ("" for None)
    """
    if not raw_subject:
        return ""

    m = safe_match(SUBJECT_PREFIX_PATTERN, raw_subject, timeout)
    if m is None:
        return raw_subject
    return m.group("subject")


def clean_sender(raw_sender: str | None) -> str:
    """Remove brackets and quotes left over from address-list serialization.

    `['"Bob" <bob@example.com>']` becomes `Bob <bob@example.com>`.
    """
    if not raw_sender:
        return ""
    return SENDER_DECORATION_PATTERN.sub("", raw_sender).strip()
