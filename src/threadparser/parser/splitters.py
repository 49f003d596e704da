"""Quote-banner ("splitter") detection and banner date/sender extraction.

A splitter marks where a quoted prior message starts: a dashed rule, a
"Forwarded message" or "Original Message" marker, or an attribution line
such as "On Tue, Jan 3, 2012 at 10:00 AM, Bob <bob@example.com> wrote:".

Patterns follow Carvalho & Cohen's reply-line heuristics (CEAS 2006).

Usage:
    from threadparser.parser.splitters import SplitterMatcher, parse_banner

    matcher = SplitterMatcher()
    matcher.is_splitter("-----Original Message-----")  # True

    parse_banner("On Jan 3, 2012, 10:00 AM, Bob <bob@example.com> wrote:")
    # BannerParts(date='Jan 3, 2012, 10:00 AM', sender='Bob <bob@example.com>')
"""

from __future__ import annotations

from typing import NamedTuple

import regex

from threadparser.parser.patterns import REGEX_TIMEOUT, safe_match

SPLITTER_EXPRESSIONS: tuple[str, ...] = (
    r"(?:-{5,})",
    r"(?:-*\s*(?:begin\s+)?forwarded\s+message:?\s*-*)",
    r"(?:-*\s*original\s+message:?\s*-*)",
    r"(?:-*\s*on\s.*\swrote:\s*-*)",
)

SPLITTER_PATTERN = regex.compile(
    rf"(?:{'|'.join(SPLITTER_EXPRESSIONS)}).*",
    regex.IGNORECASE,
)

# =============================================================================
# Banner date/sender extraction
# =============================================================================

DAY_NAMES: tuple[str, ...] = (
    "sun", "sunday", "mon", "monday", "tue", "tues", "tuesday",
    "wed", "weds", "wednesday", "thu", "thur", "thurs", "thursday",
    "fri", "friday", "sat", "saturday",
)

MONTH_NAMES: tuple[str, ...] = (
    "jan", "january", "feb", "february", "mar", "march", "apr", "april",
    "may", "jun", "june", "jul", "july", "aug", "august", "sep", "sept",
    "september", "oct", "october", "nov", "november", "dec", "december",
)


def _names(words: tuple[str, ...]) -> str:
    # Longest first so "tuesday" wins over "tue"
    return "|".join(sorted(words, key=len, reverse=True))


_DAY = rf"(?:{_names(DAY_NAMES)})\b\.?"
_MONTH = rf"(?:{_names(MONTH_NAMES)})\b\.?"
# Two- to four-digit year; never the hour of a following "10:00"
_YEAR = r"[0-9]{2,4}\b(?!:)"
_DAY_MONTH = rf"[0-9]{{1,2}},?\s+{_MONTH}(?:\s*,?\s*{_YEAR})?"
_MONTH_DAY = rf"{_MONTH}\s+[0-9]{{1,2}}\b(?:\s*,?\s*{_YEAR})?"
_TIME = r"[0-2]?[0-9]:[0-9]{2}(?::[0-9]{2})?(?:\s*(?:am|pm)\b)?"

DATETIME_EXPRESSION = (
    rf"(?:{_DAY})?[,\s]*"
    rf"(?:(?:{_DAY_MONTH}|{_MONTH_DAY})[,\s]*)?"
    rf"(?:(?:at\s+)?{_TIME})?"
)

BANNER_PATTERN = regex.compile(r"-*\s*on\s(?P<text>.*)\swrote:\s*-*", regex.IGNORECASE)
DATE_SENDER_PATTERN = regex.compile(
    rf"(?P<date>{DATETIME_EXPRESSION})[,\s]*(?P<sender>.*)",
    regex.IGNORECASE,
)


class BannerParts(NamedTuple):
    """Date and sender recovered from an attribution banner.

    Either part is None when it could not be recovered.
    """

    date: str | None
    sender: str | None


def parse_banner(splitter: str, timeout: float = REGEX_TIMEOUT) -> BannerParts:
    """Extract the date and sender from an "On <text> wrote:" banner.

    The date is the longest leading run of <text> that looks like an
    (optional) weekday, day/month[/year] and time; the rest is the sender.
    Dashed rules and forwarded/original-message markers carry neither.

    Args:
        splitter: Raw banner text recorded by the segmenter
        timeout: Regex timeout in seconds

    Returns:
        BannerParts; (None, None) if the banner is not an attribution line
    """
    if not splitter:
        return BannerParts(None, None)

    banner = safe_match(BANNER_PATTERN, splitter.strip(), timeout)
    if banner is None:
        return BannerParts(None, None)

    text = banner.group("text").strip()
    parts = safe_match(DATE_SENDER_PATTERN, text, timeout)
    if parts is None:
        return BannerParts(None, text or None)

    date = parts.group("date").strip(" ,\t")
    sender = parts.group("sender").strip()
    return BannerParts(date or None, sender or None)


class SplitterMatcher:
    """Recognizes quote-banner lines.

    Attributes:
        timeout: Regex timeout in seconds
    """

    def __init__(self, timeout: float = REGEX_TIMEOUT):
        self.timeout = timeout

    def is_splitter(self, line: str) -> bool:
        return safe_match(SPLITTER_PATTERN, line, self.timeout) is not None

    def joined(self, line: str, next_line: str | None) -> str | None:
        """Return `line + " " + next_line` if that pair forms a banner.

        Catches attribution lines that a client wrapped across two physical
        lines ("On Tuesday," / "Jan 3, 2012, Bob wrote:").

        Returns:
            The joined banner, or None if there is no next line or no match
        """
        if next_line is None:
            return None
        combined = f"{line} {next_line}"
        return combined if self.is_splitter(combined) else None
