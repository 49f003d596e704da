"""Presentation helpers for parsed messages.

`sent` values are whatever text the thread carried ("Tue, 3 Jan 2012
10:00:00 -0500", "Mon, Jan 2, 2012", "3 Jan 12 at 10:00", or something
unparseable). Parsing tries, in order:

1. ISO-style numeric dates
2. RFC 2822 (only when there is no AM/PM, which that parser ignores)
3. Day/month/year parts pulled out of banner-style text

and formatting falls back to the raw text.
"""

from __future__ import annotations

from datetime import datetime
from email.utils import parsedate_to_datetime

import regex

from threadparser.parser.patterns import safe_search
from threadparser.parser.splitters import MONTH_NAMES

ISO_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%Y/%m/%d",
)

MONTH_NUMBERS: dict[str, int] = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}

_MONTH_WORD = rf"\b(?:{'|'.join(sorted(MONTH_NAMES, key=len, reverse=True))})\b"

DATE_PARTS_PATTERN = regex.compile(
    rf"(?:\b(?P<day>[0-9]{{1,2}}),?\s+(?P<month>{_MONTH_WORD})\.?"
    rf"|(?P<month>{_MONTH_WORD})\.?\s+(?P<day>[0-9]{{1,2}})\b)"
    r"(?:\s*,?\s*(?P<year>[0-9]{2,4})\b(?!:))?"
    r"(?:[,\s]+(?:at\s+)?(?P<hour>[0-2]?[0-9]):(?P<minute>[0-9]{2})(?::(?P<second>[0-9]{2}))?"
    r"(?:\s*(?P<meridiem>am|pm)\b)?)?",
    regex.IGNORECASE,
)
MERIDIEM_PATTERN = regex.compile(r"\b(?:am|pm)\b", regex.IGNORECASE)
WHITESPACE_PATTERN = regex.compile(r"\s+")


def _parse_iso(text: str) -> datetime | None:
    for fmt in ISO_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_rfc2822(text: str) -> datetime | None:
    if safe_search(MERIDIEM_PATTERN, text) is not None:
        return None
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_date_parts(text: str) -> datetime | None:
    """Build a datetime from the first day/month/year run in `text`.

    A year is required; two-digit years follow the RFC 2822 rule
    (00-68 is 20xx, 69-99 is 19xx).
    """
    m = safe_search(DATE_PARTS_PATTERN, text)
    if m is None or m.group("year") is None:
        return None

    year = int(m.group("year"))
    if year < 100:
        year += 2000 if year < 69 else 1900

    hour = int(m.group("hour") or 0)
    meridiem = (m.group("meridiem") or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    try:
        return datetime(
            year,
            MONTH_NUMBERS[m.group("month")[:3].lower()],
            int(m.group("day")),
            hour,
            int(m.group("minute") or 0),
            int(m.group("second") or 0),
        )
    except ValueError:
        return None


def parse_sent(sent: str | None) -> datetime | None:
    """Best-effort parse of a free-form sent date.

    Returns:
        datetime, or None if no known shape matches
    """
    if not sent or not sent.strip():
        return None
    text = WHITESPACE_PATTERN.sub(" ", sent.strip())

    for parse in (_parse_iso, _parse_rfc2822, _parse_date_parts):
        parsed = parse(text)
        if parsed is not None:
            return parsed
    return None


def pretty_date(sent: str | None) -> str:
    """Format a sent date as "January 3, 2012 at 10:00 AM".

    Never raises: unparseable input is returned as-is, None as "".
    """
    parsed = parse_sent(sent)
    if parsed is None:
        return sent or ""
    hour = parsed.hour % 12 or 12
    return f"{parsed:%B} {parsed.day}, {parsed.year} at {hour}:{parsed:%M %p}"
