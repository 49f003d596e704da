"""Recognition of email header lines inside flattened thread text.

A header line opens with a known field name, a colon and a value. Clients
decorate these in quoted replies (`*From:* Bob`), so leading and trailing
asterisks are tolerated. Only names from a fixed vocabulary count: a line
like `Random: value` is body text.

Usage:
    from threadparser.parser.headers import HeaderMatcher

    matcher = HeaderMatcher()
    matcher.match("FROM: alice@example.com")
    # HeaderMatch(field='from', value='alice@example.com')
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import NamedTuple

import regex

from threadparser.parser.patterns import REGEX_TIMEOUT, safe_match

# Header names seen in quoted replies, after Ryu et al., US patent 7,103,599
# ("nested email"). Order matters only for readability.
DEFAULT_HEADER_FIELDS: tuple[str, ...] = (
    "received",
    "from",
    "to",
    "cc",
    "bcc",
    "subject",
    "date",
    "sent",
    "x-mailer",
    "message-id",
    "content-type",
    "content-transfer-encoding",
    "x-reply-to",
    "x-accept-language",
    "x-mozilla-status",
    "x-mozilla-status2",
    "x-autoresponder-revision",
    "x-uidl",
    "organization",
    "mime-version",
    "reply-to",
)

NAME_SEPARATOR_PATTERN = regex.compile(r"[\s\-]+")


class HeaderMatch(NamedTuple):
    """A recognized header line.

    Attributes:
        field: Canonical field name (lower-case, hyphenated)
        value: Header value with surrounding whitespace removed
    """

    field: str
    value: str


def canonical_field_name(name: str) -> str:
    """Lower-case a field name and collapse whitespace/hyphen runs to `-`."""
    return NAME_SEPARATOR_PATTERN.sub("-", name.strip().lower())


def _field_alternative(name: str) -> str:
    parts = [regex.escape(part) for part in canonical_field_name(name).split("-")]
    return r"[\s\-]+".join(parts)


def build_header_pattern(fields: Iterable[str]) -> regex.Pattern:
    """Compile the header-line pattern for a vocabulary of field names.

    Args:
        fields: Field names; hyphens in them also match runs of whitespace

    Returns:
        Case-insensitive pattern with groups `field` and `value`
    """
    alternatives = "|".join(_field_alternative(name) for name in fields)
    return regex.compile(
        rf"\**\s*(?P<field>{alternatives}):\s*\**\s*(?P<value>\S.*)",
        regex.IGNORECASE,
    )


class HeaderMatcher:
    """Matches header lines against a field vocabulary.

    Attributes:
        fields: The vocabulary, in canonical form
        timeout: Regex timeout in seconds
    """

    def __init__(
        self,
        fields: Iterable[str] = DEFAULT_HEADER_FIELDS,
        extra_fields: Iterable[str] = (),
        timeout: float = REGEX_TIMEOUT,
    ):
        """Initialize the matcher.

        Args:
            fields: Base vocabulary (defaults to DEFAULT_HEADER_FIELDS)
            extra_fields: Additional field names, e.g. from configuration
            timeout: Regex timeout in seconds
        """
        vocabulary: list[str] = []
        for name in [*fields, *extra_fields]:
            canonical = canonical_field_name(name)
            if canonical and canonical not in vocabulary:
                vocabulary.append(canonical)

        self.fields: tuple[str, ...] = tuple(vocabulary)
        self.timeout = timeout
        self._pattern = build_header_pattern(self.fields)

    def match(self, line: str) -> HeaderMatch | None:
        """Match a normalized line as a header.

        Args:
            line: Line with quote markers already stripped

        Returns:
            HeaderMatch, or None if the line does not open a known header
        """
        m = safe_match(self._pattern, line, self.timeout)
        if m is None:
            return None
        return HeaderMatch(
            field=canonical_field_name(m.group("field")),
            value=m.group("value").strip(),
        )

    def is_header(self, line: str) -> bool:
        return self.match(line) is not None
