"""Resolve each fragment's sent date and sender.

Headers win over the banner: a quoted `Date:`/`From:` block is more
reliable than an attribution line. The banner fills in what headers lack.

Resolution order:
    sent:   date header → sent header → banner date → None
    sender: from header → banner sender → reply-to header → ""

`sent` is free-form text and may not be parseable as a date.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from threadparser.parser.patterns import REGEX_TIMEOUT
from threadparser.parser.segmenter import MessageFragment
from threadparser.parser.splitters import parse_banner


@dataclass(frozen=True)
class ResolvedMessage:
    """A fragment with its derived sent date and sender.

    Attributes:
        body: Message text
        sender: Best-effort sender ("" if unknown)
        sent: Free-form sent date, or None if unknown
        headers: Header fields keyed by canonical name
        splitter_text: Banner that introduced the message, or ""
    """

    body: str
    sender: str = ""
    sent: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    splitter_text: str = ""


def resolve_fragment(
    fragment: MessageFragment,
    timeout: float = REGEX_TIMEOUT,
) -> ResolvedMessage:
    """Derive `sent` and `sender` for one fragment.

    Args:
        fragment: Segmenter output
        timeout: Regex timeout for banner parsing

    Returns:
        ResolvedMessage carrying the fragment's body, headers and banner
    """
    headers = fragment.headers
    banner = parse_banner(fragment.splitter_text, timeout)

    sent = headers.get("date") or headers.get("sent") or banner.date
    sender = headers.get("from") or banner.sender or headers.get("reply-to") or ""

    return ResolvedMessage(
        body=fragment.body,
        sender=sender,
        sent=sent,
        headers=dict(headers),
        splitter_text=fragment.splitter_text,
    )
