"""Thread parser: turn one flattened conversation into ordered messages.

Usage:
    from threadparser.parser.thread import ThreadParser

    parser = ThreadParser()
    parsed = parser.parse(conversation.plain, conversation.subject)
    for message in parsed.messages:  # oldest first
        print(message.sent, message.sender)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from threadparser.core.logging import get_logger
from threadparser.parser.headers import DEFAULT_HEADER_FIELDS, HeaderMatcher
from threadparser.parser.patterns import REGEX_TIMEOUT
from threadparser.parser.resolver import ResolvedMessage, resolve_fragment
from threadparser.parser.segmenter import MessageSegmenter
from threadparser.parser.splitters import SplitterMatcher
from threadparser.parser.subject import normalize_subject

if TYPE_CHECKING:
    from threadparser.config_schema import ParserConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParsedThread:
    """Result of parsing one conversation.

    Attributes:
        subject: Normalized thread subject
        messages: Resolved messages, oldest first
    """

    subject: str
    messages: list[ResolvedMessage] = field(default_factory=list)


class ThreadParser:
    """Runs segmentation, field resolution and subject normalization.

    Pure and deterministic: the same text always gives the same result, so
    a retried job can safely parse a conversation again.
    """

    def __init__(
        self,
        extra_header_fields: Iterable[str] = (),
        regex_timeout: float = REGEX_TIMEOUT,
    ):
        """Initialize the parser.

        Args:
            extra_header_fields: Header names recognized in addition to the defaults
            regex_timeout: Timeout in seconds for each regex evaluation
        """
        self._timeout = regex_timeout
        self._segmenter = MessageSegmenter(
            header_matcher=HeaderMatcher(
                DEFAULT_HEADER_FIELDS,
                extra_fields=extra_header_fields,
                timeout=regex_timeout,
            ),
            splitter_matcher=SplitterMatcher(timeout=regex_timeout),
        )

    @classmethod
    def from_config(cls, config: ParserConfig) -> ThreadParser:
        """Build a parser from the `parser` configuration section."""
        return cls(
            extra_header_fields=config.extra_header_fields,
            regex_timeout=config.regex_timeout_seconds,
        )

    def parse_messages(self, thread_text: str) -> list[ResolvedMessage]:
        """Segment and resolve a thread.

        Args:
            thread_text: Raw conversation body

        Returns:
            Resolved messages in chronological (oldest-first) order
        """
        fragments = self._segmenter.segment(thread_text or "")
        resolved = [resolve_fragment(fragment, self._timeout) for fragment in fragments]
        # Top-posted: the newest message comes first in the text
        resolved.reverse()
        return resolved

    def extract_subject(self, raw_subject: str | None) -> str:
        return normalize_subject(raw_subject, self._timeout)

    def parse(self, thread_text: str, raw_subject: str | None = None) -> ParsedThread:
        """Parse a conversation's text and subject.

        Args:
            thread_text: Raw conversation body
            raw_subject: Stored subject line

        Returns:
            ParsedThread with the normalized subject and oldest-first messages
        """
        messages = self.parse_messages(thread_text)
        subject = self.extract_subject(raw_subject)

        logger.debug(
            "Thread parsed",
            messages=len(messages),
            text_length=len(thread_text or ""),
        )
        return ParsedThread(subject=subject, messages=messages)
