"""Message segmentation: split flattened thread text into message fragments.

The segmenter is a two-state automaton driven line by line with one line of
lookahead:

- AWAITING_CONTENT: at the start, and right after a message boundary.
  Blank lines are dropped; headers and banners accumulate on the new
  fragment without closing it.
- IN_BODY: at least one body line has been seen. The next header or banner
  closes the fragment and starts a new one.

Fragments are emitted in the order they appear, i.e. newest first for a
top-posted thread. Fragments whose body is empty after trimming (a banner
and/or headers with no text) are dropped.

Usage:
    from threadparser.parser.segmenter import MessageSegmenter

    fragments = MessageSegmenter().segment(thread_text)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from threadparser.core.logging import get_logger
from threadparser.parser.headers import HeaderMatcher
from threadparser.parser.lines import LineCursor
from threadparser.parser.splitters import SplitterMatcher

logger = get_logger(__name__)


class SegmenterState(Enum):
    AWAITING_CONTENT = "awaiting_content"
    IN_BODY = "in_body"


@dataclass(frozen=True)
class MessageFragment:
    """One message recovered from the thread text.

    Attributes:
        body: Message text, trimmed
        headers: Header fields keyed by canonical name (last value wins)
        splitter_text: Banner that introduced the message, or ""
    """

    body: str
    headers: dict[str, str] = field(default_factory=dict)
    splitter_text: str = ""


@dataclass
class FragmentBuilder:
    """Accumulates one fragment while the segmenter reads its lines."""

    body_lines: list[str] = field(default_factory=list)
    headers: dict[str, str] = field(default_factory=dict)
    splitter_text: str = ""

    def add_body_line(self, line: str) -> None:
        self.body_lines.append(line)

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def build(self) -> MessageFragment | None:
        """Finalize the fragment.

        Returns:
            The fragment, or None if its trimmed body is empty
        """
        body = "\n".join(self.body_lines).strip()
        if not body:
            return None
        return MessageFragment(
            body=body,
            headers=dict(self.headers),
            splitter_text=self.splitter_text,
        )


class MessageSegmenter:
    """Splits thread text into MessageFragments.

    The segmenter holds only its (immutable) matchers; each `segment()` call
    has its own cursor and builder, so one instance can serve many threads.

    Attributes:
        header_matcher: Recognizes header lines
        splitter_matcher: Recognizes quote banners
    """

    def __init__(
        self,
        header_matcher: HeaderMatcher | None = None,
        splitter_matcher: SplitterMatcher | None = None,
    ):
        self.header_matcher = header_matcher or HeaderMatcher()
        self.splitter_matcher = splitter_matcher or SplitterMatcher()

    def segment(self, text: str) -> list[MessageFragment]:
        """Segment a thread into fragments, in input order.

        Args:
            text: Raw thread text

        Returns:
            Non-empty fragments, newest first for a top-posted thread
        """
        cursor = LineCursor.from_text(text)
        fragments: list[MessageFragment] = []
        state = SegmenterState.AWAITING_CONTENT
        builder = FragmentBuilder()

        while (line := cursor.advance()) is not None:
            next_line = cursor.peek()

            if not line and (
                state is SegmenterState.AWAITING_CONTENT or not next_line
            ):
                continue

            is_header = self.header_matcher.is_header(line)
            is_splitter = self.splitter_matcher.is_splitter(line)
            joined_splitter = (
                None if is_splitter else self.splitter_matcher.joined(line, next_line)
            )

            if state is SegmenterState.IN_BODY and (
                is_splitter or joined_splitter is not None or is_header
            ):
                self._close(builder, fragments)
                builder = FragmentBuilder()
                state = SegmenterState.AWAITING_CONTENT

            if is_header:
                self._read_header(line, cursor, builder)
            elif is_splitter:
                builder.splitter_text = line
            elif joined_splitter is not None:
                builder.splitter_text = joined_splitter
                cursor.advance()
            else:
                state = SegmenterState.IN_BODY
                builder.add_body_line(line)

        self._close(builder, fragments)

        logger.debug("Thread segmented", fragments=len(fragments))
        return fragments

    def _read_header(
        self,
        line: str,
        cursor: LineCursor,
        builder: FragmentBuilder,
    ) -> None:
        """Fold continuation lines into a header and store it."""
        while True:
            upcoming = cursor.peek()
            if not upcoming or self.header_matcher.is_header(upcoming):
                break
            line = f"{line} {upcoming}"
            cursor.advance()

        match = self.header_matcher.match(line)
        if match is not None:
            builder.set_header(match.field, match.value)

    @staticmethod
    def _close(builder: FragmentBuilder, fragments: list[MessageFragment]) -> None:
        fragment = builder.build()
        if fragment is not None:
            fragments.append(fragment)
