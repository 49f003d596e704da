"""Line normalization and the one-line lookahead cursor.

Quoted replies arrive with any mix of leading whitespace and `>` markers.
Everything downstream matches against the text with those stripped.

Usage:
    from threadparser.parser.lines import LineCursor, normalize_line

    normalize_line(">> > On Tue, Bob wrote:")
    # QuotedLine(text='On Tue, Bob wrote:', depth=3)

    cursor = LineCursor.from_text(thread_text)
    while (line := cursor.advance()) is not None:
        upcoming = cursor.peek()
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import NamedTuple

import regex

LINE_BREAK_PATTERN = regex.compile(r"\r\n?")
QUOTE_PREFIX_PATTERN = regex.compile(r"[\s>]*")


class QuotedLine(NamedTuple):
    """A normalized line.

    Attributes:
        text: Line content with leading whitespace and quote markers removed
        depth: Number of `>` markers stripped (not used by the segmenter)
    """

    text: str
    depth: int


def normalize_line(raw: str) -> QuotedLine:
    """Strip leading whitespace and `>` quote markers from one line.

    Args:
        raw: A single physical line, with or without its terminator

    Returns:
        QuotedLine with the remaining text and the quote depth
    """
    line = raw.rstrip("\r\n")
    prefix = QUOTE_PREFIX_PATTERN.match(line).group(0)
    return QuotedLine(text=line[len(prefix):], depth=prefix.count(">"))


def split_lines(text: str) -> list[str]:
    """Split thread text into physical lines with `\\n` line endings.

    Trailing empty lines are dropped.
    """
    if not text:
        return []
    lines = LINE_BREAK_PATTERN.sub("\n", text).split("\n")
    while lines and not lines[-1]:
        lines.pop()
    return lines


class LineCursor:
    """Iterates normalized lines with exactly one line of lookahead.

    `advance()` returns the next line and moves the lookahead forward;
    `peek()` shows the lookahead without consuming it. Both return None
    once input is exhausted.
    """

    def __init__(self, lines: Iterator[str]):
        self._lines = lines
        self._lookahead = self._pull()

    @classmethod
    def from_text(cls, text: str) -> LineCursor:
        return cls(iter(split_lines(text)))

    def _pull(self) -> str | None:
        raw = next(self._lines, None)
        if raw is None:
            return None
        return normalize_line(raw).text

    def peek(self) -> str | None:
        return self._lookahead

    def advance(self) -> str | None:
        current = self._lookahead
        if current is not None:
            self._lookahead = self._pull()
        return current
