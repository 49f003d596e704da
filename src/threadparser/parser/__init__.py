"""Plain-text email thread parsing.

This package reconstructs the messages of a flattened email thread:
- Line normalization with one line of lookahead
- Header and quote-banner recognition
- Message segmentation and sent/sender resolution
- Subject normalization
"""

from threadparser.parser.headers import (
    DEFAULT_HEADER_FIELDS,
    HeaderMatch,
    HeaderMatcher,
    canonical_field_name,
)
from threadparser.parser.lines import LineCursor, QuotedLine, normalize_line, split_lines
from threadparser.parser.resolver import ResolvedMessage, resolve_fragment
from threadparser.parser.segmenter import (
    FragmentBuilder,
    MessageFragment,
    MessageSegmenter,
    SegmenterState,
)
from threadparser.parser.splitters import BannerParts, SplitterMatcher, parse_banner
from threadparser.parser.subject import clean_sender, normalize_subject
from threadparser.parser.thread import ParsedThread, ThreadParser

__all__ = [
    # Lines
    "LineCursor",
    "QuotedLine",
    "normalize_line",
    "split_lines",
    # Headers
    "DEFAULT_HEADER_FIELDS",
    "HeaderMatch",
    "HeaderMatcher",
    "canonical_field_name",
    # Splitters
    "BannerParts",
    "SplitterMatcher",
    "parse_banner",
    # Segmentation
    "FragmentBuilder",
    "MessageFragment",
    "MessageSegmenter",
    "SegmenterState",
    # Resolution
    "ResolvedMessage",
    "resolve_fragment",
    # Subject
    "clean_sender",
    "normalize_subject",
    # Facade
    "ParsedThread",
    "ThreadParser",
]
