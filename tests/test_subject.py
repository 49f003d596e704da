"""Tests for subject normalization and sender cleanup."""

import pytest

from threadparser.parser.subject import clean_sender, normalize_subject


class TestNormalizeSubject:
    """Tests for normalize_subject()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Re: Project Update", "Project Update"),
            ("**Fwd: Hi**", "Hi"),
            ("FW: Invoice", "Invoice"),
            ("RE : Budget", "Budget"),
            ("  re:Lunch", "Lunch"),
            ("Hello", "Hello"),
            ("Regarding: the offsite", "Regarding: the offsite"),
        ],
    )
    def test_strips_one_prefix(self, raw: str, expected: str) -> None:
        assert normalize_subject(raw) == expected

    def test_single_pass_only(self) -> None:
        """Nested prefixes keep everything after the first one."""
        assert normalize_subject("Re: Fwd: Hello") == "Fwd: Hello"

    def test_missing_subject(self) -> None:
        assert normalize_subject(None) == ""
        assert normalize_subject("") == ""


class TestCleanSender:
    """Tests for clean_sender()."""

    def test_strips_list_serialization(self) -> None:
        assert clean_sender("['\"Bob\" <bob@example.com>']") == "Bob <bob@example.com>"

    def test_plain_address_unchanged(self) -> None:
        assert clean_sender("alice@example.com") == "alice@example.com"

    def test_missing_sender(self) -> None:
        assert clean_sender(None) == ""
