"""Tests for sent-date presentation."""

from datetime import datetime

import pytest

from threadparser.display import parse_sent, pretty_date


class TestParseSent:
    """Tests for parse_sent()."""

    def test_rfc2822(self) -> None:
        parsed = parse_sent("Tue, 3 Jan 2012 10:00:00 -0500")
        assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2012, 1, 3, 10)
        assert parsed.tzinfo is not None

    def test_banner_shape(self) -> None:
        assert parse_sent("Jan 3, 2012, 10:00 AM") == datetime(2012, 1, 3, 10, 0)

    def test_pm_is_kept(self) -> None:
        assert parse_sent("Monday, January 2, 2012 9:15 PM") == datetime(2012, 1, 2, 21, 15)

    def test_collapses_whitespace(self) -> None:
        assert parse_sent("  Jan 3,  2012 ") == datetime(2012, 1, 3)

    def test_weekday_date_without_time(self) -> None:
        assert parse_sent("Mon, Jan 2, 2012") == datetime(2012, 1, 2)

    def test_two_digit_year(self) -> None:
        assert parse_sent("Tue, 3 Jan 12 at 10:00") == datetime(2012, 1, 3, 10, 0)
        assert parse_sent("3 Jan 99") == datetime(1999, 1, 3)

    def test_iso(self) -> None:
        assert parse_sent("2012-01-03 10:00") == datetime(2012, 1, 3, 10, 0)
        assert parse_sent("2012/01/03") == datetime(2012, 1, 3)

    def test_no_year(self) -> None:
        """A time right after the day is not read as a year."""
        assert parse_sent("Jan 3, 10:00 AM") is None

    def test_unparseable(self) -> None:
        assert parse_sent("sometime last week") is None
        assert parse_sent("") is None
        assert parse_sent(None) is None


class TestPrettyDate:
    """Tests for pretty_date()."""

    @pytest.mark.parametrize(
        ("sent", "expected"),
        [
            ("Tue, 3 Jan 2012 10:00:00 -0500", "January 3, 2012 at 10:00 AM"),
            ("Tue, Jan 3, 2012 at 10:00 AM", "January 3, 2012 at 10:00 AM"),
            ("Monday, January 2, 2012 9:15 AM", "January 2, 2012 at 9:15 AM"),
            ("5 January 2012 14:30", "January 5, 2012 at 2:30 PM"),
            ("Mon, Jan 2, 2012", "January 2, 2012 at 12:00 AM"),
            ("Tue, 3 Jan 12 at 10:00", "January 3, 2012 at 10:00 AM"),
        ],
    )
    def test_formats(self, sent: str, expected: str) -> None:
        assert pretty_date(sent) == expected

    def test_falls_back_to_raw_text(self) -> None:
        assert pretty_date("sometime last week") == "sometime last week"

    def test_missing(self) -> None:
        assert pretty_date(None) == ""
