"""Tests for quote-banner detection and banner date/sender extraction."""

import pytest

from threadparser.parser.splitters import BannerParts, SplitterMatcher, parse_banner


@pytest.fixture
def matcher() -> SplitterMatcher:
    return SplitterMatcher()


class TestIsSplitter:
    """Tests for SplitterMatcher.is_splitter()."""

    @pytest.mark.parametrize(
        "line",
        [
            "-----",
            "------------------------------ trailing text",
            "-----Original Message-----",
            "Original message:",
            "---------- Forwarded message ----------",
            "Begin forwarded message:",
            "forwarded message",
            "On Tue, Jan 3, 2012 at 10:00 AM, Bob <bob@x.com> wrote:",
            "on monday bob wrote:",
            "--- On Mon, 1/2/12, Alice wrote: ---",
        ],
    )
    def test_banners(self, matcher: SplitterMatcher, line: str) -> None:
        assert matcher.is_splitter(line)

    @pytest.mark.parametrize(
        "line",
        [
            "----",
            "-- ",
            "Hello Bob,",
            "I wrote: nothing",
            "Once upon a time",
            "",
        ],
    )
    def test_non_banners(self, matcher: SplitterMatcher, line: str) -> None:
        assert not matcher.is_splitter(line)


class TestJoined:
    """Tests for banners wrapped across two lines."""

    def test_wrapped_attribution(self, matcher: SplitterMatcher) -> None:
        joined = matcher.joined("On Tuesday,", "Jan 3, 2012, 10:00 AM, Bob wrote:")
        assert joined == "On Tuesday, Jan 3, 2012, 10:00 AM, Bob wrote:"

    def test_no_next_line(self, matcher: SplitterMatcher) -> None:
        assert matcher.joined("On Tuesday,", None) is None

    def test_unrelated_lines(self, matcher: SplitterMatcher) -> None:
        assert matcher.joined("Thanks,", "Alice") is None


class TestParseBanner:
    """Tests for parse_banner()."""

    def test_month_day_year_time(self) -> None:
        parts = parse_banner("On Jan 3, 2012, 10:00 AM, Bob <bob@x.com> wrote:")
        assert parts == BannerParts("Jan 3, 2012, 10:00 AM", "Bob <bob@x.com>")

    def test_weekday_and_at(self) -> None:
        parts = parse_banner("On Tue, Jan 3, 2012 at 10:00 AM, Bob <bob@x.com> wrote:")
        assert parts.date == "Tue, Jan 3, 2012 at 10:00 AM"
        assert parts.sender == "Bob <bob@x.com>"

    def test_day_month_year(self) -> None:
        parts = parse_banner("On Thurs, 5 January 2012 14:30, Carol wrote:")
        assert parts.date == "Thurs, 5 January 2012 14:30"
        assert parts.sender == "Carol"

    def test_seconds_and_lowercase_pm(self) -> None:
        parts = parse_banner("on weds march 7 2012 at 3:04:05 pm dave@x.com wrote:")
        assert parts.date == "weds march 7 2012 at 3:04:05 pm"
        assert parts.sender == "dave@x.com"

    def test_two_digit_year_day_month(self) -> None:
        parts = parse_banner("On Tue, 3 Jan 12 at 10:00, Bob wrote:")
        assert parts == BannerParts("Tue, 3 Jan 12 at 10:00", "Bob")

    def test_two_digit_year_month_day(self) -> None:
        parts = parse_banner("On Jan 3, 12 at 10:00 AM, Bob <b@x.com> wrote:")
        assert parts == BannerParts("Jan 3, 12 at 10:00 AM", "Bob <b@x.com>")

    def test_hour_is_not_taken_as_year(self) -> None:
        """A time straight after the day stays a time."""
        parts = parse_banner("On Jan 3, 10:00 AM, Bob wrote:")
        assert parts == BannerParts("Jan 3, 10:00 AM", "Bob")

    def test_surrounding_dashes(self) -> None:
        parts = parse_banner("--- On Mon, Jan 2, 2012, Alice wrote: ---")
        assert parts == BannerParts("Mon, Jan 2, 2012", "Alice")

    def test_sender_only(self) -> None:
        """No recognizable date: the whole text is the sender."""
        assert parse_banner("On behalf of the team, Bob wrote:") == BannerParts(
            None, "behalf of the team, Bob"
        )

    def test_name_starting_like_a_weekday(self) -> None:
        """Day names only match as whole words."""
        assert parse_banner("On Satya Nadella wrote:") == BannerParts(None, "Satya Nadella")

    def test_non_attribution_banners(self) -> None:
        assert parse_banner("-----Original Message-----") == BannerParts(None, None)
        assert parse_banner("Begin forwarded message:") == BannerParts(None, None)
        assert parse_banner("") == BannerParts(None, None)

    def test_leading_space_from_joined_blank_line(self) -> None:
        parts = parse_banner(" On Jan 3, 2012, Bob wrote:")
        assert parts == BannerParts("Jan 3, 2012", "Bob")
