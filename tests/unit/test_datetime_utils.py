"""
Unit tests for datetime utilities.

Tests date/time parsing, UTC-based weekday resolution and timezone helpers.
"""

import pytest
from datetime import date, time, timezone

from utils.datetime_utils import (
    barber_now,
    format_hhmm,
    get_timezone,
    parse_date_string,
    parse_time_string,
    utc_now,
    weekday_for_date,
    weekday_name,
)


class TestParseDateString:
    """Test strict YYYY-MM-DD parsing."""

    def test_valid_date(self):
        assert parse_date_string("2030-01-07") == date(2030, 1, 7)

    def test_strips_whitespace(self):
        assert parse_date_string("  2030-01-07 ") == date(2030, 1, 7)

    @pytest.mark.parametrize("value", ["", "   ", "2030/01/07", "07-01-2030", "2030-1-7", "2030-02-30", "tomorrow"])
    def test_invalid_formats_rejected(self, value):
        with pytest.raises(ValueError):
            parse_date_string(value)

    def test_dates_before_2020_rejected(self):
        with pytest.raises(ValueError, match="2020-01-01"):
            parse_date_string("2019-12-31")

    def test_minimum_date_accepted(self):
        assert parse_date_string("2020-01-01") == date(2020, 1, 1)


class TestParseTimeString:
    """Test HH:MM parsing."""

    def test_hours_and_minutes(self):
        assert parse_time_string("09:30") == time(9, 30)

    def test_with_seconds(self):
        assert parse_time_string("18:05:00") == time(18, 5)

    @pytest.mark.parametrize("value", ["", "25:00", "9h30", "12:60"])
    def test_invalid_times_rejected(self, value):
        with pytest.raises(ValueError):
            parse_time_string(value)

    def test_format_round_trip(self):
        assert format_hhmm(parse_time_string("07:05")) == "07:05"


class TestWeekdayForDate:
    """Test weekday resolution from calendar dates."""

    def test_known_weekdays(self):
        assert weekday_for_date(date(2024, 1, 1)) == 0  # Monday
        assert weekday_for_date(date(2030, 1, 7)) == 0  # Monday
        assert weekday_for_date(date(2024, 12, 25)) == 2  # Wednesday
        assert weekday_for_date(date(2024, 6, 16)) == 6  # Sunday

    def test_matches_calendar_weekday_for_a_whole_year(self):
        """The UTC-constructed weekday never drifts from the calendar date."""
        day = date(2028, 1, 1)
        while day.year == 2028:
            assert weekday_for_date(day) == day.weekday()
            day = date.fromordinal(day.toordinal() + 1)

    def test_weekday_name(self):
        assert weekday_name(0) == "monday"
        assert weekday_name(6) == "sunday"


class TestTimezones:
    """Test timezone helpers."""

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo == timezone.utc

    def test_default_timezone(self):
        assert str(get_timezone(None)) == "America/Argentina/Buenos_Aires"

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValueError):
            get_timezone("Mars/Olympus_Mons")

    def test_barber_now_uses_timezone(self):
        now = barber_now("America/Argentina/Buenos_Aires")
        assert now.utcoffset().total_seconds() == -3 * 3600
