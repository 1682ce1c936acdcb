"""Tests for shared utility functions."""

from datetime import datetime, time, timedelta, timezone

import pytest

from booking_core.utils import ensure_utc, parse_clock, utcnow, weekday_index


class TestParseClock:
    def test_parses_hours_and_minutes(self):
        assert parse_clock("09:30") == time(9, 30)

    def test_strips_whitespace(self):
        assert parse_clock(" 17:00 ") == time(17, 0)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_clock("half past nine")


class TestWeekdayIndex:
    def test_integer_passthrough(self):
        assert weekday_index(0) == 0
        assert weekday_index(6) == 6

    def test_full_name_any_case(self):
        assert weekday_index("Tuesday") == 1
        assert weekday_index("SUNDAY") == 6

    def test_short_name(self):
        assert weekday_index("fri") == 4

    def test_digit_string(self):
        assert weekday_index("3") == 3

    @pytest.mark.parametrize("bad", [7, -1, "8", "funday"])
    def test_rejects_unknown(self, bad):
        with pytest.raises(ValueError):
            weekday_index(bad)


class TestEnsureUtc:
    def test_naive_is_taken_as_utc(self):
        result = ensure_utc(datetime(2025, 3, 17, 10, 0))
        assert result == datetime(2025, 3, 17, 10, 0, tzinfo=timezone.utc)

    def test_offset_converted(self):
        plus_two = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2025, 3, 17, 12, 0, tzinfo=plus_two))
        assert result == datetime(2025, 3, 17, 10, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo is not None
