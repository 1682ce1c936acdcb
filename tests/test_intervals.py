"""Tests for half-open interval arithmetic."""

from datetime import timedelta

import pytest

from booking_core.scheduling.intervals import TimeInterval, overlaps, shift, subtract
from tests.conftest import at


def iv(h1: int, m1: int, h2: int, m2: int) -> TimeInterval:
    return TimeInterval(at(h1, m1), at(h2, m2))


class TestTimeInterval:
    def test_rejects_degenerate_interval(self):
        with pytest.raises(ValueError):
            TimeInterval(at(10), at(10))

    def test_rejects_reversed_interval(self):
        with pytest.raises(ValueError):
            TimeInterval(at(11), at(10))

    def test_duration(self):
        assert iv(10, 0, 10, 40).duration == timedelta(minutes=40)

    def test_intervals_sort_by_start(self):
        assert sorted([iv(11, 0, 12, 0), iv(9, 0, 10, 0)])[0] == iv(9, 0, 10, 0)

    def test_to_dict_uses_iso_format(self):
        assert iv(9, 0, 9, 30).to_dict() == {
            "start": "2025-03-17T09:00:00+00:00",
            "end": "2025-03-17T09:30:00+00:00",
        }


class TestOverlaps:
    PAIRS = [
        (iv(10, 0, 10, 40), iv(10, 30, 11, 0)),
        (iv(10, 0, 10, 40), iv(10, 40, 11, 10)),
        (iv(9, 0, 12, 0), iv(10, 0, 10, 15)),
        (iv(9, 0, 9, 30), iv(13, 0, 14, 0)),
        (iv(10, 0, 11, 0), iv(10, 0, 11, 0)),
    ]

    @pytest.mark.parametrize("a,b", PAIRS)
    def test_symmetric(self, a, b):
        assert overlaps(a, b) == overlaps(b, a)

    def test_partial_overlap(self):
        assert overlaps(iv(10, 0, 10, 40), iv(10, 30, 11, 0))

    def test_adjacent_intervals_do_not_overlap(self):
        assert not overlaps(iv(10, 0, 10, 40), iv(10, 40, 11, 10))
        assert not overlaps(iv(10, 40, 11, 10), iv(10, 0, 10, 40))

    def test_containment_overlaps(self):
        assert overlaps(iv(9, 0, 12, 0), iv(10, 0, 10, 15))

    def test_identical_intervals_overlap(self):
        assert overlaps(iv(10, 0, 11, 0), iv(10, 0, 11, 0))

    def test_disjoint_intervals(self):
        assert not overlaps(iv(9, 0, 9, 30), iv(13, 0, 14, 0))


class TestShift:
    def test_shift_forward(self):
        assert shift(at(10), 40) == at(10, 40)

    def test_shift_backward(self):
        assert shift(at(10), -15) == at(9, 45)


class TestSubtract:
    def test_break_in_the_middle(self):
        result = subtract([iv(9, 0, 12, 0)], [iv(10, 0, 10, 15)])
        assert result == [iv(9, 0, 10, 0), iv(10, 15, 12, 0)]

    def test_cut_at_window_edge(self):
        assert subtract([iv(9, 0, 12, 0)], [iv(9, 0, 9, 30)]) == [iv(9, 30, 12, 0)]

    def test_cut_covering_window_removes_it(self):
        assert subtract([iv(9, 0, 10, 0)], [iv(8, 0, 11, 0)]) == []

    def test_cut_outside_window_is_ignored(self):
        assert subtract([iv(9, 0, 10, 0)], [iv(10, 0, 10, 30)]) == [iv(9, 0, 10, 0)]

    def test_multiple_windows_and_cuts(self):
        result = subtract(
            [iv(13, 0, 17, 0), iv(9, 0, 12, 0)],
            [iv(11, 0, 14, 0), iv(9, 30, 9, 45)],
        )
        assert result == [iv(9, 0, 9, 30), iv(9, 45, 11, 0), iv(14, 0, 17, 0)]

    def test_no_cuts_returns_sorted_windows(self):
        assert subtract([iv(13, 0, 14, 0), iv(9, 0, 10, 0)], []) == [
            iv(9, 0, 10, 0), iv(13, 0, 14, 0),
        ]
