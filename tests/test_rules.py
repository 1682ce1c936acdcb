"""Tests for booking-window and cancellation rules."""

from datetime import timedelta
from decimal import Decimal

import pytest

from booking_core.errors import OutOfBookingWindowError
from booking_core.scheduling.rules import (
    booked_interval,
    can_cancel,
    check_booking_window,
    refund_amount,
    within_booking_window,
)
from booking_core.schemas.service_schema import BookingWindow, CancellationPolicy
from tests.conftest import NOW, at, make_booking, make_service


class TestBookingWindow:
    def test_no_window_accepts_any_start(self):
        service = make_service()
        check_booking_window(service, NOW - timedelta(days=30), NOW)
        check_booking_window(service, NOW + timedelta(days=3000), NOW)

    def test_too_soon_rejected(self):
        service = make_service(booking_window=BookingWindow(min_advance_hours=2))
        with pytest.raises(OutOfBookingWindowError, match="at least 2 hours"):
            check_booking_window(service, NOW + timedelta(hours=1), NOW)

    def test_too_far_ahead_rejected(self):
        service = make_service(booking_window=BookingWindow(max_advance_days=14))
        with pytest.raises(OutOfBookingWindowError, match="more than 14 days"):
            check_booking_window(service, NOW + timedelta(days=15), NOW)

    def test_exact_bounds_accepted(self):
        service = make_service(
            booking_window=BookingWindow(min_advance_hours=2, max_advance_days=14)
        )
        check_booking_window(service, NOW + timedelta(hours=2), NOW)
        check_booking_window(service, NOW + timedelta(days=14), NOW)

    def test_window_defaults(self):
        window = BookingWindow()
        assert window.min_advance_hours == 0
        assert window.max_advance_days == 365

    def test_within_booking_window_matches_check(self):
        service = make_service(booking_window=BookingWindow(min_advance_hours=2))
        assert not within_booking_window(service, NOW + timedelta(hours=1), NOW)
        assert within_booking_window(service, NOW + timedelta(hours=3), NOW)


class TestBookedInterval:
    def test_includes_buffer_time(self):
        interval = booked_interval(make_service(duration=30, buffer_time=10), at(10))
        assert interval.start == at(10)
        assert interval.end == at(10, 40)

    def test_without_buffer(self):
        interval = booked_interval(make_service(duration=45, buffer_time=0), at(10))
        assert interval.end == at(10, 45)


class TestCancellation:
    def test_no_policy_always_cancellable(self):
        booking = make_booking(NOW + timedelta(minutes=5))
        assert can_cancel(booking, make_service(), NOW)

    def test_inside_notice_period(self):
        service = make_service(cancellation_policy=CancellationPolicy(min_hours_notice=24))
        booking = make_booking(NOW + timedelta(hours=23))
        assert not can_cancel(booking, service, NOW)

    def test_exactly_at_notice_boundary(self):
        service = make_service(cancellation_policy=CancellationPolicy(min_hours_notice=24))
        booking = make_booking(NOW + timedelta(hours=24))
        assert can_cancel(booking, service, NOW)

    def test_partial_refund_within_policy(self):
        service = make_service(
            cancellation_policy=CancellationPolicy(min_hours_notice=24, refund_percent=50)
        )
        booking = make_booking(NOW + timedelta(days=2))
        assert refund_amount(booking, service, NOW) == Decimal("12.50")

    def test_no_refund_after_notice_period(self):
        service = make_service(cancellation_policy=CancellationPolicy(min_hours_notice=24))
        booking = make_booking(NOW + timedelta(hours=1))
        assert refund_amount(booking, service, NOW) == Decimal("0")

    def test_full_refund_without_policy(self):
        booking = make_booking(NOW + timedelta(hours=1))
        assert refund_amount(booking, make_service(), NOW) == Decimal("25.00")

    def test_refund_percent_bounds_validated(self):
        with pytest.raises(ValueError):
            CancellationPolicy(refund_percent=120)
