"""
Availability rule set: booking-window limits, booked interval length,
and cancellation eligibility for a service.

Pure functions over service configuration. The cancellation helpers are
queries only; the lifecycle manager does not block late cancellations.
"""

import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from booking_core.errors import OutOfBookingWindowError
from booking_core.scheduling.intervals import TimeInterval, shift
from booking_core.schemas.booking_schema import Booking
from booking_core.schemas.service_schema import Service

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def booking_window_bounds(service: Service, now: datetime) -> tuple[datetime, datetime]:
    """Earliest and latest allowed start times for ``service`` as seen at ``now``."""
    window = service.booking_window
    if window is None:
        return datetime.min.replace(tzinfo=now.tzinfo), datetime.max.replace(tzinfo=now.tzinfo)
    earliest = now + timedelta(hours=window.min_advance_hours)
    latest = now + timedelta(days=window.max_advance_days)
    return earliest, latest


def within_booking_window(service: Service, start: datetime, now: datetime) -> bool:
    earliest, latest = booking_window_bounds(service, now)
    return earliest <= start <= latest


def check_booking_window(service: Service, start: datetime, now: datetime) -> None:
    """
    Validate a candidate start against the service's booking window.

    Raises:
        OutOfBookingWindowError: If the start is too soon or too far ahead.
    """
    earliest, latest = booking_window_bounds(service, now)
    if start < earliest:
        raise OutOfBookingWindowError(
            f"Service '{service.id}' must be booked at least "
            f"{service.booking_window.min_advance_hours:g} hours in advance"
        )
    if start > latest:
        raise OutOfBookingWindowError(
            f"Service '{service.id}' cannot be booked more than "
            f"{service.booking_window.max_advance_days:g} days in advance"
        )


def booked_interval(service: Service, start: datetime) -> TimeInterval:
    """The interval a booking occupies: duration plus trailing buffer."""
    return TimeInterval(start, shift(start, service.block_minutes))


def can_cancel(booking: Booking, service: Service, now: datetime) -> bool:
    """True if cancelling at ``now`` respects the service's notice period."""
    policy = service.cancellation_policy
    if policy is None:
        return True
    return now + timedelta(hours=policy.min_hours_notice) <= booking.start_time


def refund_amount(booking: Booking, service: Service, now: datetime) -> Decimal:
    """Refund due if the booking were cancelled at ``now``.

    Full price without a policy, the policy's percentage inside the notice
    period, nothing after it.
    """
    policy = service.cancellation_policy
    if policy is None:
        return booking.price
    if not can_cancel(booking, service, now):
        return Decimal("0")
    share = booking.price * Decimal(str(policy.refund_percent)) / Decimal("100")
    return share.quantize(_CENTS, rounding=ROUND_HALF_UP)
