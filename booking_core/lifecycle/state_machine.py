"""
Booking status state machine.

Every allowed status change is listed explicitly. Anything not in the table
is rejected with ``InvalidTransitionError``, including any change out of a
terminal status (cancelled, completed, no_show).

Usage:
    BookingStateMachine.validate(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    assert BookingStateMachine.is_terminal(BookingStatus.CANCELLED)
"""

import logging
from dataclasses import dataclass

from booking_core.errors import InvalidTransitionError
from booking_core.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus


class BookingStateMachine:
    """Static transition table for booking statuses."""

    TRANSITIONS: list[Transition] = [
        # --- Pending ---
        Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED),
        Transition(BookingStatus.PENDING, BookingStatus.CANCELLED),
        Transition(BookingStatus.PENDING, BookingStatus.COMPLETED),
        Transition(BookingStatus.PENDING, BookingStatus.NO_SHOW),

        # --- Confirmed ---
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
        Transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
        Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
    ]

    INITIAL: BookingStatus = BookingStatus.PENDING

    @classmethod
    def can_transition(cls, current: BookingStatus, target: BookingStatus) -> bool:
        return any(
            t.from_status == current and t.to_status == target for t in cls.TRANSITIONS
        )

    @classmethod
    def validate(cls, current: BookingStatus, target: BookingStatus) -> None:
        """
        Check a status change against the transition table.

        Raises:
            InvalidTransitionError: If the change is not allowed.
        """
        if cls.can_transition(current, target):
            logger.debug("Status transition allowed: %s -> %s", current.value, target.value)
            return
        valid = [s.value for s in cls.get_valid_targets(current)]
        raise InvalidTransitionError(
            f"Cannot change booking status from '{current.value}' "
            f"to '{target.value}'. Valid targets: {valid}"
        )

    @classmethod
    def get_valid_targets(cls, current: BookingStatus) -> list[BookingStatus]:
        """Return all statuses reachable from ``current``."""
        return [t.to_status for t in cls.TRANSITIONS if t.from_status == current]

    @classmethod
    def is_terminal(cls, status: BookingStatus) -> bool:
        return not cls.get_valid_targets(status)
