"""Error taxonomy raised by the booking core.

The request layer maps these onto its own responses; nothing here knows
about HTTP status codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from booking_core.scheduling.intervals import TimeInterval


class BookingError(Exception):
    """Base class for every error raised by the booking core."""


class NotFoundError(BookingError):
    """A referenced entity is missing or belongs to another tenant."""

    def __init__(self, entity: str, entity_id: Optional[str] = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        suffix = f" '{entity_id}'" if entity_id else ""
        super().__init__(f"{entity}{suffix} not found")


class BookingConflictError(BookingError):
    """The candidate interval overlaps an active booking.

    ``conflicts`` holds the overlapping intervals for client display.
    """

    def __init__(
        self,
        message: str = "Time slot is not available",
        conflicts: Optional[list[TimeInterval]] = None,
    ) -> None:
        super().__init__(message)
        self.conflicts: list[TimeInterval] = list(conflicts or [])

    def to_dict(self) -> dict:
        """Serializable payload for the request layer."""
        return {
            "message": str(self),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


class OutOfBookingWindowError(BookingError):
    """The candidate start violates min-advance or max-advance limits."""


class InvalidTransitionError(BookingError):
    """The requested status change is not allowed from the current status."""


class StoreError(BookingError):
    """An underlying persistence failure. Fatal to the current request."""
