"""
Conflict detection between a candidate interval and existing bookings.

Scope is always one tenant and one resource: a named staff member, or the
"unassigned" bucket of bookings made without staff. Unassigned bookings
never collide with staffed ones and bookings of different staff never
collide with each other.
"""

import logging
from typing import Optional

from booking_core.scheduling.intervals import TimeInterval, overlaps
from booking_core.schemas.booking_schema import Booking, BookingFilters, BookingStatus
from booking_core.store.base import BookingStore

logger = logging.getLogger(__name__)


class ConflictDetector:
    """Checks candidate intervals against active bookings in the store."""

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    async def find_conflicts(
        self,
        tenant_id: str,
        staff_id: Optional[str],
        candidate: TimeInterval,
        exclude_booking_id: Optional[str] = None,
    ) -> list[Booking]:
        """
        Return active bookings overlapping ``candidate`` for the same resource.

        Args:
            tenant_id: Tenant that owns the resource.
            staff_id: Staff member, or None for the unassigned bucket.
            candidate: Proposed ``[start, end)`` interval.
            exclude_booking_id: Booking to ignore (used when rescheduling).

        Returns:
            Overlapping bookings ordered by start time.
        """
        filters = BookingFilters(
            staff_id=staff_id,
            unassigned_only=staff_id is None,
            status_not_in=[BookingStatus.CANCELLED],
            start_before=candidate.end,
            end_after=candidate.start,
            exclude_id=exclude_booking_id,
        )
        existing = await self._store.find_bookings_by_tenant(tenant_id, filters)
        conflicts = [
            b for b in existing
            if b.tenant_id == tenant_id
            and b.staff_id == staff_id
            and b.is_active
            and b.id != exclude_booking_id
            and overlaps(b.interval, candidate)
        ]
        if conflicts:
            logger.debug(
                "%d conflict(s) for tenant %s staff %s at %s",
                len(conflicts), tenant_id, staff_id, candidate.start.isoformat(),
            )
        return conflicts

    async def has_conflict(
        self,
        tenant_id: str,
        staff_id: Optional[str],
        candidate: TimeInterval,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        conflicts = await self.find_conflicts(
            tenant_id, staff_id, candidate, exclude_booking_id
        )
        return bool(conflicts)

    async def active_intervals(
        self, tenant_id: str, staff_id: Optional[str], window: TimeInterval
    ) -> list[TimeInterval]:
        """Intervals of active bookings touching ``window``, for batch slot filtering."""
        bookings = await self.find_conflicts(tenant_id, staff_id, window)
        return [b.interval for b in bookings]
