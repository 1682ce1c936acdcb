"""
Booking store contract consumed by the booking core.

Implementations own persistence only. Tenant ownership checks are done by
the caller; every query method that takes a ``tenant_id`` must never return
rows from another tenant.

Stores must reject an insert or interval update that would overlap an active
booking for the same tenant and staff (or the unassigned bucket) by raising
``BookingConflictError``, and wrap driver failures in ``StoreError``.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from booking_core.schemas.booking_schema import Booking, BookingFilters, BookingStatus
from booking_core.schemas.customer_schema import Customer
from booking_core.schemas.service_schema import Service
from booking_core.schemas.staff_schema import Staff


@runtime_checkable
class BookingStore(Protocol):
    async def find_bookings_by_tenant(
        self, tenant_id: str, filters: Optional[BookingFilters] = None
    ) -> list[Booking]:
        """Bookings of one tenant matching ``filters``, ordered by start time."""
        ...

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        ...

    async def create_booking(self, booking: Booking) -> Booking:
        ...

    async def update_booking(self, booking_id: str, patch: dict[str, Any]) -> Booking:
        ...

    async def find_service(self, service_id: str) -> Optional[Service]:
        ...

    async def find_staff(self, staff_id: str) -> Optional[Staff]:
        ...

    async def find_customer(self, customer_id: str) -> Optional[Customer]:
        ...


def overlap_filters(booking: Booking) -> BookingFilters:
    """Filters selecting active bookings that could collide with ``booking``."""
    return BookingFilters(
        staff_id=booking.staff_id,
        unassigned_only=booking.staff_id is None,
        status_not_in=[BookingStatus.CANCELLED],
        start_before=booking.end_time,
        end_after=booking.start_time,
        exclude_id=booking.id,
    )
