"""
In-memory booking store.

Used by tests and the console demo. In production the relational store in
``booking_core.store.sql`` is used instead; both honour the same contract.
"""

import logging
from typing import Any, Optional

from booking_core.errors import BookingConflictError, NotFoundError
from booking_core.schemas.booking_schema import Booking, BookingFilters
from booking_core.schemas.customer_schema import Customer
from booking_core.schemas.service_schema import Service
from booking_core.schemas.staff_schema import Staff
from booking_core.store.base import overlap_filters
from booking_core.utils import utcnow

logger = logging.getLogger(__name__)

_INTERVAL_FIELDS = frozenset({"start_time", "end_time", "staff_id", "status"})


class InMemoryBookingStore:
    """Dict-backed store. Returned models are copies, never live references."""

    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._services: dict[str, Service] = {}
        self._staff: dict[str, Staff] = {}
        self._customers: dict[str, Customer] = {}

    # ------------------------------------------------------------------ #
    # Seeding
    # ------------------------------------------------------------------ #

    def add_service(self, service: Service) -> Service:
        self._services[service.id] = service
        return service

    def add_staff(self, staff: Staff) -> Staff:
        self._staff[staff.id] = staff
        return staff

    def add_customer(self, customer: Customer) -> Customer:
        self._customers[customer.id] = customer
        return customer

    def reset(self) -> None:
        """Clear all records. Used by test fixtures for isolation."""
        self._bookings.clear()
        self._services.clear()
        self._staff.clear()
        self._customers.clear()

    # ------------------------------------------------------------------ #
    # BookingStore contract
    # ------------------------------------------------------------------ #

    async def find_bookings_by_tenant(
        self, tenant_id: str, filters: Optional[BookingFilters] = None
    ) -> list[Booking]:
        filters = filters or BookingFilters()
        rows = sorted(
            (
                b for b in self._bookings.values()
                if b.tenant_id == tenant_id and filters.matches(b)
            ),
            key=lambda b: (b.start_time, b.created_at),
        )
        rows = rows[filters.offset:]
        if filters.limit is not None:
            rows = rows[:filters.limit]
        return [b.model_copy(deep=True) for b in rows]

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def create_booking(self, booking: Booking) -> Booking:
        if booking.is_active:
            self._reject_overlap(booking)
        self._bookings[booking.id] = booking.model_copy(deep=True)
        logger.debug("Booking stored: %s (tenant %s)", booking.id, booking.tenant_id)
        return booking.model_copy(deep=True)

    async def update_booking(self, booking_id: str, patch: dict[str, Any]) -> Booking:
        current = self._bookings.get(booking_id)
        if current is None:
            raise NotFoundError("Booking", booking_id)
        data = current.model_dump()
        data.update(patch)
        data["updated_at"] = patch.get("updated_at", utcnow())
        updated = Booking.model_validate(data)
        if updated.is_active and _INTERVAL_FIELDS.intersection(patch):
            self._reject_overlap(updated)
        self._bookings[booking_id] = updated
        return updated.model_copy(deep=True)

    async def find_service(self, service_id: str) -> Optional[Service]:
        service = self._services.get(service_id)
        return service.model_copy(deep=True) if service else None

    async def find_staff(self, staff_id: str) -> Optional[Staff]:
        staff = self._staff.get(staff_id)
        return staff.model_copy(deep=True) if staff else None

    async def find_customer(self, customer_id: str) -> Optional[Customer]:
        customer = self._customers.get(customer_id)
        return customer.model_copy(deep=True) if customer else None

    def _reject_overlap(self, booking: Booking) -> None:
        filters = overlap_filters(booking)
        clashes = [
            b.interval for b in self._bookings.values()
            if b.tenant_id == booking.tenant_id and filters.matches(b)
        ]
        if clashes:
            logger.warning(
                "Store rejected overlapping booking %s for staff %s",
                booking.id, booking.staff_id,
            )
            raise BookingConflictError(conflicts=sorted(clashes))
