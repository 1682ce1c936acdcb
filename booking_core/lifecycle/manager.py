"""
Booking lifecycle manager: creation, status changes and rescheduling.

Creation follows Validate -> Window check -> Conflict check -> Persist. The
conflict check and the write run inside the per-resource lock so two callers
racing for the same slot cannot both succeed; the store re-checks overlap at
write time as well. No refunds or notifications are triggered here; other
components react to the resulting booking state.
"""

import uuid
from datetime import datetime
from typing import Any, Callable, Optional

from booking_core.config import settings
from booking_core.errors import BookingConflictError, InvalidTransitionError, NotFoundError
from booking_core.lifecycle.locks import ResourceLockRegistry
from booking_core.lifecycle.state_machine import BookingStateMachine
from booking_core.logging_context import get_request_logger
from booking_core.scheduling.conflicts import ConflictDetector
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.rules import booked_interval, check_booking_window
from booking_core.schemas.booking_schema import (
    Booking,
    BookingCreate,
    BookingFilters,
    BookingStatus,
)
from booking_core.schemas.customer_schema import Customer
from booking_core.schemas.service_schema import Service
from booking_core.schemas.staff_schema import Staff
from booking_core.store.base import BookingStore
from booking_core.utils import ensure_utc, utcnow

logger = get_request_logger(__name__)

CANCELLATION_PREFIX = "Cancellation reason: "
NO_REASON = "No reason provided"
NOTES_SEPARATOR = "\n\n"

_RESCHEDULABLE = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


def append_cancellation_reason(notes: Optional[str], reason: Optional[str]) -> str:
    """Append the cancellation reason to existing notes, never replacing them."""
    line = CANCELLATION_PREFIX + (reason or NO_REASON)
    if notes:
        return notes + NOTES_SEPARATOR + line
    return line


def _ensure_reschedulable(booking: Booking) -> None:
    if booking.status not in _RESCHEDULABLE:
        raise InvalidTransitionError(
            f"Cannot reschedule a booking in status '{booking.status.value}'"
        )


class BookingLifecycleManager:
    """Orchestrates booking creation and status transitions for all tenants."""

    def __init__(
        self,
        store: BookingStore,
        detector: Optional[ConflictDetector] = None,
        locks: Optional[ResourceLockRegistry] = None,
        clock: Callable[[], datetime] = utcnow,
        list_limit: int = settings.scheduling.list_limit,
    ) -> None:
        self._store = store
        self._detector = detector or ConflictDetector(store)
        self._locks = locks or ResourceLockRegistry()
        self._clock = clock
        self._list_limit = list_limit

    # ------------------------------------------------------------------ #
    # Creation
    # ------------------------------------------------------------------ #

    async def create_booking(self, data: BookingCreate) -> Booking:
        """
        Create a booking in ``pending`` status.

        Raises:
            NotFoundError: Service, customer or staff missing or in another tenant.
            OutOfBookingWindowError: Start violates the service's booking window.
            BookingConflictError: The interval overlaps an active booking.
        """
        service = await self._load_service(data.tenant_id, data.service_id)
        await self._load_customer(data.tenant_id, data.customer_id)
        if data.staff_id is not None:
            await self._load_staff(data.tenant_id, data.staff_id)

        now = self._clock()
        check_booking_window(service, data.start_time, now)
        interval = booked_interval(service, data.start_time)

        async with self._locks.hold((data.tenant_id, data.staff_id)):
            await self._raise_on_conflict(data.tenant_id, data.staff_id, interval)
            booking = Booking(
                id=uuid.uuid4().hex,
                tenant_id=data.tenant_id,
                customer_id=data.customer_id,
                service_id=data.service_id,
                staff_id=data.staff_id,
                start_time=interval.start,
                end_time=interval.end,
                status=BookingStateMachine.INITIAL,
                price=service.price,
                deposit=data.deposit,
                notes=data.notes,
                metadata=data.metadata,
                created_at=now,
                updated_at=now,
            )
            created = await self._store.create_booking(booking)

        logger.info(
            "Booking created: %s for customer %s at %s (staff %s)",
            created.id, created.customer_id, created.start_time.isoformat(), created.staff_id,
        )
        return created

    # ------------------------------------------------------------------ #
    # Status transitions
    # ------------------------------------------------------------------ #

    async def update_status(
        self,
        tenant_id: str,
        booking_id: str,
        new_status: BookingStatus,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to ``new_status``.

        Cancelling stamps ``cancelled_at`` and appends ``reason`` to the notes.

        Raises:
            NotFoundError: Booking missing or in another tenant.
            InvalidTransitionError: Change not allowed from the current status.
        """
        new_status = BookingStatus(new_status)
        booking = await self._load_booking(tenant_id, booking_id)

        async with self._locks.hold((tenant_id, booking.staff_id)):
            booking = await self._load_booking(tenant_id, booking_id)
            try:
                BookingStateMachine.validate(booking.status, new_status)
            except InvalidTransitionError:
                logger.info(
                    "Rejected status change for %s: %s -> %s",
                    booking_id, booking.status.value, new_status.value,
                )
                raise

            now = self._clock()
            patch: dict[str, Any] = {"status": new_status, "updated_at": now}
            if new_status == BookingStatus.CANCELLED:
                patch["cancelled_at"] = now
                patch["notes"] = append_cancellation_reason(booking.notes, reason)
            updated = await self._store.update_booking(booking_id, patch)

        logger.info(
            "Booking %s status: %s -> %s", booking_id, booking.status.value, new_status.value
        )
        return updated

    async def cancel_booking(
        self, tenant_id: str, booking_id: str, reason: Optional[str] = None
    ) -> Booking:
        """Cancel a booking. Cancellation policy is not enforced here."""
        return await self.update_status(tenant_id, booking_id, BookingStatus.CANCELLED, reason)

    # ------------------------------------------------------------------ #
    # Rescheduling
    # ------------------------------------------------------------------ #

    async def reschedule_booking(
        self, tenant_id: str, booking_id: str, new_start: datetime
    ) -> Booking:
        """
        Move an active booking to a new start time, keeping its staff.

        Raises:
            NotFoundError: Booking or its service missing.
            InvalidTransitionError: Booking is cancelled, completed or no-show.
            OutOfBookingWindowError: New start violates the booking window.
            BookingConflictError: New interval overlaps another active booking.
        """
        new_start = ensure_utc(new_start)
        booking = await self._load_booking(tenant_id, booking_id)
        _ensure_reschedulable(booking)
        service = await self._load_service(tenant_id, booking.service_id)

        now = self._clock()
        check_booking_window(service, new_start, now)
        interval = booked_interval(service, new_start)

        async with self._locks.hold((tenant_id, booking.staff_id)):
            booking = await self._load_booking(tenant_id, booking_id)
            _ensure_reschedulable(booking)
            await self._raise_on_conflict(
                tenant_id, booking.staff_id, interval, exclude_booking_id=booking_id
            )
            updated = await self._store.update_booking(
                booking_id,
                {"start_time": interval.start, "end_time": interval.end, "updated_at": now},
            )

        logger.info("Booking %s rescheduled to %s", booking_id, interval.start.isoformat())
        return updated

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    async def get_booking(self, tenant_id: str, booking_id: str) -> Booking:
        return await self._load_booking(tenant_id, booking_id)

    async def list_bookings(
        self, tenant_id: str, filters: Optional[BookingFilters] = None
    ) -> list[Booking]:
        """Bookings of one tenant ordered by start time, paginated."""
        filters = filters or BookingFilters()
        if filters.limit is None:
            filters = filters.model_copy(update={"limit": self._list_limit})
        return await self._store.find_bookings_by_tenant(tenant_id, filters)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _raise_on_conflict(
        self,
        tenant_id: str,
        staff_id: Optional[str],
        interval: TimeInterval,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        conflicts = await self._detector.find_conflicts(
            tenant_id, staff_id, interval, exclude_booking_id
        )
        if conflicts:
            logger.warning(
                "Slot %s-%s unavailable for staff %s (%d conflict(s))",
                interval.start.isoformat(), interval.end.isoformat(), staff_id, len(conflicts),
            )
            raise BookingConflictError(conflicts=[b.interval for b in conflicts])

    async def _load_booking(self, tenant_id: str, booking_id: str) -> Booking:
        booking = await self._store.get_booking(booking_id)
        if booking is None or booking.tenant_id != tenant_id:
            raise NotFoundError("Booking", booking_id)
        return booking

    async def _load_service(self, tenant_id: str, service_id: str) -> Service:
        service = await self._store.find_service(service_id)
        if service is None or service.tenant_id != tenant_id:
            raise NotFoundError("Service", service_id)
        return service

    async def _load_customer(self, tenant_id: str, customer_id: str) -> Customer:
        customer = await self._store.find_customer(customer_id)
        if customer is None or customer.tenant_id != tenant_id or customer.is_deleted:
            raise NotFoundError("Customer", customer_id)
        return customer

    async def _load_staff(self, tenant_id: str, staff_id: str) -> Staff:
        staff = await self._store.find_staff(staff_id)
        if staff is None or staff.tenant_id != tenant_id:
            raise NotFoundError("Staff", staff_id)
        return staff
