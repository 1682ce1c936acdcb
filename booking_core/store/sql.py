"""
Relational booking store backed by SQLAlchemy (async).

Each call opens its own session and commits or rolls back before returning.
Inserts and interval updates first lock the resource they write to, then
re-check overlap in the same transaction:

- staffed bookings lock the staff row (``SELECT ... FOR UPDATE``);
- unassigned bookings on PostgreSQL take ``pg_advisory_xact_lock`` keyed on
  the tenant;
- SQLite engines open every transaction with ``BEGIN IMMEDIATE`` (see
  ``booking_core.database``), which serializes writers on the file.

Two processes racing for a free slot therefore cannot both insert.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import Select, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_core.errors import BookingConflictError, BookingError, NotFoundError, StoreError
from booking_core.schemas.booking_schema import Booking, BookingFilters, BookingStatus
from booking_core.schemas.customer_schema import Customer
from booking_core.schemas.service_schema import Service
from booking_core.schemas.staff_schema import Staff
from booking_core.store.base import overlap_filters
from booking_core.store.models import BookingRow, CustomerRow, ServiceRow, StaffRow
from booking_core.utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

_BOOKING_COLUMNS = (
    "tenant_id", "customer_id", "service_id", "staff_id", "start_time", "end_time",
    "price", "deposit", "notes", "created_at", "updated_at", "cancelled_at",
)
_INTERVAL_FIELDS = frozenset({"start_time", "end_time", "staff_id", "status"})


# ---------------------------------------------------------------------- #
# Row <-> model conversion
# ---------------------------------------------------------------------- #

def _booking_from_row(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        tenant_id=row.tenant_id,
        customer_id=row.customer_id,
        service_id=row.service_id,
        staff_id=row.staff_id,
        start_time=row.start_time,
        end_time=row.end_time,
        status=BookingStatus(row.status),
        price=row.price,
        deposit=row.deposit,
        notes=row.notes,
        metadata=row.extra or {},
        created_at=row.created_at,
        updated_at=row.updated_at,
        cancelled_at=row.cancelled_at,
    )


def _write_booking(row: BookingRow, booking: Booking) -> None:
    for name in _BOOKING_COLUMNS:
        setattr(row, name, getattr(booking, name))
    row.status = booking.status.value
    row.extra = dict(booking.metadata)


def _service_from_row(row: ServiceRow) -> Service:
    return Service(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        description=row.description,
        duration=row.duration,
        buffer_time=row.buffer_time,
        price=row.price,
        currency=row.currency,
        max_capacity=row.max_capacity,
        staff_required=row.staff_required,
        is_active=row.is_active,
        booking_window=row.booking_window,
        cancellation_policy=row.cancellation_policy,
        metadata=row.extra or {},
    )


def _staff_from_row(row: StaffRow) -> Staff:
    return Staff(
        id=row.id,
        tenant_id=row.tenant_id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        role=row.role,
        service_ids=row.service_ids or [],
        working_hours=row.working_hours or {},
        breaks=row.breaks or [],
        is_active=row.is_active,
        metadata=row.extra or {},
    )


def _customer_from_row(row: CustomerRow) -> Customer:
    return Customer(
        id=row.id,
        tenant_id=row.tenant_id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        notes=row.notes,
        is_deleted=row.is_deleted,
    )


def _apply_filters(stmt: Select, filters: BookingFilters) -> Select:
    if filters.unassigned_only:
        stmt = stmt.where(BookingRow.staff_id.is_(None))
    if filters.staff_id is not None:
        stmt = stmt.where(BookingRow.staff_id == filters.staff_id)
    if filters.customer_id is not None:
        stmt = stmt.where(BookingRow.customer_id == filters.customer_id)
    if filters.statuses is not None:
        stmt = stmt.where(BookingRow.status.in_([s.value for s in filters.statuses]))
    if filters.status_not_in:
        stmt = stmt.where(BookingRow.status.not_in([s.value for s in filters.status_not_in]))
    if filters.start_from is not None:
        stmt = stmt.where(BookingRow.start_time >= filters.start_from)
    if filters.start_before is not None:
        stmt = stmt.where(BookingRow.start_time < filters.start_before)
    if filters.end_after is not None:
        stmt = stmt.where(BookingRow.end_time > filters.end_after)
    if filters.exclude_id is not None:
        stmt = stmt.where(BookingRow.id != filters.exclude_id)
    return stmt


class SqlBookingStore:
    """BookingStore implementation over an ``async_sessionmaker``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except BookingError:
                await session.rollback()
                raise
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Booking store failure: %s", exc)
                raise StoreError(f"Booking store failure: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Seeding (admin / tests)
    # ------------------------------------------------------------------ #

    async def add_service(self, service: Service) -> Service:
        async with self._session() as session:
            session.add(ServiceRow(
                id=service.id,
                tenant_id=service.tenant_id,
                name=service.name,
                description=service.description,
                duration=service.duration,
                buffer_time=service.buffer_time,
                price=service.price,
                currency=service.currency,
                max_capacity=service.max_capacity,
                staff_required=service.staff_required,
                is_active=service.is_active,
                booking_window=(
                    service.booking_window.model_dump() if service.booking_window else None
                ),
                cancellation_policy=(
                    service.cancellation_policy.model_dump()
                    if service.cancellation_policy else None
                ),
                extra=dict(service.metadata),
            ))
        return service

    async def add_staff(self, staff: Staff) -> Staff:
        async with self._session() as session:
            session.add(StaffRow(
                id=staff.id,
                tenant_id=staff.tenant_id,
                first_name=staff.first_name,
                last_name=staff.last_name,
                email=staff.email,
                role=staff.role,
                service_ids=list(staff.service_ids),
                working_hours={
                    str(day): [r.model_dump() for r in ranges]
                    for day, ranges in staff.working_hours.items()
                },
                breaks=[b.model_dump() for b in staff.breaks],
                is_active=staff.is_active,
                extra=dict(staff.metadata),
            ))
        return staff

    async def add_customer(self, customer: Customer) -> Customer:
        async with self._session() as session:
            session.add(CustomerRow(**customer.model_dump()))
        return customer

    # ------------------------------------------------------------------ #
    # BookingStore contract
    # ------------------------------------------------------------------ #

    async def find_bookings_by_tenant(
        self, tenant_id: str, filters: Optional[BookingFilters] = None
    ) -> list[Booking]:
        filters = filters or BookingFilters()
        stmt = _apply_filters(
            select(BookingRow).where(BookingRow.tenant_id == tenant_id), filters
        ).order_by(BookingRow.start_time, BookingRow.created_at)
        if filters.offset:
            stmt = stmt.offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        async with self._session() as session:
            rows = (await session.scalars(stmt)).all()
            return [_booking_from_row(row) for row in rows]

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        async with self._session() as session:
            row = await session.get(BookingRow, booking_id)
            return _booking_from_row(row) if row else None

    async def create_booking(self, booking: Booking) -> Booking:
        async with self._session() as session:
            if booking.is_active:
                await self._lock_resource(session, booking.tenant_id, booking.staff_id)
                await self._reject_overlap(session, booking)
            row = BookingRow(id=booking.id)
            _write_booking(row, booking)
            session.add(row)
            await session.flush()
            logger.debug("Booking stored: %s (tenant %s)", booking.id, booking.tenant_id)
            return _booking_from_row(row)

    async def update_booking(self, booking_id: str, patch: dict[str, Any]) -> Booking:
        async with self._session() as session:
            row = await session.get(BookingRow, booking_id)
            if row is None:
                raise NotFoundError("Booking", booking_id)
            moves_interval = bool(_INTERVAL_FIELDS.intersection(patch))
            if moves_interval:
                # Resource lock before the row lock, same order as inserts
                await self._lock_resource(
                    session, row.tenant_id, patch.get("staff_id", row.staff_id)
                )
            await session.refresh(row, with_for_update=True)

            data = _booking_from_row(row).model_dump()
            data.update(patch)
            data["updated_at"] = ensure_utc(patch.get("updated_at", utcnow()))
            updated = Booking.model_validate(data)
            if updated.is_active and moves_interval:
                await self._reject_overlap(session, updated)
            _write_booking(row, updated)
            await session.flush()
            return _booking_from_row(row)

    async def find_service(self, service_id: str) -> Optional[Service]:
        async with self._session() as session:
            row = await session.get(ServiceRow, service_id)
            return _service_from_row(row) if row else None

    async def find_staff(self, staff_id: str) -> Optional[Staff]:
        async with self._session() as session:
            row = await session.get(StaffRow, staff_id)
            return _staff_from_row(row) if row else None

    async def find_customer(self, customer_id: str) -> Optional[Customer]:
        async with self._session() as session:
            row = await session.get(CustomerRow, customer_id)
            return _customer_from_row(row) if row else None

    async def _lock_resource(
        self, session: AsyncSession, tenant_id: str, staff_id: Optional[str]
    ) -> None:
        """Hold the (tenant, staff) resource until the transaction ends."""
        if staff_id is not None:
            await session.execute(
                select(StaffRow.id).where(StaffRow.id == staff_id).with_for_update()
            )
            return
        if session.get_bind().dialect.name == "postgresql":
            await session.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                {"key": f"{tenant_id}:unassigned"},
            )

    async def _reject_overlap(self, session: AsyncSession, booking: Booking) -> None:
        stmt = _apply_filters(
            select(BookingRow).where(BookingRow.tenant_id == booking.tenant_id),
            overlap_filters(booking),
        ).with_for_update()
        clashes = (await session.scalars(stmt)).all()
        if clashes:
            logger.warning(
                "Store rejected overlapping booking %s for staff %s",
                booking.id, booking.staff_id,
            )
            raise BookingConflictError(
                conflicts=sorted(_booking_from_row(row).interval for row in clashes)
            )
