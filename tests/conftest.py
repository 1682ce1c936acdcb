"""Shared test fixtures and helpers."""

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest

from booking_core.config import SchedulingConfig
from booking_core.lifecycle.manager import BookingLifecycleManager
from booking_core.scheduling.slots import SlotGenerator
from booking_core.schemas.booking_schema import Booking, BookingStatus
from booking_core.schemas.customer_schema import Customer
from booking_core.schemas.service_schema import Service
from booking_core.schemas.staff_schema import Staff
from booking_core.store.memory import InMemoryBookingStore

TENANT = "tenant-a"
OTHER_TENANT = "tenant-b"

# Monday; slot tests look one week ahead
NOW = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)
DAY = date(2025, 3, 17)

UTC_CONFIG = SchedulingConfig(
    timezone="UTC",
    default_open="09:00",
    default_close="17:00",
    max_slot_days=31,
    list_limit=50,
)


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    """UTC timestamp on ``day``."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def make_service(
    service_id: str = "svc-buffered",
    tenant_id: str = TENANT,
    duration: int = 30,
    buffer_time: int = 10,
    **kwargs,
) -> Service:
    return Service(
        id=service_id,
        tenant_id=tenant_id,
        name=kwargs.pop("name", "Haircut"),
        duration=duration,
        buffer_time=buffer_time,
        price=kwargs.pop("price", Decimal("25.00")),
        **kwargs,
    )


def make_staff(
    staff_id: str = "staff-1",
    tenant_id: str = TENANT,
    service_ids: Optional[list[str]] = None,
    **kwargs,
) -> Staff:
    return Staff(
        id=staff_id,
        tenant_id=tenant_id,
        first_name=kwargs.pop("first_name", "Ana"),
        service_ids=service_ids if service_ids is not None else ["svc-buffered", "svc-plain"],
        working_hours=kwargs.pop(
            "working_hours", {"monday": [{"start": "09:00", "end": "12:00"}]}
        ),
        breaks=kwargs.pop(
            "breaks", [{"day_of_week": 0, "start": "10:00", "end": "10:15"}]
        ),
        **kwargs,
    )


def make_customer(
    customer_id: str = "cust-1", tenant_id: str = TENANT, is_deleted: bool = False
) -> Customer:
    return Customer(
        id=customer_id,
        tenant_id=tenant_id,
        email=f"{customer_id}@example.com",
        first_name="Sam",
        last_name="Taylor",
        is_deleted=is_deleted,
    )


def make_booking(
    start: datetime,
    minutes: int = 40,
    staff_id: Optional[str] = "staff-1",
    tenant_id: str = TENANT,
    status: BookingStatus = BookingStatus.PENDING,
    service_id: str = "svc-buffered",
    customer_id: str = "cust-1",
) -> Booking:
    """Build a booking directly, bypassing the lifecycle manager."""
    return Booking(
        id=uuid.uuid4().hex,
        tenant_id=tenant_id,
        customer_id=customer_id,
        service_id=service_id,
        staff_id=staff_id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        status=status,
        price=Decimal("25.00"),
        created_at=NOW,
        updated_at=NOW,
    )


def seed(store: InMemoryBookingStore) -> InMemoryBookingStore:
    """Two tenants: tenant-a is fully populated, tenant-b owns look-alike records."""
    store.add_service(make_service())
    store.add_service(make_service("svc-plain", buffer_time=0))
    store.add_service(make_service("svc-long", duration=240, buffer_time=0))
    store.add_service(make_service("svc-foreign", tenant_id=OTHER_TENANT))
    store.add_staff(make_staff())
    store.add_staff(make_staff("staff-2", first_name="Ben"))
    store.add_staff(make_staff("staff-foreign", tenant_id=OTHER_TENANT))
    store.add_customer(make_customer())
    store.add_customer(make_customer("cust-deleted", is_deleted=True))
    store.add_customer(make_customer("cust-foreign", tenant_id=OTHER_TENANT))
    return store


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def store():
    return seed(InMemoryBookingStore())


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def manager(store, clock):
    return BookingLifecycleManager(store, clock=clock)


@pytest.fixture
def slot_generator(store, clock):
    return SlotGenerator(store, config=UTC_CONFIG, clock=clock)
