"""
Offline console demo: walks through slots, bookings and conflicts.

Seeds an in-memory store with one tenant and runs the real slot generator,
conflict detector and lifecycle manager against it. No database, no network
calls.

Usage:
    python console_demo.py
    python console_demo.py --staff none
"""

import argparse
import asyncio
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from booking_core.errors import BookingConflictError, InvalidTransitionError
from booking_core.lifecycle.manager import BookingLifecycleManager
from booking_core.logging_context import set_request_id
from booking_core.scheduling.intervals import TimeInterval
from booking_core.scheduling.slots import SlotGenerator
from booking_core.schemas.booking_schema import BookingCreate
from booking_core.schemas.customer_schema import Customer
from booking_core.schemas.service_schema import CancellationPolicy, Service
from booking_core.schemas.staff_schema import Staff
from booking_core.store.memory import InMemoryBookingStore

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

TENANT_ID = "demo-salon"
WEEKDAY_HOURS = [{"start": "09:00", "end": "12:00"}, {"start": "13:00", "end": "17:00"}]


def build_store() -> InMemoryBookingStore:
    """Seed one tenant with a service, a staff member and a customer."""
    store = InMemoryBookingStore()
    store.add_service(Service(
        id="svc-cut",
        tenant_id=TENANT_ID,
        name="Haircut",
        duration=30,
        buffer_time=10,
        price=Decimal("25.00"),
        cancellation_policy=CancellationPolicy(min_hours_notice=24, refund_percent=50),
    ))
    store.add_staff(Staff(
        id="staff-ana",
        tenant_id=TENANT_ID,
        first_name="Ana",
        service_ids=["svc-cut"],
        working_hours={day: WEEKDAY_HOURS for day in
                       ("monday", "tuesday", "wednesday", "thursday", "friday")},
        breaks=[{"day_of_week": d, "start": "10:00", "end": "10:15"} for d in range(5)],
    ))
    store.add_customer(Customer(
        id="cust-1",
        tenant_id=TENANT_ID,
        email="sam@example.com",
        first_name="Sam",
        last_name="Taylor",
    ))
    return store


def next_weekday(start: date) -> date:
    day = start + timedelta(days=1)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def section(title: str) -> None:
    print(f"\n{BOLD}{title}{RESET}")


def show_slots(slots: list[TimeInterval]) -> None:
    if not slots:
        print(f"{YELLOW}  no free slots{RESET}")
        return
    print("  " + ", ".join(s.start.strftime("%H:%M") for s in slots))


async def run(staff_id: Optional[str]) -> None:
    set_request_id(f"DEMO-{uuid.uuid4().hex[:8]}")
    store = build_store()
    slots = SlotGenerator(store)
    manager = BookingLifecycleManager(store)
    day = next_weekday(date.today())

    section(f"Free slots on {day.isoformat()} (staff: {staff_id or 'unassigned'})")
    free = await slots.available_slots(TENANT_ID, "svc-cut", staff_id, day)
    show_slots(free)
    if not free:
        return

    section("Booking the first slot")
    first = await manager.create_booking(BookingCreate(
        tenant_id=TENANT_ID,
        customer_id="cust-1",
        service_id="svc-cut",
        staff_id=staff_id,
        start_time=free[0].start,
    ))
    print(f"{GREEN}  {first.id[:8]} {first.status.value} "
          f"{first.start_time:%H:%M}-{first.end_time:%H:%M}{RESET}")

    section("Trying to double-book 20 minutes later")
    try:
        await manager.create_booking(BookingCreate(
            tenant_id=TENANT_ID,
            customer_id="cust-1",
            service_id="svc-cut",
            staff_id=staff_id,
            start_time=free[0].start + timedelta(minutes=20),
        ))
    except BookingConflictError as exc:
        payload = exc.to_dict()
        clashes = ", ".join(
            f"{c['start'][11:16]}-{c['end'][11:16]}" for c in payload["conflicts"]
        )
        print(f"{RED}  rejected: {payload['message']} ({clashes}){RESET}")

    section("Free slots after booking")
    show_slots(await slots.available_slots(TENANT_ID, "svc-cut", staff_id, day))

    section("Cancelling, then cancelling again")
    cancelled = await manager.cancel_booking(TENANT_ID, first.id, "Customer called")
    print(f"{GREEN}  {cancelled.status.value} at {cancelled.cancelled_at:%H:%M:%S}{RESET}")
    print(f"{DIM}  notes: {cancelled.notes!r}{RESET}")
    try:
        await manager.cancel_booking(TENANT_ID, first.id)
    except InvalidTransitionError as exc:
        print(f"{RED}  rejected: {exc}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the offline booking demo.")
    parser.add_argument(
        "--staff",
        default="staff-ana",
        help="Staff ID to book, or 'none' for the unassigned bucket.",
    )
    args = parser.parse_args()
    staff_id = None if args.staff.lower() == "none" else args.staff
    asyncio.run(run(staff_id))


if __name__ == "__main__":
    main()
