"""
Slot generation for a service on a calendar day.

Working hours are wall-clock ranges in the business timezone. The generator
turns them into absolute intervals, removes breaks, steps through each open
range by ``duration + buffer_time`` and drops candidates that fall outside
the booking window or collide with active bookings. Results are computed
fresh on every call.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, TypedDict
from zoneinfo import ZoneInfo

from booking_core.config import SchedulingConfig, settings
from booking_core.errors import NotFoundError
from booking_core.scheduling.conflicts import ConflictDetector
from booking_core.scheduling.intervals import TimeInterval, overlaps, shift, subtract
from booking_core.scheduling.rules import within_booking_window
from booking_core.schemas.service_schema import Service
from booking_core.schemas.staff_schema import Staff, WorkingRange
from booking_core.store.base import BookingStore
from booking_core.utils import ensure_utc, parse_clock, utcnow

logger = logging.getLogger(__name__)


class DateAvailability(TypedDict):
    """Summary of availability for a single date."""

    date: str
    day_name: str
    slot_count: int


class SlotGenerator:
    """Enumerates free intervals for a service and optional staff member."""

    def __init__(
        self,
        store: BookingStore,
        detector: Optional[ConflictDetector] = None,
        config: SchedulingConfig = settings.scheduling,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._detector = detector or ConflictDetector(store)
        self._config = config
        self._tz = ZoneInfo(config.timezone)
        self._clock = clock

    async def available_slots(
        self,
        tenant_id: str,
        service_id: str,
        staff_id: Optional[str],
        day: date,
    ) -> list[TimeInterval]:
        """
        Free intervals for ``service_id`` on ``day``.

        Raises:
            NotFoundError: If the service or staff is missing or belongs to
                another tenant.
        """
        service = await self._load_service(tenant_id, service_id)
        staff = await self._load_staff(tenant_id, staff_id) if staff_id else None
        return await self._slots_for(tenant_id, service, staff, day)

    async def available_dates(
        self,
        tenant_id: str,
        service_id: str,
        staff_id: Optional[str],
        start_day: date,
        days: int = 7,
    ) -> list[DateAvailability]:
        """Days in ``[start_day, start_day + days)`` with at least one free slot."""
        if not 1 <= days <= self._config.max_slot_days:
            raise ValueError(
                f"days must be between 1 and {self._config.max_slot_days}, got {days}"
            )
        service = await self._load_service(tenant_id, service_id)
        staff = await self._load_staff(tenant_id, staff_id) if staff_id else None

        results: list[DateAvailability] = []
        for offset in range(days):
            day = start_day + timedelta(days=offset)
            slots = await self._slots_for(tenant_id, service, staff, day)
            if slots:
                results.append(
                    {
                        "date": day.isoformat(),
                        "day_name": day.strftime("%A"),
                        "slot_count": len(slots),
                    }
                )
        return results

    async def _slots_for(
        self,
        tenant_id: str,
        service: Service,
        staff: Optional[Staff],
        day: date,
    ) -> list[TimeInterval]:
        if not service.is_active:
            return []
        if staff is not None and (not staff.is_active or not staff.offers(service.id)):
            logger.debug("Staff %s cannot take service %s", staff.id, service.id)
            return []

        open_ranges = self._open_ranges(staff, day)
        if not open_ranges:
            return []

        now = self._clock()
        candidates = [
            c for c in self._step(open_ranges, service.block_minutes)
            if within_booking_window(service, c.start, now)
        ]
        if not candidates:
            return []

        span = TimeInterval(open_ranges[0].start, open_ranges[-1].end)
        taken = await self._detector.active_intervals(
            tenant_id, staff.id if staff else None, span
        )
        free = [c for c in candidates if not any(overlaps(c, t) for t in taken)]
        logger.debug(
            "%d of %d candidate slot(s) free for service %s on %s",
            len(free), len(candidates), service.id, day.isoformat(),
        )
        return sorted(free)

    def _open_ranges(self, staff: Optional[Staff], day: date) -> list[TimeInterval]:
        """Working windows for the day minus breaks, as absolute UTC intervals."""
        weekday = day.weekday()
        if staff is None:
            ranges = [WorkingRange(start=self._config.default_open, end=self._config.default_close)]
            breaks: list[WorkingRange] = []
        else:
            ranges = staff.hours_for(weekday)
            breaks = list(staff.breaks_for(weekday))

        windows = [self._to_interval(day, r) for r in ranges]
        cuts = [self._to_interval(day, b) for b in breaks]
        return subtract(windows, cuts)

    def _to_interval(self, day: date, clock_range: WorkingRange) -> TimeInterval:
        start = datetime.combine(day, parse_clock(clock_range.start), tzinfo=self._tz)
        end = datetime.combine(day, parse_clock(clock_range.end), tzinfo=self._tz)
        return TimeInterval(ensure_utc(start), ensure_utc(end))

    @staticmethod
    def _step(open_ranges: list[TimeInterval], minutes: int) -> list[TimeInterval]:
        candidates: list[TimeInterval] = []
        for window in open_ranges:
            start = window.start
            while shift(start, minutes) <= window.end:
                candidates.append(TimeInterval(start, shift(start, minutes)))
                start = shift(start, minutes)
        return candidates

    async def _load_service(self, tenant_id: str, service_id: str) -> Service:
        service = await self._store.find_service(service_id)
        if service is None or service.tenant_id != tenant_id:
            raise NotFoundError("Service", service_id)
        return service

    async def _load_staff(self, tenant_id: str, staff_id: str) -> Staff:
        staff = await self._store.find_staff(staff_id)
        if staff is None or staff.tenant_id != tenant_id:
            raise NotFoundError("Staff", staff_id)
        return staff
