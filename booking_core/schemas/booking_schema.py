"""Booking data models and store query filters."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from booking_core.scheduling.intervals import TimeInterval
from booking_core.utils import ensure_utc


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class Booking(BaseModel):
    """A persisted booking. Cancelled bookings are kept for the audit trail."""

    id: str
    tenant_id: str
    customer_id: str
    service_id: str
    staff_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.PENDING
    price: Decimal = Field(default=Decimal("0"), ge=0)
    deposit: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "created_at", "updated_at", "cancelled_at")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_interval(self) -> "Booking":
        if self.end_time <= self.start_time:
            raise ValueError("Booking end_time must be after start_time")
        return self

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    @property
    def is_active(self) -> bool:
        """Active bookings take part in conflict checks."""
        return self.status != BookingStatus.CANCELLED


class BookingCreate(BaseModel):
    """Validated input for creating a booking. ``end_time`` is derived."""

    tenant_id: str
    customer_id: str
    service_id: str
    staff_id: Optional[str] = None
    start_time: datetime
    deposit: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("start_time")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class BookingFilters(BaseModel):
    """Query filters understood by every booking store.

    ``staff_id`` narrows to one staff member; ``unassigned_only`` narrows to
    bookings with no staff. Time bounds are on ``start_time`` except
    ``end_after`` which bounds ``end_time`` (used for overlap pre-filtering).
    """

    staff_id: Optional[str] = None
    unassigned_only: bool = False
    customer_id: Optional[str] = None
    statuses: Optional[list[BookingStatus]] = None
    status_not_in: list[BookingStatus] = Field(default_factory=list)
    start_from: Optional[datetime] = None
    start_before: Optional[datetime] = None
    end_after: Optional[datetime] = None
    exclude_id: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @field_validator("start_from", "start_before", "end_after")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    def matches(self, booking: Booking) -> bool:
        """Evaluate the filters against a booking (pagination excluded)."""
        if self.unassigned_only and booking.staff_id is not None:
            return False
        if self.staff_id is not None and booking.staff_id != self.staff_id:
            return False
        if self.customer_id is not None and booking.customer_id != self.customer_id:
            return False
        if self.statuses is not None and booking.status not in self.statuses:
            return False
        if booking.status in self.status_not_in:
            return False
        if self.start_from is not None and booking.start_time < self.start_from:
            return False
        if self.start_before is not None and booking.start_time >= self.start_before:
            return False
        if self.end_after is not None and booking.end_time <= self.end_after:
            return False
        if self.exclude_id is not None and booking.id == self.exclude_id:
            return False
        return True
