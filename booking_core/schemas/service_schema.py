"""Bookable service data models."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class BookingWindow(BaseModel):
    """How far ahead a service may be booked."""
    min_advance_hours: float = Field(default=0, ge=0)
    max_advance_days: float = Field(default=365, ge=0)


class CancellationPolicy(BaseModel):
    """Notice required for a refundable cancellation."""
    min_hours_notice: float = Field(default=24, ge=0)
    refund_percent: float = Field(default=100, ge=0, le=100)


class Service(BaseModel):
    """A bookable offering owned by exactly one tenant."""
    id: str
    tenant_id: str
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    duration: int = Field(gt=0, description="Minutes")
    buffer_time: int = Field(default=0, ge=0, description="Minutes after the service end")
    price: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = "GBP"
    max_capacity: int = Field(default=1, ge=1)
    staff_required: int = Field(default=1, ge=1)
    is_active: bool = True
    booking_window: Optional[BookingWindow] = None
    cancellation_policy: Optional[CancellationPolicy] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def block_minutes(self) -> int:
        """Minutes a booking of this service occupies its resource."""
        return self.duration + self.buffer_time
