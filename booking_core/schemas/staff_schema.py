"""Staff (schedulable resource) data models."""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from booking_core.utils import parse_clock, weekday_index


class WorkingRange(BaseModel):
    """A wall-clock sub-range such as 09:00-12:00."""
    start: str
    end: str

    @model_validator(mode="after")
    def _check_order(self) -> "WorkingRange":
        if parse_clock(self.start) >= parse_clock(self.end):
            raise ValueError(f"Range start {self.start} must be before end {self.end}")
        return self


class BreakWindow(WorkingRange):
    """A recurring weekly exclusion window."""
    day_of_week: int = Field(ge=0, le=6)


class Staff(BaseModel):
    """A schedulable resource belonging to one tenant.

    ``working_hours`` accepts weekday keys as 0-6 (Monday=0) or day names;
    they are normalized to integers. A missing or empty day means the staff
    member is unavailable that day.
    """
    id: str
    tenant_id: str
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    email: Optional[str] = None
    role: str = "staff"
    service_ids: list[str] = Field(default_factory=list)
    working_hours: dict[int, list[WorkingRange]] = Field(default_factory=dict)
    breaks: list[BreakWindow] = Field(default_factory=list)
    is_active: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("working_hours", mode="before")
    @classmethod
    def _normalize_days(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        normalized: dict[int, Any] = {}
        for day, ranges in value.items():
            normalized[weekday_index(day)] = ranges or []
        return normalized

    def hours_for(self, weekday: int) -> list[WorkingRange]:
        """Working ranges for a weekday, ordered by start."""
        ranges = self.working_hours.get(weekday, [])
        return sorted(ranges, key=lambda r: parse_clock(r.start))

    def breaks_for(self, weekday: int) -> list[BreakWindow]:
        return [b for b in self.breaks if b.day_of_week == weekday]

    def offers(self, service_id: str) -> bool:
        """True if this staff member can perform the service."""
        return service_id in self.service_ids
