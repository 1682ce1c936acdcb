from booking_core.scheduling.intervals import TimeInterval, overlaps, shift, subtract

__all__ = [
    "TimeInterval",
    "overlaps",
    "shift",
    "subtract",
]
