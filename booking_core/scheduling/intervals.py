"""
Half-open time interval arithmetic.

Every scheduling decision is expressed in terms of ``[start, end)`` ranges:
two intervals overlap iff ``a.start < b.end and b.start < a.end``, so an
appointment ending at 10:40 and another starting at 10:40 never collide.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable


@dataclass(frozen=True, order=True)
class TimeInterval:
    """An immutable ``[start, end)`` range. Degenerate ranges are rejected."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(
                f"Interval start must be before end, got {self.start.isoformat()} "
                f"- {self.end.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """Half-open overlap test. Symmetric; adjacent intervals do not overlap."""
    return a.start < b.end and b.start < a.end


def shift(t: datetime, minutes: int) -> datetime:
    return t + timedelta(minutes=minutes)


def subtract(
    windows: Iterable[TimeInterval], cuts: Iterable[TimeInterval]
) -> list[TimeInterval]:
    """Remove every ``cut`` from ``windows``.

    Returns the remaining pieces in ascending start order. Pieces that
    shrink to zero length are dropped.
    """
    remaining = sorted(windows)
    for cut in sorted(cuts):
        pieces: list[TimeInterval] = []
        for window in remaining:
            if not overlaps(window, cut):
                pieces.append(window)
                continue
            if window.start < cut.start:
                pieces.append(TimeInterval(window.start, cut.start))
            if cut.end < window.end:
                pieces.append(TimeInterval(cut.end, window.end))
        remaining = pieces
    return sorted(remaining)
