"""Closed-open time intervals and the overlap predicate.

Every conflict check in the service reduces to ``overlaps``.  Intervals are
``[start, end)``: an interval ending at 10:00 and one starting at 10:00 are
adjacent, not overlapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class Interval:
    """An absolute ``[start, end)`` time span."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Interval bounds must be timezone-aware")
        if self.start >= self.end:
            raise ValueError(
                f"Interval start {self.start.isoformat()} must be before "
                f"end {self.end.isoformat()}"
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: Interval) -> bool:
        return overlaps(self, other)

    def contains(self, point: datetime) -> bool:
        return contains(self, point)


@dataclass(frozen=True)
class BusyInterval(Interval):
    """A period during which the host cannot be booked."""

    @classmethod
    def from_rfc3339(cls, start: str, end: str) -> BusyInterval:
        """Parse calendar API timestamps (``Z`` suffix or numeric offset)."""
        return cls(
            start=datetime.fromisoformat(start.replace("Z", "+00:00")),
            end=datetime.fromisoformat(end.replace("Z", "+00:00")),
        )


@dataclass(frozen=True)
class CandidateSlot(Interval):
    """A fixed-duration bookable window."""

    @classmethod
    def starting_at(cls, start: datetime, duration_minutes: int) -> CandidateSlot:
        return cls(start=start, end=start + timedelta(minutes=duration_minutes))


def overlaps(a: Interval, b: Interval) -> bool:
    """True iff the two intervals share at least one instant."""
    return a.start < b.end and b.start < a.end


def contains(outer: Interval, point: datetime) -> bool:
    return outer.start <= point < outer.end
