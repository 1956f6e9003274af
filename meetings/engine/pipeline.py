"""The one place where rules, busy time and the clock meet.

Both the public booking page and the host's calendar preview call
``compute_availability``; the booking guard calls ``candidate_for`` to
reconstruct the slot a guest picked.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from meetings.engine.expander import DEFAULT_HORIZON_DAYS, expand_rules
from meetings.engine.filters import future_only, without_conflicts
from meetings.engine.grid import assemble_grid
from meetings.engine.intervals import CandidateSlot, Interval
from meetings.models.availability import AvailabilityRule, DayAvailability


def compute_availability(
    rules: Iterable[AvailabilityRule],
    busy: Sequence[Interval],
    now: datetime,
    duration_minutes: int,
    days: int = DEFAULT_HORIZON_DAYS,
    timezone: str = "UTC",
) -> list[DayAvailability]:
    """Bookable slots for the horizon, grouped by date in ``timezone``."""
    candidates = expand_rules(rules, now, duration_minutes, days)
    candidates = future_only(candidates, now)
    candidates = without_conflicts(candidates, busy)
    return assemble_grid(candidates, timezone)


def candidate_for(
    rules: Iterable[AvailabilityRule],
    now: datetime,
    duration_minutes: int,
    start: datetime,
    days: int = DEFAULT_HORIZON_DAYS,
) -> Optional[CandidateSlot]:
    """Return the future candidate slot beginning exactly at ``start``."""
    for slot in future_only(expand_rules(rules, now, duration_minutes, days), now):
        if slot.start == start:
            return slot
    return None
