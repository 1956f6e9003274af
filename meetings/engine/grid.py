"""Assemble surviving slots into the public ``date -> times`` grid."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable
from zoneinfo import ZoneInfo

from meetings.engine.intervals import CandidateSlot
from meetings.models.availability import DayAvailability


def assemble_grid(
    slots: Iterable[CandidateSlot], tz_name: str
) -> list[DayAvailability]:
    """Group slots by local date in ``tz_name``.

    Slots sharing a start instant collapse into one entry.  Days come out in
    ascending order, times ascending within a day, and a day without slots
    never appears.  When a DST fall-back repeats a local hour only the first
    occurrence is listed, since a guest's ``HH:MM`` resolves to that one.
    """
    tz = ZoneInfo(tz_name)
    starts = sorted({slot.start for slot in slots})

    by_day: dict[date, list[str]] = defaultdict(list)
    for start in starts:
        local = start.astimezone(tz)
        label = local.strftime("%H:%M")
        if label not in by_day[local.date()]:
            by_day[local.date()].append(label)

    return [
        DayAvailability(
            date=day.isoformat(),
            times=by_day[day],
        )
        for day in sorted(by_day)
    ]
