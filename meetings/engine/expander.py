"""Expand recurring weekly availability rules into candidate slots.

The horizon covers the dates *after* today: offset 1 (tomorrow) through
offset ``days``, where "today" is taken in each rule's own timezone.  Rule
windows are converted to absolute instants before slicing, so the slots can
be compared directly against busy intervals coming from a calendar API.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable
from zoneinfo import ZoneInfo

from meetings.engine.intervals import CandidateSlot
from meetings.models.availability import AvailabilityRule

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 14


def day_of_week(day: date) -> int:
    """Day index with Sunday = 0 … Saturday = 6."""
    return (day.weekday() + 1) % 7


def horizon_dates(today: date, days: int) -> list[date]:
    """Dates from tomorrow up to and including ``today + days``."""
    return [today + timedelta(days=offset) for offset in range(1, days + 1)]


def expand_rule_on_date(
    rule: AvailabilityRule, on_date: date, duration_minutes: int
) -> list[CandidateSlot]:
    """Slice one rule's window on one date into ``duration``-long slots.

    A trailing remainder shorter than ``duration`` produces no slot.
    """
    tz = ZoneInfo(rule.timezone)
    window_start = datetime.combine(on_date, rule.start_time, tzinfo=tz).astimezone(
        timezone.utc
    )
    window_end = datetime.combine(on_date, rule.end_time, tzinfo=tz).astimezone(
        timezone.utc
    )
    step = timedelta(minutes=duration_minutes)

    slots: list[CandidateSlot] = []
    cursor = window_start
    while cursor + step <= window_end:
        slots.append(CandidateSlot(start=cursor, end=cursor + step))
        cursor += step
    return slots


def expand_rules(
    rules: Iterable[AvailabilityRule],
    now: datetime,
    duration_minutes: int,
    days: int = DEFAULT_HORIZON_DAYS,
) -> list[CandidateSlot]:
    """Expand every active rule over the horizon.

    Overlapping rules yield duplicate slots here; deduplication is left to
    the grid assembler.
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
    if days < 0:
        raise ValueError(f"days must not be negative, got {days}")
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")

    candidates: list[CandidateSlot] = []
    for rule in rules:
        if not rule.is_active:
            continue
        today = now.astimezone(ZoneInfo(rule.timezone)).date()
        for day in horizon_dates(today, days):
            if day_of_week(day) != rule.day_of_week:
                continue
            candidates.extend(expand_rule_on_date(rule, day, duration_minutes))

    logger.debug(
        "Expanded rules into %d candidate slots (%d days, %d min)",
        len(candidates), days, duration_minutes,
    )
    return candidates
