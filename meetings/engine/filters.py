"""Slot filters: busy-time conflicts and past slots."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from meetings.engine.intervals import CandidateSlot, Interval, overlaps


def conflicts(slot: Interval, busy: Iterable[Interval]) -> bool:
    return any(overlaps(slot, b) for b in busy)


def without_conflicts(
    slots: Iterable[CandidateSlot], busy: Sequence[Interval]
) -> list[CandidateSlot]:
    """Drop every slot that overlaps at least one busy interval."""
    if not busy:
        return list(slots)
    return [slot for slot in slots if not conflicts(slot, busy)]


def future_only(slots: Iterable[CandidateSlot], now: datetime) -> list[CandidateSlot]:
    """Drop slots starting at or before ``now``."""
    return [slot for slot in slots if slot.start > now]
