"""Pure slot computation engine — no I/O, no clocks."""

from .intervals import BusyInterval, CandidateSlot, Interval, contains, overlaps
from .pipeline import candidate_for, compute_availability

__all__ = [
    "BusyInterval",
    "CandidateSlot",
    "Interval",
    "candidate_for",
    "compute_availability",
    "contains",
    "overlaps",
]
