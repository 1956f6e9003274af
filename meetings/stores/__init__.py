"""Storage interfaces and the in-memory implementation."""

from .base import BookingStore, ConfirmResult, Confirmed, HostStore, Rejected, RuleStore
from .memory import InMemoryStore

__all__ = [
    "BookingStore",
    "ConfirmResult",
    "Confirmed",
    "HostStore",
    "InMemoryStore",
    "Rejected",
    "RuleStore",
]
