"""Abstract storage interfaces consumed by the booking service.

A relational backend would implement ``BookingStore.try_confirm`` with an
exclusion constraint on (host, slot interval); the in-memory store uses a
per-host lock.  Either way, of two racing confirmations for overlapping
slots exactly one must win.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from meetings.models.availability import AvailabilityRule, RuleUpdate
from meetings.models.booking import Booking, BookingLink, Host


@dataclass(frozen=True)
class Confirmed:
    booking_id: str


@dataclass(frozen=True)
class Rejected:
    reason: str


ConfirmResult = Union[Confirmed, Rejected]


class HostStore(ABC):
    @abstractmethod
    async def get_host(self, host_id: str) -> Optional[Host]:
        """Return the host or None."""

    @abstractmethod
    async def get_booking_link(self, slug: str) -> Optional[tuple[BookingLink, Host]]:
        """Return the active link with its host, or None."""


class RuleStore(ABC):
    @abstractmethod
    async def get_rules(self, host_id: str) -> list[AvailabilityRule]:
        """Active rules ordered by day of week, then start time."""

    @abstractmethod
    async def replace_rules(
        self, host_id: str, rules: list[AvailabilityRule]
    ) -> int:
        """Delete every rule of the host and store ``rules``. Returns the count."""

    @abstractmethod
    async def update_rule(
        self, host_id: str, rule_id: str, changes: RuleUpdate
    ) -> Optional[AvailabilityRule]:
        """Apply a partial update; None when the rule does not exist."""

    @abstractmethod
    async def delete_rule(self, host_id: str, rule_id: str) -> bool:
        """Remove a rule; False when it does not exist."""


class BookingStore(ABC):
    @abstractmethod
    async def try_confirm(self, host_id: str, booking: Booking) -> ConfirmResult:
        """Persist ``booking`` unless it overlaps a confirmed booking.

        Must be atomic per host.
        """

    @abstractmethod
    async def list_bookings(
        self, host_id: str, start: datetime, end: datetime
    ) -> list[Booking]:
        """Confirmed bookings of the host intersecting ``[start, end)``."""
