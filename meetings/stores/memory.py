"""In-memory implementation of all three stores.

Suitable for a single-process deployment and for tests.  Bookings are
serialized per host with an ``asyncio.Lock``; the overlap check and the
insert happen inside the same critical section.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional

from meetings.engine.intervals import Interval, overlaps
from meetings.models.availability import AvailabilityRule, RuleUpdate
from meetings.models.booking import Booking, BookingLink, Host

from .base import BookingStore, ConfirmResult, Confirmed, HostStore, Rejected, RuleStore

log = logging.getLogger("meetings.stores.memory")

SLOT_TAKEN = "This time slot is no longer available. Please choose another time."


def _interval(booking: Booking) -> Interval:
    return Interval(start=booking.slot_start, end=booking.slot_end)


class InMemoryStore(HostStore, RuleStore, BookingStore):
    def __init__(self) -> None:
        self._hosts: dict[str, Host] = {}
        self._links: dict[str, BookingLink] = {}
        self._rules: dict[str, list[AvailabilityRule]] = defaultdict(list)
        self._bookings: dict[str, list[Booking]] = defaultdict(list)
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ── Seeding ──────────────────────────────────────────────────

    def add_host(self, host: Host) -> None:
        self._hosts[host.id] = host

    def add_link(self, link: BookingLink) -> None:
        if link.host_id not in self._hosts:
            raise ValueError(f"Booking link {link.slug!r} refers to unknown host {link.host_id!r}")
        self._links[link.slug] = link

    def add_rule(self, rule: AvailabilityRule) -> None:
        if rule.host_id not in self._hosts:
            raise ValueError(f"Rule {rule.id!r} refers to unknown host {rule.host_id!r}")
        self._rules[rule.host_id].append(rule)

    # ── HostStore ────────────────────────────────────────────────

    async def get_host(self, host_id: str) -> Optional[Host]:
        return self._hosts.get(host_id)

    async def get_booking_link(self, slug: str) -> Optional[tuple[BookingLink, Host]]:
        link = self._links.get(slug)
        if link is None or not link.is_active:
            return None
        host = self._hosts.get(link.host_id)
        if host is None:
            return None
        return link, host

    # ── RuleStore ────────────────────────────────────────────────

    async def get_rules(self, host_id: str) -> list[AvailabilityRule]:
        rules = [r for r in self._rules.get(host_id, []) if r.is_active]
        return sorted(rules, key=lambda r: (r.day_of_week, r.start_time))

    async def replace_rules(self, host_id: str, rules: list[AvailabilityRule]) -> int:
        self._rules[host_id] = [r.model_copy(update={"host_id": host_id}) for r in rules]
        log.info("Replaced availability for host %s (%d rules)", host_id, len(rules))
        return len(rules)

    async def update_rule(
        self, host_id: str, rule_id: str, changes: RuleUpdate
    ) -> Optional[AvailabilityRule]:
        rules = self._rules.get(host_id, [])
        for idx, rule in enumerate(rules):
            if rule.id != rule_id:
                continue
            merged = rule.model_dump() | changes.model_dump(exclude_none=True)
            # Re-validate so start < end still holds after a partial update
            updated = AvailabilityRule.model_validate(merged)
            rules[idx] = updated
            return updated
        return None

    async def delete_rule(self, host_id: str, rule_id: str) -> bool:
        rules = self._rules.get(host_id, [])
        remaining = [r for r in rules if r.id != rule_id]
        if len(remaining) == len(rules):
            return False
        self._rules[host_id] = remaining
        return True

    # ── BookingStore ─────────────────────────────────────────────

    async def try_confirm(self, host_id: str, booking: Booking) -> ConfirmResult:
        async with self._locks[host_id]:
            wanted = _interval(booking)
            for existing in self._bookings[host_id]:
                if overlaps(wanted, _interval(existing)):
                    log.info(
                        "Booking for host %s at %s rejected: overlaps %s",
                        host_id, booking.slot_start.isoformat(), existing.id,
                    )
                    return Rejected(SLOT_TAKEN)
            self._bookings[host_id].append(booking)
            return Confirmed(booking.id)

    async def list_bookings(
        self, host_id: str, start: datetime, end: datetime
    ) -> list[Booking]:
        window = Interval(start=start, end=end)
        return sorted(
            (b for b in self._bookings.get(host_id, []) if overlaps(window, _interval(b))),
            key=lambda b: b.slot_start,
        )
