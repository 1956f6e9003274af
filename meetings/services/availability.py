"""Availability queries for the public booking page and the host preview.

Busy time is the union of the host's external calendar (fetched once per
request) and bookings already confirmed in the store.  A failing calendar
lookup degrades to "no calendar busy time" instead of failing the request.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from meetings.calendar_providers.base import CalendarProvider
from meetings.engine import Interval, compute_availability
from meetings.engine.expander import DEFAULT_HORIZON_DAYS
from meetings.engine.intervals import BusyInterval
from meetings.errors import BookingValidationError, NotFoundError
from meetings.models.availability import DayAvailability
from meetings.models.booking import BookingLink, Host
from meetings.stores.base import BookingStore, HostStore, RuleStore

log = logging.getLogger("meetings.services.availability")

MAX_DURATION_MINUTES = 24 * 60


def horizon_window(
    now: datetime, tz_names: Iterable[str], days: int
) -> tuple[datetime, datetime]:
    """Span covering every horizon day in each of ``tz_names``.

    Runs from the earliest local midnight today to the latest local midnight
    after the last horizon day, so rules kept in a timezone other than the
    host's still have all their slots inside the busy-time window.
    """
    starts: list[datetime] = []
    ends: list[datetime] = []
    for tz_name in set(tz_names):
        tz = ZoneInfo(tz_name)
        today = now.astimezone(tz).date()
        starts.append(datetime.combine(today, time.min, tzinfo=tz))
        ends.append(datetime.combine(today + timedelta(days=days + 1), time.min, tzinfo=tz))
    return min(starts), max(ends)


async def fetch_busy(
    provider: Optional[CalendarProvider],
    host: Host,
    start: datetime,
    end: datetime,
) -> list[BusyInterval]:
    """Busy intervals from the host's calendar, or [] when unavailable."""
    if provider is None or not host.calendar_id:
        return []
    try:
        return await provider.get_busy(host.calendar_id, start, end)
    except Exception:
        log.warning(
            "Busy-time lookup failed for host %s; continuing without calendar data",
            host.id,
            exc_info=True,
        )
        return []


async def collect_busy(
    provider: Optional[CalendarProvider],
    bookings: BookingStore,
    host: Host,
    start: datetime,
    end: datetime,
) -> list[Interval]:
    """Calendar busy time plus confirmed bookings within ``[start, end)``."""
    busy: list[Interval] = list(await fetch_busy(provider, host, start, end))
    for booking in await bookings.list_bookings(host.id, start, end):
        busy.append(Interval(start=booking.slot_start, end=booking.slot_end))
    return busy


class AvailabilityService:
    def __init__(
        self,
        hosts: HostStore,
        rules: RuleStore,
        bookings: BookingStore,
        calendar_provider: Optional[CalendarProvider] = None,
        max_horizon_days: int = 60,
    ) -> None:
        self._hosts = hosts
        self._rules = rules
        self._bookings = bookings
        self._provider = calendar_provider
        self._max_horizon_days = max_horizon_days

    def _check_range(self, days: int, duration_minutes: int) -> None:
        if not 1 <= days <= self._max_horizon_days:
            raise BookingValidationError(
                f"days must be between 1 and {self._max_horizon_days}"
            )
        if not 0 < duration_minutes <= MAX_DURATION_MINUTES:
            raise BookingValidationError(
                f"duration must be between 1 and {MAX_DURATION_MINUTES} minutes"
            )

    async def for_link(
        self, slug: str, now: datetime, days: int = DEFAULT_HORIZON_DAYS
    ) -> tuple[BookingLink, Host, list[DayAvailability]]:
        """Slots for a public booking link at the link's duration."""
        found = await self._hosts.get_booking_link(slug)
        if found is None:
            raise NotFoundError("Booking link not found")
        link, host = found
        self._check_range(days, link.duration_minutes)
        grid = await self._compute(host, now, days, link.duration_minutes)
        return link, host, grid

    async def for_host(
        self, host_id: str, now: datetime, days: int, duration_minutes: int
    ) -> list[DayAvailability]:
        """Preview of a host's own availability at an arbitrary duration."""
        host = await self._hosts.get_host(host_id)
        if host is None:
            raise NotFoundError("Host not found")
        self._check_range(days, duration_minutes)
        return await self._compute(host, now, days, duration_minutes)

    async def _compute(
        self, host: Host, now: datetime, days: int, duration_minutes: int
    ) -> list[DayAvailability]:
        rules = await self._rules.get_rules(host.id)
        if not rules:
            return []

        zones = [host.timezone, *(rule.timezone for rule in rules)]
        start, end = horizon_window(now, zones, days)
        busy = await collect_busy(self._provider, self._bookings, host, start, end)

        grid = compute_availability(
            rules,
            busy,
            now=now,
            duration_minutes=duration_minutes,
            days=days,
            timezone=host.timezone,
        )
        log.info(
            "Availability for host %s: %d days with slots (%d busy intervals)",
            host.id, len(grid), len(busy),
        )
        return grid
