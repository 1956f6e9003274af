"""Booking Conflict Guard.

A booking attempt moves ``Requested → Validating → Confirmed | Rejected``:

  1. Requested   the link is resolved and the guest's date/time parsed in
                 the host's timezone.
  2. Validating  the slot is rebuilt from the host's rules, then checked
                 against freshly fetched busy time and confirmed bookings.
  3. Confirmed   the store accepted the booking atomically; calendar event
                 and confirmation email follow, best-effort.
  4. Rejected    any overlap, or the store lost a race to another request.

Side-effect failures after confirmation are reported as warnings and never
undo the booking.
"""

from __future__ import annotations

import logging
import secrets
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from meetings.calendar_providers.base import CalendarEvent, CalendarProvider
from meetings.engine import CandidateSlot, candidate_for
from meetings.engine.filters import conflicts
from meetings.errors import BookingValidationError, NotFoundError, SlotUnavailableError
from meetings.models.booking import (
    Booking,
    BookingConfirmation,
    BookingLink,
    BookingRequest,
    BookingResult,
    BookingState,
    Host,
    MeetingType,
)
from meetings.notifiers.base import Notifier, redact_email
from meetings.services.availability import fetch_busy
from meetings.stores.base import BookingStore, HostStore, Rejected, RuleStore
from meetings.stores.memory import SLOT_TAKEN

log = logging.getLogger("meetings.services.booking")

CALENDAR_WARNING = "Calendar event could not be created, but booking is noted"
EMAIL_WARNING = "Confirmation email could not be sent"


def parse_slot_start(date_str: str, time_str: str, tz_name: str) -> datetime:
    """Interpret ``YYYY-MM-DD`` + ``HH:MM`` as local time in ``tz_name``."""
    try:
        day = date.fromisoformat(date_str)
        clock = datetime.strptime(time_str, "%H:%M").time()
    except ValueError:
        raise BookingValidationError(
            f"Invalid date/time: {date_str} {time_str}. "
            "Please use YYYY-MM-DD and HH:MM formats."
        )
    return datetime.combine(day, clock, tzinfo=ZoneInfo(tz_name)).astimezone(timezone.utc)


def describe_booking(request: BookingRequest) -> str:
    """Calendar event description listing everything the guest told us."""
    lines = [f"Booking with {request.name}", f"Email: {request.email}"]
    if request.company:
        lines.append(f"Company: {request.company}")
    if request.role:
        lines.append(f"Role: {request.role}")
    if request.phone:
        lines.append(f"Phone: {request.phone}")
    if request.notes:
        lines.append("")
        lines.append("Notes:")
        lines.append(request.notes)
    return "\n".join(lines)


def compose_confirmation(
    link: BookingLink,
    host: Host,
    guest_name: str,
    slot: CandidateSlot,
    meet_link: Optional[str],
) -> tuple[str, str]:
    """Subject and body of the guest's confirmation email."""
    tz = ZoneInfo(host.timezone)
    start = slot.start.astimezone(tz)
    end = slot.end.astimezone(tz)
    host_name = host.name or link.slug

    subject = f"Confirmed: {link.title} with {host_name}"
    lines = [
        f"Hi {guest_name},",
        "",
        "Your meeting has been confirmed!",
        "",
        "Meeting Details:",
        f"- Title: {link.title}",
        f"- Date: {start.strftime('%A, %B %d, %Y')}",
        f"- Time: {start.strftime('%I:%M %p')} - {end.strftime('%I:%M %p')} ({host.timezone})",
        f"- Duration: {link.duration_minutes} minutes",
    ]
    if meet_link:
        lines.append(f"- Join: {meet_link}")
    lines += ["", "A calendar invite has been sent to your email.", "", "Best,", host_name]
    return subject, "\n".join(lines)


class BookingGuard:
    def __init__(
        self,
        hosts: HostStore,
        rules: RuleStore,
        bookings: BookingStore,
        calendar_provider: Optional[CalendarProvider] = None,
        notifier: Optional[Notifier] = None,
        horizon_days: int = 60,
    ) -> None:
        self._hosts = hosts
        self._rules = rules
        self._bookings = bookings
        self._provider = calendar_provider
        self._notifier = notifier
        self._horizon_days = horizon_days

    async def book(self, slug: str, request: BookingRequest, now: datetime) -> BookingResult:
        """Run one booking attempt to completion.

        Raises NotFoundError / BookingValidationError before validation
        starts; every later failure is a ``Rejected`` result.
        """
        attempt = secrets.token_hex(4)
        log.debug("[%s] %s", attempt, BookingState.REQUESTED.value)

        found = await self._hosts.get_booking_link(slug)
        if found is None:
            raise NotFoundError("Booking link not found")
        link, host = found

        meeting_type = request.meeting_type or link.meeting_type
        if meeting_type == MeetingType.PHONE and not request.phone:
            raise BookingValidationError("Phone number required for phone meetings")

        start = parse_slot_start(request.date, request.time, host.timezone)

        log.debug("[%s] %s", attempt, BookingState.VALIDATING.value)
        try:
            slot = await self._validate(host, link, start, now)
        except SlotUnavailableError as exc:
            log.info("[%s] rejected for %s: %s", attempt, slug, exc)
            return BookingResult(state=BookingState.REJECTED, reason=str(exc))

        booking = Booking(
            host_id=host.id,
            link_slug=link.slug,
            slot_start=slot.start,
            slot_end=slot.end,
            duration_minutes=link.duration_minutes,
            guest_name=request.name,
            guest_email=request.email,
            company=request.company,
            role=request.role,
            phone=request.phone,
            notes=request.notes,
            meeting_type=meeting_type,
            created_at=now,
        )
        outcome = await self._bookings.try_confirm(host.id, booking)
        if isinstance(outcome, Rejected):
            log.info("[%s] lost race for %s at %s", attempt, slug, slot.start.isoformat())
            return BookingResult(state=BookingState.REJECTED, reason=outcome.reason)

        log.info(
            "[%s] confirmed booking %s for %s on %s",
            attempt, outcome.booking_id, redact_email(request.email), slot.start.isoformat(),
        )
        return await self._after_confirm(booking, link, host, slot, request)

    async def _validate(
        self, host: Host, link: BookingLink, start: datetime, now: datetime
    ) -> CandidateSlot:
        if start <= now:
            raise SlotUnavailableError("This time slot is in the past. Please choose another time.")

        rules = await self._rules.get_rules(host.id)
        slot = candidate_for(
            rules, now, link.duration_minutes, start, days=self._horizon_days
        )
        if slot is None:
            raise SlotUnavailableError(
                "This time is outside the host's availability. Please choose another time."
            )

        busy = await fetch_busy(self._provider, host, slot.start, slot.end)
        if conflicts(slot, busy):
            raise SlotUnavailableError(SLOT_TAKEN)

        if await self._bookings.list_bookings(host.id, slot.start, slot.end):
            raise SlotUnavailableError(SLOT_TAKEN)
        return slot

    async def _after_confirm(
        self,
        booking: Booking,
        link: BookingLink,
        host: Host,
        slot: CandidateSlot,
        request: BookingRequest,
    ) -> BookingResult:
        warnings: list[str] = []
        event_id: Optional[str] = None
        meet_link: Optional[str] = None

        if self._provider is not None and host.calendar_id:
            event = CalendarEvent(
                summary=f"{link.title} - {request.name}",
                start=slot.start,
                end=slot.end,
                description=describe_booking(request),
                attendees=[request.email],
                create_meet_link=booking.meeting_type == MeetingType.GOOGLE_MEET,
            )
            try:
                created = await self._provider.create_event(host.calendar_id, event)
                event_id = created.get("event_id") or None
                meet_link = created.get("meet_link") or None
            except Exception:
                log.exception("Failed to create calendar event for booking %s", booking.id)
                warnings.append(CALENDAR_WARNING)

        if self._notifier is not None:
            subject, body = compose_confirmation(link, host, request.name, slot, meet_link)
            try:
                await self._notifier.send_confirmation(request.email, subject, body)
            except Exception:
                log.exception("Failed to send confirmation for booking %s", booking.id)
                warnings.append(EMAIL_WARNING)

        local = slot.start.astimezone(ZoneInfo(host.timezone))
        return BookingResult(
            state=BookingState.CONFIRMED,
            confirmation=BookingConfirmation(
                booking_id=booking.id,
                date=local.date().isoformat(),
                time=local.strftime("%H:%M"),
                duration=link.duration_minutes,
                title=link.title,
                host_name=host.name or link.slug,
                meet_link=meet_link,
                calendar_event_id=event_id,
            ),
            warnings=warnings,
        )
