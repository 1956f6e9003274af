"""Pydantic models for hosts, booking links, and bookings."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from meetings.models.availability import check_timezone


class MeetingType(str, Enum):
    GOOGLE_MEET = "GOOGLE_MEET"
    ZOOM = "ZOOM"
    PHONE = "PHONE"
    IN_PERSON = "IN_PERSON"


class Host(BaseModel):
    """The person whose calendar is being booked."""

    id: str
    name: str = ""
    email: str = ""
    timezone: str = "America/Los_Angeles"
    calendar_id: str = ""  # empty: no calendar connected

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value):
        return check_timezone(value)


class BookingLink(BaseModel):
    """A public booking page belonging to a host."""

    slug: str
    host_id: str
    title: str = "Meeting"
    description: str = ""
    duration_minutes: int = Field(default=30, gt=0)
    meeting_type: MeetingType = MeetingType.GOOGLE_MEET
    is_active: bool = True


class BookingRequest(BaseModel):
    """Data submitted by a guest on the booking page."""

    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    name: str = Field(min_length=1)
    email: EmailStr
    company: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    meeting_type: Optional[MeetingType] = None


class Booking(BaseModel):
    """A confirmed booking. Never mutated after confirmation."""

    id: str = Field(default_factory=lambda: secrets.token_urlsafe(12))
    host_id: str
    link_slug: str
    slot_start: datetime
    slot_end: datetime
    duration_minutes: int
    guest_name: str
    guest_email: str
    company: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    meeting_type: MeetingType = MeetingType.GOOGLE_MEET
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class BookingConfirmation(BaseModel):
    """Payload returned to the guest once a booking is confirmed."""

    booking_id: str
    date: str
    time: str
    duration: int
    title: str
    host_name: str
    meet_link: Optional[str] = None
    calendar_event_id: Optional[str] = None


class BookingState(str, Enum):
    REQUESTED = "Requested"
    VALIDATING = "Validating"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


class BookingResult(BaseModel):
    """Outcome of one booking attempt."""

    state: BookingState
    confirmation: Optional[BookingConfirmation] = None
    reason: str = ""
    warnings: list[str] = []

    @property
    def confirmed(self) -> bool:
        return self.state == BookingState.CONFIRMED
