"""Data models for the booking service."""

from .availability import AvailabilityRule, DayAvailability, RuleInput, RuleUpdate
from .booking import (
    Booking,
    BookingConfirmation,
    BookingLink,
    BookingRequest,
    BookingResult,
    BookingState,
    Host,
    MeetingType,
)

__all__ = [
    "AvailabilityRule",
    "Booking",
    "BookingConfirmation",
    "BookingLink",
    "BookingRequest",
    "BookingResult",
    "BookingState",
    "DayAvailability",
    "Host",
    "MeetingType",
    "RuleInput",
    "RuleUpdate",
]
