"""Request-level services built on the slot engine."""

from .availability import AvailabilityService
from .booking import BookingGuard

__all__ = ["AvailabilityService", "BookingGuard"]
