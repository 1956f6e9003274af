"""Domain errors raised by the booking service.

The HTTP layer maps them onto responses:

  BookingValidationError  → 400  malformed request, nothing attempted
  NotFoundError           → 404  unknown host / inactive booking link
  SlotUnavailableError    → 409  the chosen slot failed the conflict guard

Calendar-provider failures during availability reads are not errors: they
are logged and the computation continues without busy time.
"""


class SchedulingError(Exception):
    """Base class for all booking-service errors."""


class BookingValidationError(SchedulingError):
    """The request is malformed (bad date/time, missing phone, bad range)."""


class NotFoundError(SchedulingError):
    """The host, rule, or booking link does not exist or is inactive."""


class SlotUnavailableError(SchedulingError):
    """The requested slot is outside availability or already taken."""
