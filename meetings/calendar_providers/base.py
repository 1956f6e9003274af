"""Abstract base class for calendar providers.

Defines the interface for reading busy time and creating events.
Any calendar backend (Google, Outlook, etc.) implements this ABC.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from meetings.engine.intervals import BusyInterval


@dataclass
class CalendarEvent:
    """Represents a calendar event to be created."""

    summary: str
    start: datetime
    end: datetime
    description: str = ""
    attendees: list[str] = field(default_factory=list)  # email addresses
    location: str = ""
    create_meet_link: bool = False


class CalendarProvider(ABC):
    """Abstract calendar backend.

    Subclasses must implement busy-time lookup and event creation.  Both may
    raise; callers decide whether a failure is fatal.
    """

    @abstractmethod
    async def get_busy(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[BusyInterval]:
        """Return the busy intervals intersecting ``[start, end)``.

        Args:
            calendar_id: The calendar to query.
            start: Beginning of the query window.
            end: End of the query window.

        Returns:
            BusyInterval objects with absolute (timezone-aware) bounds.
        """

    @abstractmethod
    async def create_event(
        self, calendar_id: str, event: CalendarEvent
    ) -> dict:
        """Create a calendar event.

        Args:
            calendar_id: The calendar to create the event on.
            event: Event details.

        Returns:
            Dict containing at least ``"event_id"``, ``"html_link"`` and
            ``"meet_link"`` (empty when no conference was requested).
        """
