"""Google Calendar provider implementation.

Uses a Google Cloud service account to interact with the Calendar API v3.
The service account JSON key path is read from the ``GOOGLE_SERVICE_ACCOUNT_JSON``
environment variable.
"""

from __future__ import annotations

import asyncio
import logging
import os
import secrets
from datetime import datetime, timezone
from functools import partial
from typing import Any

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from meetings.engine.intervals import BusyInterval

from .base import CalendarEvent, CalendarProvider

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]


class GoogleCalendarProvider(CalendarProvider):
    """CalendarProvider backed by Google Calendar API v3."""

    def __init__(self, service_account_path: str | None = None) -> None:
        sa_path = service_account_path or os.environ.get(
            "GOOGLE_SERVICE_ACCOUNT_JSON", ""
        )
        if not sa_path:
            raise ValueError(
                "Google service account JSON path must be provided via "
                "constructor argument or GOOGLE_SERVICE_ACCOUNT_JSON env var."
            )
        self._credentials = Credentials.from_service_account_file(
            sa_path, scopes=SCOPES
        )
        self._service = build(
            "calendar", "v3", credentials=self._credentials
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run_in_executor(self, func, *args, **kwargs) -> Any:
        """Run a synchronous Google API call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(func, *args, **kwargs)
        )

    @staticmethod
    def _to_rfc3339(dt: datetime) -> str:
        """Convert a datetime to an RFC 3339 string with timezone."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.isoformat()

    # ------------------------------------------------------------------
    # CalendarProvider interface
    # ------------------------------------------------------------------

    async def get_busy(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> list[BusyInterval]:
        """Query the Google freebusy API.

        Entries missing a start or end, or with a non-positive span, are
        skipped rather than failing the whole lookup.
        """
        body = {
            "timeMin": self._to_rfc3339(start),
            "timeMax": self._to_rfc3339(end),
            "items": [{"id": calendar_id}],
        }

        response = await self._run_in_executor(
            self._service.freebusy().query(body=body).execute
        )

        raw_busy: list[dict] = (
            response.get("calendars", {})
            .get(calendar_id, {})
            .get("busy", [])
        )

        busy: list[BusyInterval] = []
        for interval in raw_busy:
            b_start = interval.get("start")
            b_end = interval.get("end")
            if not isinstance(b_start, str) or not isinstance(b_end, str):
                continue
            try:
                busy.append(BusyInterval.from_rfc3339(b_start, b_end))
            except ValueError:
                logger.warning("Skipping malformed busy block %s", interval)

        busy.sort(key=lambda b: b.start)
        logger.debug(
            "Fetched %d busy intervals for calendar %s", len(busy), calendar_id
        )
        return busy

    async def create_event(
        self, calendar_id: str, event: CalendarEvent
    ) -> dict:
        """Insert an event into the Google Calendar.

        Sends email invitations to any attendees listed on the event and,
        when requested, attaches a Google Meet conference.
        """
        body: dict[str, Any] = {
            "summary": event.summary,
            "start": {"dateTime": self._to_rfc3339(event.start)},
            "end": {"dateTime": self._to_rfc3339(event.end)},
        }
        if event.description:
            body["description"] = event.description
        if event.location:
            body["location"] = event.location
        if event.attendees:
            body["attendees"] = [
                {"email": addr} for addr in event.attendees
            ]
        if event.create_meet_link:
            body["conferenceData"] = {
                "createRequest": {
                    "requestId": f"meet-{secrets.token_hex(8)}",
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            }

        result = await self._run_in_executor(
            self._service.events()
            .insert(
                calendarId=calendar_id,
                body=body,
                conferenceDataVersion=1 if event.create_meet_link else 0,
                sendUpdates="all",
            )
            .execute
        )

        logger.info("Created event %s on calendar %s", result["id"], calendar_id)

        return {
            "event_id": result["id"],
            "html_link": result.get("htmlLink", ""),
            "meet_link": result.get("hangoutLink", ""),
            "status": result.get("status", "confirmed"),
        }
