"""Tests for CalendarProvider ABC and GoogleCalendarProvider."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from meetings.calendar_providers.base import CalendarEvent, CalendarProvider
from meetings.engine.intervals import BusyInterval


# ── CalendarEvent dataclass tests ───────────────────────────────────


class TestDataclasses:
    def test_calendar_event_defaults(self):
        now = datetime.now(tz=timezone.utc)
        event = CalendarEvent(
            summary="Test",
            start=now,
            end=now + timedelta(minutes=30),
        )
        assert event.description == ""
        assert event.attendees == []
        assert event.location == ""
        assert event.create_meet_link is False

    def test_calendar_event_with_attendees(self):
        now = datetime.now(tz=timezone.utc)
        event = CalendarEvent(
            summary="Intro call",
            start=now,
            end=now + timedelta(minutes=30),
            attendees=["a@test.com", "b@test.com"],
        )
        assert len(event.attendees) == 2


# ── ABC contract tests ─────────────────────────────────────────────


class TestCalendarProviderABC:
    def test_cannot_instantiate(self):
        """CalendarProvider is abstract — can't be instantiated directly."""
        with pytest.raises(TypeError):
            CalendarProvider()

    def test_concrete_implementation(self):
        """A concrete subclass must implement all abstract methods."""
        class MockProvider(CalendarProvider):
            async def get_busy(self, calendar_id, start, end):
                return []
            async def create_event(self, calendar_id, event):
                return {}

        provider = MockProvider()
        assert isinstance(provider, CalendarProvider)

    def test_missing_method_is_abstract(self):
        class Partial(CalendarProvider):
            async def get_busy(self, calendar_id, start, end):
                return []

        with pytest.raises(TypeError):
            Partial()


# ── GoogleCalendarProvider tests (mocked API) ──────────────────────


class TestGoogleCalendarProvider:
    @pytest.fixture
    def mock_provider(self):
        """Create a GoogleCalendarProvider with mocked Google APIs."""
        with patch(
            "meetings.calendar_providers.google.Credentials"
        ) as mock_creds, patch(
            "meetings.calendar_providers.google.build"
        ) as mock_build:
            mock_creds.from_service_account_file.return_value = MagicMock()

            from meetings.calendar_providers.google import GoogleCalendarProvider

            provider = GoogleCalendarProvider(
                service_account_path="/fake/path.json"
            )
            provider._service = mock_build.return_value
            return provider

    def test_requires_service_account(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT_JSON", raising=False)
        from meetings.calendar_providers.google import GoogleCalendarProvider

        with pytest.raises(ValueError):
            GoogleCalendarProvider()

    async def test_get_busy_empty_calendar(self, mock_provider):
        start = datetime(2026, 3, 15, 0, 0, tzinfo=timezone.utc)
        end = datetime(2026, 3, 16, 0, 0, tzinfo=timezone.utc)

        mock_provider._service.freebusy.return_value.query.return_value.execute.return_value = {
            "calendars": {
                "primary": {"busy": []}
            }
        }

        assert await mock_provider.get_busy("primary", start, end) == []

    async def test_get_busy_parses_and_sorts(self, mock_provider):
        start = datetime(2026, 3, 15, 0, 0, tzinfo=timezone.utc)
        end = datetime(2026, 3, 16, 0, 0, tzinfo=timezone.utc)

        mock_provider._service.freebusy.return_value.query.return_value.execute.return_value = {
            "calendars": {
                "primary": {
                    "busy": [
                        {"start": "2026-03-15T14:00:00Z", "end": "2026-03-15T15:00:00Z"},
                        {"start": "2026-03-15T10:00:00+00:00", "end": "2026-03-15T11:00:00+00:00"},
                    ]
                }
            }
        }

        busy = await mock_provider.get_busy("primary", start, end)

        assert busy == [
            BusyInterval(
                start=datetime(2026, 3, 15, 10, 0, tzinfo=timezone.utc),
                end=datetime(2026, 3, 15, 11, 0, tzinfo=timezone.utc),
            ),
            BusyInterval(
                start=datetime(2026, 3, 15, 14, 0, tzinfo=timezone.utc),
                end=datetime(2026, 3, 15, 15, 0, tzinfo=timezone.utc),
            ),
        ]

        body = mock_provider._service.freebusy.return_value.query.call_args.kwargs["body"]
        assert body["items"] == [{"id": "primary"}]
        assert body["timeMin"] == "2026-03-15T00:00:00+00:00"

    async def test_get_busy_skips_incomplete_entries(self, mock_provider):
        start = datetime(2026, 3, 15, 0, 0, tzinfo=timezone.utc)
        end = datetime(2026, 3, 16, 0, 0, tzinfo=timezone.utc)

        mock_provider._service.freebusy.return_value.query.return_value.execute.return_value = {
            "calendars": {
                "primary": {
                    "busy": [
                        {"start": "2026-03-15T10:00:00Z"},
                        {"start": "2026-03-15T12:00:00Z", "end": "2026-03-15T12:00:00Z"},
                        {"start": "2026-03-15T13:00:00Z", "end": "2026-03-15T13:30:00Z"},
                    ]
                }
            }
        }

        busy = await mock_provider.get_busy("primary", start, end)
        assert len(busy) == 1
        assert busy[0].start.hour == 13

    async def test_get_busy_propagates_api_errors(self, mock_provider):
        mock_provider._service.freebusy.return_value.query.return_value.execute.side_effect = Exception(
            "quota exceeded"
        )
        with pytest.raises(Exception):
            await mock_provider.get_busy(
                "primary",
                datetime(2026, 3, 15, tzinfo=timezone.utc),
                datetime(2026, 3, 16, tzinfo=timezone.utc),
            )

    async def test_create_event(self, mock_provider):
        """create_event should call events().insert() and return event data."""
        now = datetime(2026, 3, 15, 14, 0, tzinfo=timezone.utc)
        event = CalendarEvent(
            summary="Intro call - Grace",
            start=now,
            end=now + timedelta(minutes=30),
            attendees=["test@example.com"],
        )

        mock_provider._service.events.return_value.insert.return_value.execute.return_value = {
            "id": "evt_123",
            "htmlLink": "https://calendar.google.com/event/evt_123",
            "status": "confirmed",
        }

        result = await mock_provider.create_event("primary", event)

        assert result["event_id"] == "evt_123"
        assert result["html_link"] == "https://calendar.google.com/event/evt_123"
        assert result["meet_link"] == ""

        kwargs = mock_provider._service.events.return_value.insert.call_args.kwargs
        assert kwargs["conferenceDataVersion"] == 0
        assert "conferenceData" not in kwargs["body"]

    async def test_create_event_with_meet(self, mock_provider):
        now = datetime(2026, 3, 15, 14, 0, tzinfo=timezone.utc)
        event = CalendarEvent(
            summary="Intro call - Grace",
            start=now,
            end=now + timedelta(minutes=30),
            create_meet_link=True,
        )

        mock_provider._service.events.return_value.insert.return_value.execute.return_value = {
            "id": "evt_456",
            "hangoutLink": "https://meet.google.com/abc-defg-hij",
        }

        result = await mock_provider.create_event("primary", event)

        assert result["meet_link"] == "https://meet.google.com/abc-defg-hij"
        kwargs = mock_provider._service.events.return_value.insert.call_args.kwargs
        assert kwargs["conferenceDataVersion"] == 1
        solution = kwargs["body"]["conferenceData"]["createRequest"]["conferenceSolutionKey"]
        assert solution == {"type": "hangoutsMeet"}
