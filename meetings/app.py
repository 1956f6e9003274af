"""FastAPI application — public booking pages and host availability settings.

Endpoints:

  GET    /health                                       Health check
  GET    /api/book/{slug}                              Booking link info + open slots
  POST   /api/book/{slug}                              Book a slot (guest)
  GET    /api/hosts/{host_id}/availability             List weekly rules      (admin)
  POST   /api/hosts/{host_id}/availability             Replace weekly rules   (admin)
  PUT    /api/hosts/{host_id}/availability/{rule_id}   Update one rule        (admin)
  DELETE /api/hosts/{host_id}/availability/{rule_id}   Delete one rule        (admin)
  GET    /api/hosts/{host_id}/calendar/availability    Preview open slots     (admin)

``now`` is sampled once per request by the ``get_now`` dependency and passed
down explicitly, so every comparison within a request sees the same instant.
"""

from __future__ import annotations

# Load .env into os.environ early so GOOGLE_* paths resolve for the providers.
from dotenv import load_dotenv
load_dotenv()

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Configure root logger early so all app loggers have a handler when run
# via `uvicorn meetings.app:app`.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from meetings.auth import require_admin_token
from meetings.calendar_providers.base import CalendarProvider
from meetings.config import settings
from meetings.errors import BookingValidationError, NotFoundError
from meetings.models.availability import RuleInput, RuleUpdate
from meetings.models.booking import BookingRequest
from meetings.notifiers.base import LoggingNotifier, Notifier
from meetings.services.availability import AvailabilityService
from meetings.services.booking import BookingGuard
from meetings.stores.loader import load_hosts_jsonl, rule_from_input
from meetings.stores.memory import InMemoryStore

log = logging.getLogger("meetings.app")

_START_TIME = time.time()


class ReplaceRulesBody(BaseModel):
    slots: list[RuleInput]


def get_now() -> datetime:
    """Request-scoped clock; override in tests via ``app.dependency_overrides``."""
    return datetime.now(tz=timezone.utc)


def create_app(
    store: Optional[InMemoryStore] = None,
    calendar_provider: Optional[CalendarProvider] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to what ``settings`` describes: hosts seeded from
    ``HOSTS_FILE``, Google Calendar/Gmail when a service account is set.
    """
    if store is None:
        store = _load_store()
    if calendar_provider is None:
        calendar_provider = _create_calendar_provider()
    if notifier is None:
        notifier = _create_notifier()

    availability = AvailabilityService(
        store, store, store,
        calendar_provider=calendar_provider,
        max_horizon_days=settings.max_horizon_days,
    )
    guard = BookingGuard(
        store, store, store,
        calendar_provider=calendar_provider,
        notifier=notifier,
        horizon_days=settings.max_horizon_days,
    )

    app = FastAPI(
        title="Meeting Booking",
        description="Public booking links backed by weekly availability and calendar busy time",
        version="0.1.0",
    )
    app.state.store = store

    # ── Error mapping ─────────────────────────────────────────────

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=404)

    @app.exception_handler(BookingValidationError)
    async def invalid(request: Request, exc: BookingValidationError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check — confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({"status": "ok", "uptime": uptime})

    # ── Public booking page ─────────────────────────────────────

    @app.get("/api/book/{slug}")
    async def get_booking_page(
        slug: str,
        days: int = Query(default=settings.default_horizon_days),
        now: datetime = Depends(get_now),
    ) -> JSONResponse:
        """Booking link details and the dates/times still open."""
        link, host, grid = await availability.for_link(slug, now, days)
        return JSONResponse({
            "booking_link": {
                "slug": link.slug,
                "title": link.title,
                "description": link.description,
                "duration": link.duration_minutes,
                "meeting_type": link.meeting_type.value,
            },
            "host": {"name": host.name or slug, "timezone": host.timezone},
            "slots": [day.model_dump() for day in grid],
        })

    @app.post("/api/book/{slug}")
    async def create_booking(
        slug: str,
        body: BookingRequest,
        now: datetime = Depends(get_now),
    ) -> JSONResponse:
        """Book a slot for a guest; 409 when the slot is no longer free."""
        result = await guard.book(slug, body, now)
        if not result.confirmed:
            return JSONResponse(
                {"error": "Slot no longer available", "reason": result.reason},
                status_code=409,
            )
        payload = {
            "success": True,
            "booking": result.confirmation.model_dump(),
        }
        if result.warnings:
            payload["warnings"] = result.warnings
        return JSONResponse(payload, status_code=201)

    # ── Host availability settings ──────────────────────────────

    async def _require_host(host_id: str):
        host = await store.get_host(host_id)
        if host is None:
            raise NotFoundError("Host not found")
        return host

    @app.get("/api/hosts/{host_id}/availability", dependencies=[Depends(require_admin_token)])
    async def list_rules(host_id: str) -> JSONResponse:
        await _require_host(host_id)
        rules = await store.get_rules(host_id)
        return JSONResponse({"slots": [r.model_dump() for r in rules]})

    @app.post("/api/hosts/{host_id}/availability", dependencies=[Depends(require_admin_token)])
    async def replace_rules(host_id: str, body: ReplaceRulesBody) -> JSONResponse:
        """Delete the host's rules and store the submitted set."""
        host = await _require_host(host_id)
        rules = [rule_from_input(host, r) for r in body.slots]
        count = await store.replace_rules(host_id, rules)
        return JSONResponse({"success": True, "count": count})

    @app.put(
        "/api/hosts/{host_id}/availability/{rule_id}",
        dependencies=[Depends(require_admin_token)],
    )
    async def update_rule(host_id: str, rule_id: str, body: RuleUpdate) -> JSONResponse:
        await _require_host(host_id)
        try:
            rule = await store.update_rule(host_id, rule_id, body)
        except ValueError as exc:
            raise BookingValidationError(str(exc))
        if rule is None:
            raise NotFoundError("Availability rule not found")
        return JSONResponse({"slot": rule.model_dump()})

    @app.delete(
        "/api/hosts/{host_id}/availability/{rule_id}",
        dependencies=[Depends(require_admin_token)],
    )
    async def delete_rule(host_id: str, rule_id: str) -> JSONResponse:
        await _require_host(host_id)
        if not await store.delete_rule(host_id, rule_id):
            raise NotFoundError("Availability rule not found")
        return JSONResponse({"success": True})

    @app.get(
        "/api/hosts/{host_id}/calendar/availability",
        dependencies=[Depends(require_admin_token)],
    )
    async def preview_availability(
        host_id: str,
        days: int = Query(default=7),
        duration: int = Query(default=settings.default_duration_minutes),
        now: datetime = Depends(get_now),
    ) -> JSONResponse:
        """The host's own view of open slots, at any meeting length."""
        grid = await availability.for_host(host_id, now, days, duration)
        return JSONResponse({"slots": [day.model_dump() for day in grid]})

    return app


# ── Helper functions ──────────────────────────────────────────────

def _load_store() -> InMemoryStore:
    """Seed the in-memory store from ``settings.hosts_file`` if present."""
    path = Path(settings.hosts_file)
    if not path.is_file():
        log.warning("Hosts file %s not found — starting with no booking links", path)
        return InMemoryStore()
    return load_hosts_jsonl(path)


def _create_calendar_provider() -> Optional[CalendarProvider]:
    if not settings.google_service_account_json:
        return None
    try:
        from meetings.calendar_providers.google import GoogleCalendarProvider
        return GoogleCalendarProvider(
            service_account_path=settings.google_service_account_json,
        )
    except Exception as e:
        log.warning("Google Calendar not configured: %s", e)
        return None


def _create_notifier() -> Notifier:
    if settings.google_service_account_json and settings.gmail_sender:
        try:
            from meetings.notifiers.gmail import GmailNotifier
            return GmailNotifier(settings.google_service_account_json, settings.gmail_sender)
        except Exception as e:
            log.warning("Gmail not configured: %s", e)
    return LoggingNotifier()


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    import uvicorn

    for warning in settings.validate_startup():
        log.warning(warning)

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "meetings.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )
