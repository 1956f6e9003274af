"""Application configuration via environment variables."""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings

log = logging.getLogger("meetings.config")


class Settings(BaseSettings):
    # Google Calendar / Gmail (service account with domain-wide delegation)
    google_service_account_json: str = ""
    gmail_sender: str = ""

    # Slot engine defaults
    default_timezone: str = "America/Los_Angeles"
    default_horizon_days: int = 14
    max_horizon_days: int = 60
    default_duration_minutes: int = 30

    # Seed data for the in-memory store
    hosts_file: str = "data/hosts.jsonl"

    # Admin auth (host settings endpoints)
    admin_api_key: str = ""

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []
        _placeholders = {"path/to/service-account.json", "you@example.com"}

        try:
            ZoneInfo(self.default_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"DEFAULT_TIMEZONE {self.default_timezone!r} is not a valid IANA zone."
            )

        if not 0 < self.default_horizon_days <= self.max_horizon_days:
            raise ValueError(
                "DEFAULT_HORIZON_DAYS must be between 1 and MAX_HORIZON_DAYS."
            )

        # Admin API key: warn if unset
        if not self.admin_api_key:
            if self.debug:
                warnings.append(
                    "ADMIN_API_KEY not set. Host settings APIs are open (DEBUG=true)."
                )
            else:
                warnings.append(
                    "ADMIN_API_KEY not set. Host settings APIs are locked in production. "
                    "Set ADMIN_API_KEY in .env to enable them."
                )

        # Google: warn if placeholder or absent
        if self.google_service_account_json in _placeholders:
            warnings.append(
                "GOOGLE_SERVICE_ACCOUNT_JSON is a placeholder — calendar integration disabled."
            )
        elif not self.google_service_account_json:
            warnings.append(
                "GOOGLE_SERVICE_ACCOUNT_JSON not set — availability ignores busy time."
            )

        if self.gmail_sender in _placeholders:
            warnings.append("GMAIL_SENDER is a placeholder — confirmations are only logged.")

        return warnings


settings = Settings()
