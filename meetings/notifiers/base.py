"""Abstract notifier plus a log-only implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

log = logging.getLogger("meetings.notifiers")


def redact_email(value: str) -> str:
    """Mask an address for logging — show first 3 and last 2 chars only."""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


class Notifier(ABC):
    """Sends the confirmation message to a guest. May raise."""

    @abstractmethod
    async def send_confirmation(self, guest_email: str, subject: str, body: str) -> None:
        ...


class LoggingNotifier(Notifier):
    """Used when no mail backend is configured."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send_confirmation(self, guest_email: str, subject: str, body: str) -> None:
        self.sent.append((guest_email, subject))
        log.info("Confirmation for %s: %s", redact_email(guest_email), subject)
