"""Gmail notifier.

Sends mail through the Gmail API as ``sender`` using a service account with
domain-wide delegation.  The key path comes from ``GOOGLE_SERVICE_ACCOUNT_JSON``
like the calendar provider.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from email.message import EmailMessage
from functools import partial
from typing import Any

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from .base import Notifier, redact_email

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


class GmailNotifier(Notifier):
    def __init__(self, service_account_path: str, sender: str) -> None:
        if not sender:
            raise ValueError("Gmail sender address must be provided (GMAIL_SENDER).")
        credentials = Credentials.from_service_account_file(
            service_account_path, scopes=SCOPES
        ).with_subject(sender)
        self._sender = sender
        self._service = build("gmail", "v1", credentials=credentials)

    async def _run_in_executor(self, func, *args, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    def _encode(self, to: str, subject: str, body: str) -> str:
        message = EmailMessage()
        message["To"] = to
        message["From"] = self._sender
        message["Subject"] = subject
        message.set_content(body)
        return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")

    async def send_confirmation(self, guest_email: str, subject: str, body: str) -> None:
        raw = self._encode(guest_email, subject, body)
        await self._run_in_executor(
            self._service.users().messages().send(userId="me", body={"raw": raw}).execute
        )
        logger.info("Sent confirmation to %s", redact_email(guest_email))
