"""Outbound confirmation delivery."""

from .base import LoggingNotifier, Notifier

__all__ = ["LoggingNotifier", "Notifier"]
