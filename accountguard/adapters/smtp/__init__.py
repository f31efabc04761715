"""Notification adapters - Email delivery implementations."""

from .background import BackgroundNotifier
from .console import ConsoleEmailSender

__all__ = ["BackgroundNotifier", "ConsoleEmailSender"]
