"""Notification dispatchers."""

from inboxwatch.infrastructure.notify.log import LogDispatcher
from inboxwatch.infrastructure.notify.smtp import SmtpConfig, SmtpDispatcher

__all__ = [
    "LogDispatcher",
    "SmtpConfig",
    "SmtpDispatcher",
]
