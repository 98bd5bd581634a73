"""Cron and push trigger wiring."""

from inboxwatch.infrastructure.scheduling.scheduler import Scheduler, parse_cron

__all__ = ["Scheduler", "parse_cron"]
