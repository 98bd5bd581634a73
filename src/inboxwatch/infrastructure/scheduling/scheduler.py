"""Trigger wiring: cron jobs for polled sources, push subscriptions for cursor sources."""

from __future__ import annotations

import asyncio
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from inboxwatch.application.sources.base import ChangeSource
from inboxwatch.application.sources.cursor_source import CursorChangeSource
from inboxwatch.application.sources.polled_source import PolledChangeSource
from inboxwatch.domain.errors import ConfigError


def parse_cron(expression: str, source: str = "") -> CronTrigger:
    """Build a trigger from a five-field crontab expression."""
    try:
        return CronTrigger.from_crontab(expression)
    except ValueError as e:
        where = f" for {source}" if source else ""
        raise ConfigError(f"invalid cron expression{where}: {expression!r} ({e})") from e


def job_id(source: ChangeSource) -> str:
    return f"poll:{source.name}"


class Scheduler:
    """Owns the APScheduler instance and the set of registered sources.

    Each polled source gets one cron job running its guarded ``scan()``.
    A tick that fires while the previous scan is still running is dropped by
    the source's ScanGuard. Push sources drive themselves once subscribed;
    the scheduler only tracks them so shutdown can unsubscribe.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None) -> None:
        self._scheduler = scheduler or AsyncIOScheduler()
        self._polled: dict[str, PolledChangeSource] = {}
        self._pushed: dict[str, CursorChangeSource] = {}

    @property
    def running(self) -> bool:
        return self._scheduler.running

    @property
    def sources(self) -> list[ChangeSource]:
        return [*self._pushed.values(), *self._polled.values()]

    def register(self, source: ChangeSource) -> None:
        if isinstance(source, PolledChangeSource):
            trigger = parse_cron(source.schedule, source.name)
            self._scheduler.add_job(
                source.scan,
                trigger,
                id=job_id(source),
                name=f"{source.name} poll",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            self._polled[source.name] = source
            logger.info(f"[{source.name}] scheduled on cron '{source.schedule}'")
        elif isinstance(source, CursorChangeSource):
            self._pushed[source.name] = source
            logger.info(f"[{source.name}] push subscription registered")
        else:
            raise TypeError(f"unsupported source type: {type(source).__name__}")

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info(f"Scheduler started: {len(self._polled)} poll job(s), {len(self._pushed)} push source(s)")

    async def shutdown(self) -> None:
        """Stop firing triggers. In-flight scans are left to finish or be cut off by source.stop()."""
        for source in self.sources:
            source.shutting_down = True

        if self._scheduler.running:
            self._scheduler.remove_all_jobs()
            self._scheduler.shutdown(wait=False)
            # AsyncIOScheduler queues its shutdown on the loop; let it run
            await asyncio.sleep(0)

        for source in self._pushed.values():
            try:
                await source.unsubscribe()
            except Exception as e:
                logger.debug(f"[{source.name}] unsubscribe during shutdown failed: {e}")

        logger.info("Scheduler stopped")
