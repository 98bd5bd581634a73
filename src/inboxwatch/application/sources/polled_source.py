"""Cron-polled source for backends without a monotonic position (Gmail, Graph)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from loguru import logger

from inboxwatch.application.ports.change_source import ListingSession
from inboxwatch.application.ports.dispatcher import NotificationDispatcher
from inboxwatch.application.sources.base import ChangeSource
from inboxwatch.application.state.dedup_cache import DedupCache


class PolledChangeSource(ChangeSource):
    """Filters each listing through a bounded FIFO dedup cache.

    An id is tracked once its notification was attempted, whether or not the
    dispatcher succeeded: a failed notification is dropped, not retried.
    An id that ages out of the cache and shows up again is notified again.
    """

    kind = "poll"

    def __init__(
        self,
        name: str,
        session: ListingSession,
        dispatcher: NotificationDispatcher,
        schedule: str,
        page_cap: int,
        cache_capacity: int,
    ) -> None:
        super().__init__(name, dispatcher)
        self.session = session
        self.schedule = schedule
        self.page_cap = page_cap
        self.cache = DedupCache(cache_capacity)

    async def start(self) -> None:
        await self.session.connect()
        logger.info(f"[{self.name}] poller ready (cron: {self.schedule})")

    async def stop(self) -> None:
        self.shutting_down = True
        await self.session.close()

    async def _scan(self) -> None:
        listed = await self.session.list_matching(self.page_cap)
        if not listed:
            logger.debug(f"[{self.name}] poll: no matching messages")
            return

        notified = 0
        for entry in listed:
            if not entry.message_id or entry.message_id in self.cache:
                continue

            candidate = await self.session.describe(entry)
            try:
                await self.dispatcher.notify(candidate)
                notified += 1
                self.stats.notified += 1
            except Exception as e:
                self.stats.failures += 1
                logger.error(f"[{self.name}] notification for {entry.message_id} dropped: {e}")

            self.cache.add(entry.message_id)

        logger.info(f"[{self.name}] poll: {len(listed)} listed, {notified} notified")

    def snapshot(self) -> dict[str, Any]:
        data = super().snapshot()
        data["schedule"] = self.schedule
        data["cache_size"] = len(self.cache)
        data["cache_capacity"] = self.cache.capacity
        token_cache = getattr(self.session, "token_cache", None)
        if token_cache is not None and token_cache.token is not None:
            data["token_expires_at"] = datetime.fromtimestamp(
                token_cache.token.expires_at, tz=timezone.utc
            ).isoformat()
        return data
