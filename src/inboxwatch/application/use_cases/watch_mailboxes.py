"""Watch every configured mailbox and notify once per newly observed message."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from loguru import logger

from inboxwatch.application.ports.dispatcher import NotificationDispatcher
from inboxwatch.application.sources.base import ChangeSource
from inboxwatch.domain.errors import InboxWatchError
from inboxwatch.infrastructure.scheduling.scheduler import Scheduler


class WatcherService:
    """Owns the sources, the scheduler and the dispatcher for one process.

    Flow:
    1. Verify the dispatcher (fatal on failure: nothing could be delivered)
    2. Start each source; a source that fails to start is logged and left out
    3. Register the started sources with the scheduler and start it

    Sources never share state, so one failing account never stops another.
    """

    def __init__(
        self,
        sources: Sequence[ChangeSource],
        dispatcher: NotificationDispatcher,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.sources = list(sources)
        self.dispatcher = dispatcher
        self.scheduler = scheduler or Scheduler()
        self.active: list[ChangeSource] = []
        self.failed: dict[str, str] = {}
        self.started = False

    async def start(self) -> None:
        await self.dispatcher.verify()

        for source in self.sources:
            try:
                await source.start()
            except InboxWatchError as e:
                self.failed[source.name] = f"{type(e).__name__}: {e}"
                logger.error(f"[{source.name}] failed to start: {e}")
                continue
            except Exception as e:
                self.failed[source.name] = f"{type(e).__name__}: {e}"
                logger.opt(exception=e).error(f"[{source.name}] failed to start: {e}")
                continue

            self.scheduler.register(source)
            self.active.append(source)

        self.scheduler.start()
        self.started = True
        logger.info(f"Watching {len(self.active)} of {len(self.sources)} source(s)")

    async def stop(self) -> None:
        """Stop triggers first, then close backend connections, then the dispatcher."""
        await self.scheduler.shutdown()

        for source in self.active:
            try:
                await source.stop()
            except Exception as e:
                logger.warning(f"[{source.name}] error while stopping: {e}")

        await self.dispatcher.close()
        self.started = False
        logger.info("Watcher stopped")

    def get(self, name: str) -> Optional[ChangeSource]:
        for source in self.sources:
            if source.name == name:
                return source
        return None

    async def trigger(self, name: str) -> bool:
        """Run one guarded scan of a source on demand. Returns False if it was dropped."""
        source = self.get(name)
        if source is None:
            raise KeyError(name)
        logger.info(f"[{name}] manual scan requested")
        return await source.scan()

    def snapshot(self) -> list[dict[str, Any]]:
        rows = []
        for source in self.sources:
            data = source.snapshot()
            data["active"] = source in self.active
            if source.name in self.failed:
                data["start_error"] = self.failed[source.name]
            rows.append(data)
        return rows
