"""Push-driven source for backends with monotonic UIDs (IMAP IDLE)."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from loguru import logger

from inboxwatch.application.ports.change_source import CursorSession
from inboxwatch.application.ports.dispatcher import NotificationDispatcher
from inboxwatch.application.sources.base import ChangeSource
from inboxwatch.application.state.cursor import CursorTracker
from inboxwatch.domain.entities.candidate import Candidate
from inboxwatch.domain.errors import DispatchError


class CursorChangeSource(ChangeSource):
    """Notifies for every UID above the cursor, strictly in ascending order.

    The cursor only moves after the dispatcher accepted a message. The first
    failed dispatch ends the scan: the failing UID and everything after it
    are offered again on the next change signal. A backlog larger than one
    listing page is drained page by page within the same scan.
    """

    kind = "push"

    def __init__(
        self,
        name: str,
        session: CursorSession,
        dispatcher: NotificationDispatcher,
        page_size: Optional[int] = None,
    ) -> None:
        super().__init__(name, dispatcher)
        self.session = session
        # Listing cap of the session; a full page means more UIDs may be waiting
        self.page_size = page_size
        self.cursor = CursorTracker()
        self._tasks: set[asyncio.Task] = set()

    async def start(self) -> None:
        uid_next = await self.session.connect()
        self.cursor = CursorTracker.from_uid_next(uid_next)
        logger.info(f"[{self.name}] watching for UIDs after {self.cursor.position}")
        await self.session.subscribe(self.on_change)

    async def unsubscribe(self) -> None:
        self.shutting_down = True
        await self.session.unsubscribe()

    async def stop(self) -> None:
        self.shutting_down = True
        await self.session.close()

    def on_change(self) -> None:
        """Change-signal callback. Spawns a scan; the guard drops it if one is running."""
        if self.shutting_down:
            return
        task = asyncio.get_running_loop().create_task(self.scan())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _scan(self) -> None:
        notified = 0
        while True:
            listed = await self.session.list_since(self.cursor.position)
            fresh = sorted(
                (c for c in listed if self.cursor.is_new(c.uid)),
                key=lambda c: c.uid,
            )
            if not fresh:
                break

            for candidate in fresh:
                await self._deliver(candidate)
                notified += 1

            if not self.page_size or len(listed) < self.page_size:
                break

        if not notified:
            logger.debug(f"[{self.name}] no messages after UID {self.cursor.position}")
            return
        logger.info(f"[{self.name}] notified {notified} message(s), cursor at {self.cursor.position}")

    async def _deliver(self, candidate: Candidate) -> None:
        try:
            await self.dispatcher.notify(candidate)
        except Exception as e:
            self.stats.failures += 1
            logger.warning(
                f"[{self.name}] notification for UID {candidate.uid} failed; "
                f"cursor held at {self.cursor.position}"
            )
            if isinstance(e, DispatchError):
                raise
            raise DispatchError(str(e)) from e

        self.cursor.advance(candidate.uid)
        self.stats.notified += 1

    def snapshot(self) -> dict[str, Any]:
        data = super().snapshot()
        data["cursor"] = self.cursor.position
        return data
