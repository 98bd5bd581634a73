"""Per-source reentrancy guard: at most one scan in flight, extra triggers dropped."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator


class ScanGuard:
    """Idle -> Running -> Idle.

    The check-and-set in ``try_acquire`` contains no await, so on a single
    event loop two triggers can never both see Idle.
    """

    def __init__(self) -> None:
        self._running = False
        self.scans_started = 0
        self.dropped_triggers = 0

    @property
    def running(self) -> bool:
        return self._running

    def try_acquire(self) -> bool:
        if self._running:
            self.dropped_triggers += 1
            return False
        self._running = True
        self.scans_started += 1
        return True

    def release(self) -> None:
        self._running = False

    @asynccontextmanager
    async def guarded(self) -> AsyncIterator[bool]:
        """Yield True when this caller owns the scan, False when it was dropped."""
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
