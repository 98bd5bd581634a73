"""Common scan lifecycle for every change source."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger

from inboxwatch.application.ports.dispatcher import NotificationDispatcher
from inboxwatch.application.state.scan_guard import ScanGuard
from inboxwatch.domain.errors import InboxWatchError


@dataclass
class SourceStats:
    """Counters reported by the status API and the periodic log line."""
    scans_completed: int = 0
    scans_failed: int = 0
    notified: int = 0
    failures: int = 0
    last_scan_at: Optional[datetime] = None
    last_error: Optional[str] = None


class ChangeSource(ABC):
    """Detects newly arrived messages for one account and hands them to the dispatcher.

    Every trigger goes through ``scan()``: it owns the ScanGuard, so a trigger
    that arrives while a scan is in flight is dropped, and it catches every
    error so nothing escapes into the scheduler or into sibling sources.
    """

    kind: str = "source"

    def __init__(self, name: str, dispatcher: NotificationDispatcher) -> None:
        self.name = name
        self.dispatcher = dispatcher
        self.guard = ScanGuard()
        self.stats = SourceStats()
        self.shutting_down = False

    @abstractmethod
    async def start(self) -> None:
        """Connect to the backend and initialize per-source state."""

    @abstractmethod
    async def stop(self) -> None:
        """Close backend connections. In-flight scans are not awaited."""

    @abstractmethod
    async def _scan(self) -> None:
        """List, filter, dispatch and advance state. Runs with the guard held."""

    async def scan(self) -> bool:
        """Run one guarded scan. Returns False when the trigger was dropped."""
        async with self.guard.guarded() as acquired:
            if not acquired:
                logger.debug(f"[{self.name}] scan already running, trigger dropped")
                return False

            self.stats.last_scan_at = datetime.now(timezone.utc)
            try:
                await self._scan()
            except InboxWatchError as e:
                self._record_failure(e)
                if not self.shutting_down:
                    logger.error(f"[{self.name}] scan aborted: {type(e).__name__}: {e}")
            except Exception as e:
                self._record_failure(e)
                if not self.shutting_down:
                    logger.opt(exception=e).error(f"[{self.name}] scan crashed: {e}")
            else:
                self.stats.scans_completed += 1
                self.stats.last_error = None
            return True

    def _record_failure(self, error: Exception) -> None:
        self.stats.scans_failed += 1
        self.stats.last_error = f"{type(error).__name__}: {error}"

    def snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "running": self.guard.running,
            "scans": self.guard.scans_started,
            "dropped_triggers": self.guard.dropped_triggers,
            "scans_completed": self.stats.scans_completed,
            "scans_failed": self.stats.scans_failed,
            "notified": self.stats.notified,
            "failures": self.stats.failures,
            "last_scan_at": self.stats.last_scan_at.isoformat() if self.stats.last_scan_at else None,
            "last_error": self.stats.last_error,
        }
