"""Application layer - change detection, deduplication and the watcher use case."""

from inboxwatch.application.sources import ChangeSource, CursorChangeSource, PolledChangeSource
from inboxwatch.application.state import CursorTracker, DedupCache, ScanGuard, TokenCache

__all__ = [
    "ChangeSource",
    "CursorChangeSource",
    "PolledChangeSource",
    "CursorTracker",
    "DedupCache",
    "ScanGuard",
    "TokenCache",
]
