"""Change sources: one per watched account."""

from inboxwatch.application.sources.base import ChangeSource, SourceStats
from inboxwatch.application.sources.cursor_source import CursorChangeSource
from inboxwatch.application.sources.polled_source import PolledChangeSource

__all__ = [
    "ChangeSource",
    "SourceStats",
    "CursorChangeSource",
    "PolledChangeSource",
]
