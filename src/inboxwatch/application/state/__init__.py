"""In-memory change-detection state owned by a single source."""

from inboxwatch.application.state.cursor import CursorTracker
from inboxwatch.application.state.dedup_cache import DedupCache
from inboxwatch.application.state.scan_guard import ScanGuard
from inboxwatch.application.state.token_cache import Token, TokenCache

__all__ = [
    "CursorTracker",
    "DedupCache",
    "ScanGuard",
    "Token",
    "TokenCache",
]
