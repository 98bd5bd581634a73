"""Infrastructure layer - backend adapters, notification transport, scheduling and configuration."""

from inboxwatch.infrastructure.logging import configure_logging
from inboxwatch.infrastructure.settings import Settings, get_settings


def build_watcher(*args, **kwargs):
    """Build the watcher service from settings (lazy import to avoid circular deps)."""
    from inboxwatch.infrastructure.bootstrap import build_watcher as _build

    return _build(*args, **kwargs)


__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Logging
    "configure_logging",
    # Wiring
    "build_watcher",
]
