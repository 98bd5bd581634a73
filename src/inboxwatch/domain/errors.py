"""Error taxonomy shared by sources, adapters and dispatchers."""

from __future__ import annotations


class InboxWatchError(Exception):
    """Base error for the watcher."""


class ConfigError(InboxWatchError):
    """A required setting is missing or invalid for one source."""


class AuthError(InboxWatchError):
    """Backend login or token exchange failed."""


class BackendListError(InboxWatchError):
    """Listing or fetching messages from a backend failed."""


class DispatchError(InboxWatchError):
    """Sending the downstream notification failed."""
