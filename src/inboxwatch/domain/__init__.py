"""Domain models and errors."""

from inboxwatch.domain.entities.candidate import Candidate
from inboxwatch.domain.errors import (
    AuthError,
    BackendListError,
    ConfigError,
    DispatchError,
    InboxWatchError,
)

__all__ = [
    "Candidate",
    "InboxWatchError",
    "ConfigError",
    "AuthError",
    "BackendListError",
    "DispatchError",
]
