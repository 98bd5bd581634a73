from __future__ import annotations
from typing import Protocol

from inboxwatch.domain.entities.candidate import Candidate


class NotificationDispatcher(Protocol):
    async def notify(self, candidate: Candidate) -> None:
        """Deliver one notification. Raises DispatchError on failure."""
        ...

    async def verify(self) -> None: ...

    async def close(self) -> None: ...
