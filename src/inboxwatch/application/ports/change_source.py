from __future__ import annotations
from typing import Callable, Protocol, Sequence

from inboxwatch.domain.entities.candidate import Candidate

ChangeCallback = Callable[[], None]


class CursorSession(Protocol):
    """Backend that assigns strictly increasing UIDs and pushes change signals."""

    async def connect(self) -> int:
        """Open the session and return the backend's next UID."""
        ...

    async def list_since(self, cursor: int) -> Sequence[Candidate]: ...

    async def subscribe(self, on_change: ChangeCallback) -> None: ...

    async def unsubscribe(self) -> None: ...

    async def close(self) -> None: ...


class ListingSession(Protocol):
    """Backend that can only list recent matching items, in no guaranteed order."""

    async def connect(self) -> None: ...

    async def list_matching(self, page_cap: int) -> Sequence[Candidate]: ...

    async def describe(self, candidate: Candidate) -> Candidate:
        """Fill in sender/subject for listings that only carry ids."""
        ...

    async def close(self) -> None: ...
