"""In-memory sessions and dispatcher used by the source and service tests."""

from __future__ import annotations

import asyncio
from typing import Optional

from inboxwatch.domain.entities.candidate import Candidate
from inboxwatch.domain.errors import BackendListError, DispatchError


class FakeDispatcher:
    def __init__(self, fail_on: Optional[set[str]] = None) -> None:
        self.fail_on = set(fail_on or ())
        self.notified: list[str] = []
        self.attempted: list[str] = []
        self.gate: Optional[asyncio.Event] = None
        self.verified = False
        self.verify_error: Optional[Exception] = None
        self.closed = False

    async def verify(self) -> None:
        if self.verify_error is not None:
            raise self.verify_error
        self.verified = True

    async def notify(self, candidate: Candidate) -> None:
        self.attempted.append(candidate.message_id)
        if self.gate is not None:
            await self.gate.wait()
        if candidate.message_id in self.fail_on:
            raise DispatchError(f"refused {candidate.message_id}")
        self.notified.append(candidate.message_id)

    async def close(self) -> None:
        self.closed = True


class FakeCursorSession:
    """Mailbox with numeric UIDs and a manual change signal."""

    def __init__(self, uid_next: Optional[int] = 1, uids: tuple[int, ...] = (), limit: int = 50) -> None:
        self.uid_next = uid_next
        self.uids = set(uids)
        self.limit = limit
        self.on_change = None
        self.list_calls: list[int] = []
        self.connected = False
        self.unsubscribed = False
        self.closed = False
        self.connect_error: Optional[Exception] = None

    def deliver(self, *uids: int) -> None:
        self.uids.update(uids)

    async def connect(self) -> Optional[int]:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        return self.uid_next

    async def list_since(self, cursor: int) -> list[Candidate]:
        self.list_calls.append(cursor)
        fresh = sorted(uid for uid in self.uids if uid > cursor)[: self.limit]
        return [Candidate(message_id=str(uid), source="imap", subject=f"message {uid}") for uid in fresh]

    async def subscribe(self, on_change) -> None:
        self.on_change = on_change

    async def unsubscribe(self) -> None:
        self.unsubscribed = True

    async def close(self) -> None:
        self.closed = True


class FakeListingSession:
    """REST-style backend: listings carry ids only, describe() fills the rest."""

    def __init__(self, source: str = "gmail") -> None:
        self.source = source
        self.pages: list[list[str]] = []
        self.described: list[str] = []
        self.list_error: Optional[Exception] = None
        self.list_calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.connected = False
        self.closed = False

    def queue(self, *pages: list[str]) -> None:
        self.pages.extend(pages)

    async def connect(self) -> None:
        self.connected = True

    async def list_matching(self, page_cap: int) -> list[Candidate]:
        self.list_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.list_error is not None:
            raise self.list_error
        ids = self.pages.pop(0) if self.pages else []
        return [Candidate(message_id=i, source=self.source) for i in ids[:page_cap]]

    async def describe(self, candidate: Candidate) -> Candidate:
        self.described.append(candidate.message_id)
        return Candidate(
            message_id=candidate.message_id,
            source=self.source,
            sender_name=f"Sender {candidate.message_id}",
            subject=f"Subject {candidate.message_id}",
        )

    async def close(self) -> None:
        self.closed = True


def failing_listing(source: str = "gmail") -> FakeListingSession:
    session = FakeListingSession(source)
    session.list_error = BackendListError("backend unavailable")
    return session
