"""Bounded recall window of already-notified message ids."""

from __future__ import annotations

from collections import deque
from typing import Iterator


class DedupCache:
    """Insertion-ordered set of at most ``capacity`` ids.

    Eviction is strict FIFO by insertion time. Lookups do not refresh an
    entry, and re-adding an id that is still present keeps its original
    position. The deque and the set mirror always hold the same ids.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("dedup cache capacity must be >= 1")
        self._capacity = capacity
        self._order: deque[str] = deque()
        self._members: set[str] = set()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def add(self, message_id: str) -> list[str]:
        """Track ``message_id``. Returns the ids evicted to stay within capacity."""
        if message_id in self._members:
            return []

        self._order.append(message_id)
        self._members.add(message_id)

        evicted: list[str] = []
        while len(self._order) > self._capacity:
            oldest = self._order.popleft()
            self._members.discard(oldest)
            evicted.append(oldest)
        return evicted

    def snapshot(self) -> list[str]:
        """Ids from oldest to newest."""
        return list(self._order)
