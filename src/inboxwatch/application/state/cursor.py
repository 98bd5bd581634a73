"""High-water mark for backends with strictly increasing message UIDs."""

from __future__ import annotations


class CursorTracker:
    """Last fully processed UID. Never moves backwards."""

    def __init__(self, position: int = 0) -> None:
        if position < 0:
            raise ValueError("cursor position must be >= 0")
        self._position = position

    @property
    def position(self) -> int:
        return self._position

    @classmethod
    def from_uid_next(cls, uid_next: int | None) -> "CursorTracker":
        """Seed from the mailbox's UIDNEXT: everything before it counts as already seen."""
        return cls(uid_next - 1 if uid_next else 0)

    def is_new(self, uid: int) -> bool:
        return uid > self._position

    def advance(self, uid: int) -> bool:
        """Move to ``uid`` if it is ahead of the current position. Returns True if moved."""
        if uid <= self._position:
            return False
        self._position = uid
        return True

    def __repr__(self) -> str:
        return f"CursorTracker(position={self._position})"
