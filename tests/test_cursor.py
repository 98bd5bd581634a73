"""CursorTracker: monotonic high-water mark."""

from __future__ import annotations

import pytest

from inboxwatch.application.state.cursor import CursorTracker


def test_seeds_from_uid_next() -> None:
    assert CursorTracker.from_uid_next(42).position == 41


@pytest.mark.parametrize("uid_next", [None, 0])
def test_seeds_zero_without_uid_next(uid_next) -> None:
    assert CursorTracker.from_uid_next(uid_next).position == 0


def test_rejects_negative_position() -> None:
    with pytest.raises(ValueError):
        CursorTracker(-1)


def test_advance_never_moves_backwards() -> None:
    cursor = CursorTracker(10)

    assert cursor.advance(12) is True
    assert cursor.advance(11) is False
    assert cursor.advance(12) is False

    assert cursor.position == 12


def test_is_new_only_above_position() -> None:
    cursor = CursorTracker(10)
    assert not cursor.is_new(9)
    assert not cursor.is_new(10)
    assert cursor.is_new(11)
