"""Push-subscribed source: cursor ordering, failure hold and trigger dropping."""

from __future__ import annotations

import asyncio

import pytest
from fakes import FakeCursorSession, FakeDispatcher

from inboxwatch.application.sources.cursor_source import CursorChangeSource
from inboxwatch.domain.errors import BackendListError


async def _started(session: FakeCursorSession, dispatcher: FakeDispatcher) -> CursorChangeSource:
    source = CursorChangeSource("imap", session, dispatcher)
    await source.start()
    return source


@pytest.mark.asyncio
async def test_start_seeds_cursor_and_subscribes() -> None:
    session = FakeCursorSession(uid_next=11)
    source = await _started(session, FakeDispatcher())

    assert source.cursor.position == 10
    assert session.on_change == source.on_change


@pytest.mark.asyncio
async def test_notifies_in_ascending_order_and_advances_cursor() -> None:
    session = FakeCursorSession(uid_next=11)
    dispatcher = FakeDispatcher()
    source = await _started(session, dispatcher)
    session.deliver(13, 11, 12)

    assert await source.scan() is True

    assert dispatcher.notified == ["11", "12", "13"]
    assert source.cursor.position == 13
    assert source.stats.notified == 3


@pytest.mark.asyncio
async def test_dispatch_failure_holds_cursor_and_defers_rest() -> None:
    session = FakeCursorSession(uid_next=11)
    dispatcher = FakeDispatcher(fail_on={"12"})
    source = await _started(session, dispatcher)
    session.deliver(11, 12, 13)

    await source.scan()

    assert dispatcher.notified == ["11"]
    assert dispatcher.attempted == ["11", "12"]
    assert source.cursor.position == 11
    assert source.stats.scans_failed == 1
    assert source.stats.failures == 1

    dispatcher.fail_on.clear()
    await source.scan()

    assert session.list_calls[-1] == 11
    assert dispatcher.notified == ["11", "12", "13"]
    assert source.cursor.position == 13


@pytest.mark.asyncio
async def test_empty_listing_is_a_noop() -> None:
    session = FakeCursorSession(uid_next=5)
    dispatcher = FakeDispatcher()
    source = await _started(session, dispatcher)

    assert await source.scan() is True

    assert dispatcher.attempted == []
    assert source.cursor.position == 4
    assert source.stats.scans_completed == 1


@pytest.mark.asyncio
async def test_ignores_uids_at_or_below_cursor() -> None:
    session = FakeCursorSession(uid_next=11, uids=(3, 10))
    dispatcher = FakeDispatcher()
    source = await _started(session, dispatcher)

    await source.scan()

    assert dispatcher.attempted == []
    assert source.cursor.position == 10


@pytest.mark.asyncio
async def test_signal_during_scan_is_dropped(log_messages) -> None:
    session = FakeCursorSession(uid_next=1, uids=(1,))
    dispatcher = FakeDispatcher()
    dispatcher.gate = asyncio.Event()
    source = await _started(session, dispatcher)

    first = asyncio.create_task(source.scan())
    while not dispatcher.attempted:
        await asyncio.sleep(0)

    session.on_change()
    assert await source.scan() is False
    await asyncio.gather(*list(source._tasks))

    dispatcher.gate.set()
    assert await first is True

    assert len(session.list_calls) == 1
    assert source.guard.dropped_triggers == 2
    assert dispatcher.notified == ["1"]
    assert any("trigger dropped" in m for m in log_messages)


@pytest.mark.asyncio
async def test_change_signal_spawns_scan() -> None:
    session = FakeCursorSession(uid_next=1)
    dispatcher = FakeDispatcher()
    source = await _started(session, dispatcher)
    session.deliver(1, 2)

    session.on_change()
    await asyncio.gather(*list(source._tasks))

    assert dispatcher.notified == ["1", "2"]


@pytest.mark.asyncio
async def test_listing_error_is_contained(log_messages) -> None:
    session = FakeCursorSession(uid_next=11)
    source = await _started(session, FakeDispatcher())

    async def broken(cursor: int):
        raise BackendListError("connection reset")

    session.list_since = broken

    assert await source.scan() is True

    assert source.cursor.position == 10
    assert source.stats.last_error == "BackendListError: connection reset"
    assert any("scan aborted" in m for m in log_messages)
    assert source.guard.running is False


@pytest.mark.asyncio
async def test_no_scans_after_shutdown() -> None:
    session = FakeCursorSession(uid_next=1, uids=(1,))
    dispatcher = FakeDispatcher()
    source = await _started(session, dispatcher)

    await source.unsubscribe()
    session.on_change()
    await source.stop()

    assert source._tasks == set()
    assert session.unsubscribed and session.closed
    assert dispatcher.attempted == []


@pytest.mark.asyncio
async def test_snapshot_reports_cursor() -> None:
    source = await _started(FakeCursorSession(uid_next=8), FakeDispatcher())

    data = source.snapshot()

    assert data["kind"] == "push"
    assert data["cursor"] == 7
    assert data["running"] is False


@pytest.mark.asyncio
async def test_backlog_larger_than_a_page_drains_in_one_scan() -> None:
    session = FakeCursorSession(uid_next=1, limit=2)
    dispatcher = FakeDispatcher()
    source = CursorChangeSource("imap", session, dispatcher, page_size=2)
    await source.start()
    session.deliver(1, 2, 3, 4, 5)

    assert await source.scan() is True

    assert dispatcher.notified == ["1", "2", "3", "4", "5"]
    assert source.cursor.position == 5
    assert session.list_calls == [0, 2, 4]


@pytest.mark.asyncio
async def test_failure_on_later_page_holds_cursor() -> None:
    session = FakeCursorSession(uid_next=1, limit=2)
    dispatcher = FakeDispatcher(fail_on={"4"})
    source = CursorChangeSource("imap", session, dispatcher, page_size=2)
    await source.start()
    session.deliver(1, 2, 3, 4, 5)

    await source.scan()

    assert dispatcher.notified == ["1", "2", "3"]
    assert source.cursor.position == 3
    assert source.stats.scans_failed == 1
