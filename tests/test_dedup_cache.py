"""DedupCache: bounded FIFO recall window."""

from __future__ import annotations

import pytest

from inboxwatch.application.state.dedup_cache import DedupCache


def test_rejects_zero_capacity() -> None:
    with pytest.raises(ValueError):
        DedupCache(0)


def test_evicts_oldest_insertion_first() -> None:
    cache = DedupCache(2)
    assert cache.add("a") == []
    assert cache.add("b") == []

    assert cache.add("c") == ["a"]

    assert "a" not in cache
    assert cache.snapshot() == ["b", "c"]
    assert len(cache) == 2


def test_readding_present_id_keeps_original_position() -> None:
    cache = DedupCache(2)
    cache.add("a")
    cache.add("b")

    assert cache.add("a") == []
    # "a" was not refreshed, so it is still the oldest
    assert cache.add("c") == ["a"]
    assert cache.snapshot() == ["b", "c"]


def test_lookup_does_not_refresh_entry() -> None:
    cache = DedupCache(2)
    cache.add("a")
    cache.add("b")
    assert "a" in cache

    cache.add("c")

    assert "a" not in cache


def test_size_never_exceeds_capacity_and_mirrors_stay_in_sync() -> None:
    cache = DedupCache(3)
    for i in range(20):
        cache.add(f"id-{i % 7}")
        assert len(cache) <= 3
        assert all(m in cache for m in cache.snapshot())
        assert len(set(cache.snapshot())) == len(cache)
