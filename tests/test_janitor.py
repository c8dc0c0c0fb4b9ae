import asyncio
import logging

import pytest

from realty_api.cache import CacheStore
from realty_api.janitor import CacheJanitor


class _BrokenStore(CacheStore):
    def purge_expired(self) -> int:
        raise RuntimeError("store unavailable")


def test_sweep_removes_all_expired_entries(clock):
    store = CacheStore(clock=clock)
    for index, ttl in enumerate([1, 5, 30, 90]):
        store.set(f"key-{index}", index, ttl)
    janitor = CacheJanitor(store, interval_seconds=60)

    clock.advance(100)

    assert janitor.sweep() == 4
    assert store.size() == 0


def test_sweep_never_removes_fresh_entry(clock):
    store = CacheStore(clock=clock)
    store.set("old-1", 1, 1)
    store.set("old-2", 2, 2)
    store.set("fresh", 3, 60)
    clock.advance(10)
    janitor = CacheJanitor(store, interval_seconds=60)

    assert store.size() == 3
    assert janitor.sweep() == 2

    assert store.size() == 1
    assert store.get("fresh") == 3


def test_sweep_failure_is_logged_not_raised(clock, caplog):
    janitor = CacheJanitor(_BrokenStore(clock=clock), interval_seconds=60)

    with caplog.at_level(logging.ERROR):
        assert janitor.sweep() == 0

    assert "Cache sweep failed" in caplog.text


def test_interval_must_be_positive(clock):
    with pytest.raises(ValueError):
        CacheJanitor(CacheStore(clock=clock), interval_seconds=0)


@pytest.mark.asyncio
async def test_background_loop_sweeps_until_stopped(clock):
    store = CacheStore(clock=clock)
    store.set("expired", 1, 1)
    clock.advance(5)
    janitor = CacheJanitor(store, interval_seconds=0.01)

    await janitor.start()
    assert janitor.running
    await asyncio.sleep(0.05)
    await janitor.stop()

    assert not janitor.running
    assert store.size() == 0


@pytest.mark.asyncio
async def test_loop_survives_failing_sweeps(clock):
    janitor = CacheJanitor(_BrokenStore(clock=clock), interval_seconds=0.01)

    await janitor.start()
    await asyncio.sleep(0.05)

    assert janitor.running
    await janitor.stop()


@pytest.mark.asyncio
async def test_start_twice_is_rejected(clock):
    janitor = CacheJanitor(CacheStore(clock=clock), interval_seconds=60)
    await janitor.start()
    try:
        with pytest.raises(RuntimeError):
            await janitor.start()
    finally:
        await janitor.stop()
