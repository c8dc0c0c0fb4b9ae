import pytest

from realty_api.cache import CacheStore


def test_get_returns_payload_until_expiry(clock):
    store = CacheStore(clock=clock)
    store.set("GET:/api/team", {"members": 2}, 100)

    clock.advance(99.9)
    assert store.get("GET:/api/team") == {"members": 2}
    assert store.has("GET:/api/team")

    clock.advance(0.1)
    assert store.get("GET:/api/team") is None
    assert not store.has("GET:/api/team")


def test_entry_is_absent_just_past_ttl(clock):
    store = CacheStore(clock=clock)
    store.set("key", "value", 0.1)

    clock.advance(0.101)

    assert store.get("key") is None


def test_expired_read_drops_entry(clock):
    store = CacheStore(clock=clock)
    store.set("stale", 1, 1)
    clock.advance(2)

    assert store.get("stale") is None
    assert store.size() == 0


def test_reads_do_not_mutate_fresh_entry(clock):
    store = CacheStore(clock=clock)
    payload = {"id": 7}
    store.set("key", payload, 60)

    assert store.get("key") is payload
    assert store.get("key") is payload
    assert store.size() == 1


def test_set_overwrites_and_restarts_ttl(clock):
    store = CacheStore(clock=clock)
    store.set("key", "old", 10)
    clock.advance(8)
    entry = store.set("key", "new", 10)

    assert entry.stored_at == clock.now
    assert entry.expires_at == clock.now + 10
    clock.advance(5)
    assert store.get("key") == "new"


def test_default_ttl_applies_when_omitted(clock):
    store = CacheStore(default_ttl_seconds=30, clock=clock)
    entry = store.set("key", "value")

    assert entry.expires_at - entry.stored_at == 30


@pytest.mark.parametrize("ttl", [0, -5])
def test_set_rejects_non_positive_ttl(clock, ttl):
    store = CacheStore(clock=clock)
    with pytest.raises(ValueError):
        store.set("key", "value", ttl)


def test_get_distinguishes_stored_none_with_sentinel(clock):
    store = CacheStore(clock=clock)
    missing = object()
    store.set("empty", None, 10)

    assert store.get("empty", missing) is None
    assert store.get("other", missing) is missing


def test_remove_and_clear(clock):
    store = CacheStore(clock=clock)
    store.set("a", 1, 10)
    store.set("b", 2, 10)

    store.remove("a")
    store.remove("never-stored")
    assert not store.has("a")
    assert store.has("b")

    store.clear()
    assert store.size() == 0


def test_purge_expired_keeps_fresh_entries(clock):
    store = CacheStore(clock=clock)
    store.set("short", 1, 5)
    store.set("medium", 2, 10)
    store.set("long", 3, 60)

    clock.advance(11)

    assert store.purge_expired() == 2
    assert store.size() == 1
    assert store.get("long") == 3


def test_size_counts_expired_entries_until_purged(clock):
    store = CacheStore(clock=clock)
    store.set("a", 1, 1)
    store.set("b", 2, 2)
    clock.advance(10)

    assert store.size() == 2
    assert store.size() == 2
    assert store.purge_expired() == 2
    assert store.size() == 0

