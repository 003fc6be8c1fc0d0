import pytest

from postmark_cli.client.cache import (
    CACHE_TTL,
    CacheService,
    MemoryStore,
    SenderCacheService,
    ServerCacheService,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class BrokenStore:
    def get(self, key):
        raise OSError("store offline")

    def set(self, key, value, ttl):
        raise OSError("store offline")

    def has(self, key):
        raise OSError("store offline")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_server_keys_include_pagination_and_name():
    cache = ServerCacheService(MemoryStore())

    assert cache.generate_key(10, 0) == "postmark_servers_10_0_"
    assert cache.generate_key(50, 100, "Staging") == "postmark_servers_50_100_Staging"


def test_sender_keys_include_pagination():
    assert SenderCacheService(MemoryStore()).generate_key(100, 0) == "postmark_senders_100_0"


def test_entries_expire_after_ttl(clock):
    cache = CacheService(MemoryStore(clock))
    cache.put("servers", ["a", "b"])

    clock.now += CACHE_TTL - 1
    assert cache.get("servers") == ["a", "b"]
    assert cache.has("servers")

    clock.now += 1
    assert cache.get("servers") is None
    assert not cache.has("servers")


def test_get_returns_a_copy(clock):
    cache = CacheService(MemoryStore(clock))
    cache.put("servers", ["a"])

    cache.get("servers").append("b")

    assert cache.get("servers") == ["a"]


def test_empty_collection_is_a_hit(clock):
    cache = CacheService(MemoryStore(clock))
    cache.put("servers", [])

    assert cache.get("servers") == []


def test_services_share_a_store_without_clashing(clock):
    store = MemoryStore(clock)
    servers = ServerCacheService(store)
    senders = SenderCacheService(store)
    servers.put(servers.generate_key(10, 0), ["server"])
    senders.put(senders.generate_key(10, 0), ["sender"])

    assert servers.get(servers.generate_key(10, 0)) == ["server"]
    assert senders.get(senders.generate_key(10, 0)) == ["sender"]


def test_failing_store_reads_as_miss(caplog):
    cache = CacheService(BrokenStore())

    assert cache.get("servers") is None
    assert cache.has("servers") is False
    assert "Cache lookup failed" in caplog.text


def test_locks_are_held_per_key():
    cache = CacheService(MemoryStore())

    with cache.locked("a"):
        with cache.locked("b"):
            cache.put("b", [1])
    with cache.locked("a"):
        assert cache.get("b") == [1]


def test_failing_store_write_is_skipped(caplog):
    cache = CacheService(BrokenStore())

    cache.put("servers", ["a"])

    assert "Cache write failed" in caplog.text


def test_locks_are_released_after_use():
    cache = CacheService(MemoryStore())

    with cache.locked("a"):
        with cache.locked("b"):
            assert set(cache._locks) == {"a", "b"}

    assert cache._locks == {}
