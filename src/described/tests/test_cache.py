"""Tests for cache keys and stores."""

import fnmatch
import re

import pytest

from described.foundation.config import clear_settings_cache
from described.foundation.errors import ConfigurationError
from described.io.cache import (
    CacheStore,
    MemoryStore,
    canonical,
    get_default_store,
    make_key,
    register_store,
    reset_default_store,
    resolve_store,
    set_default_store,
    unregister_store,
)
from described.io.cache.redis import RedisStore


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MockAsyncRedisClient:
    """In-memory mock of async Redis client for testing."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self._data: dict[str, tuple[bytes, float | None]] = {}  # key -> (value, expire_at)
        self._clock = clock or FakeClock()

    def _live(self, key: str) -> bytes | None:
        if key not in self._data:
            return None
        value, expires_at = self._data[key]
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def get(self, name: str) -> bytes | None:
        return self._live(name)

    async def set(self, name: str, value: bytes, px: int | None = None) -> bool:
        self._data[name] = (value, self._clock() + px / 1000 if px else None)
        return True

    async def delete(self, *names: str) -> int:
        count = sum(1 for n in names if self._live(n) is not None)
        for name in names:
            self._data.pop(name, None)
        return count

    async def exists(self, *names: str) -> int:
        return sum(1 for n in names if self._live(n) is not None)

    async def scan_iter(self, match: str) -> object:
        for k in list(self._data):
            if fnmatch.fnmatch(k, match):
                yield k

    async def ping(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def clean_default_store() -> object:
    """Reset the process-wide store and settings around each test."""
    reset_default_store()
    clear_settings_cache()
    yield
    reset_default_store()
    clear_settings_cache()


# ─────────────────────────────────────────────────────────────────────────────
# Keys
# ─────────────────────────────────────────────────────────────────────────────


def test_make_key_ignores_key_order() -> None:
    a = {"city": "Oslo", "opts": {"units": "metric", "days": 3}, "tags": ["x", "y"]}
    b = {"tags": ["x", "y"], "opts": {"days": 3, "units": "metric"}, "city": "Oslo"}
    assert make_key("weather", a) == make_key("weather", b)
    assert canonical(a) == canonical(b)


def test_make_key_equal_numbers_share_a_key() -> None:
    """1 and 1.0 are the same JSON number, so they key identically."""
    assert make_key("t", {"a": 1}) == make_key("t", {"a": 1.0})
    assert make_key("t", [2, {"b": 3.0}]) == make_key("t", (2.0, {"b": 3}))
    assert make_key("t", {"a": 1}) != make_key("t", {"a": 1.5})
    assert make_key("t", {"a": True}) != make_key("t", {"a": 1})


def test_make_key_handles_integers_beyond_64_bits() -> None:
    big = 2**70
    assert make_key("t", {"n": big}) == make_key("t", {"n": big})
    assert make_key("t", {"n": big}) != make_key("t", {"n": big + 1})
    assert make_key("t", {"n": float(big)}) == make_key("t", {"n": big})
    assert canonical({big: -big})


def test_make_key_format() -> None:
    key = make_key("weather", {"city": "Oslo"})
    assert re.fullmatch(r"weather:[0-9a-f]{40}", key)


def test_make_key_distinguishes_values_and_namespaces() -> None:
    assert make_key("weather", {"city": "Oslo"}) != make_key("weather", {"city": "Bergen"})
    assert make_key("weather", {"city": "Oslo"}) != make_key("forecast", {"city": "Oslo"})
    # List order is significant
    assert make_key("t", [1, 2]) != make_key("t", [2, 1])


# ─────────────────────────────────────────────────────────────────────────────
# MemoryStore
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_memory_store_basic() -> None:
    store = MemoryStore()
    assert isinstance(store, CacheStore)

    assert await store.set("t:a", {"greeting": "hi"}, 60_000)
    assert await store.get("t:a") == {"greeting": "hi"}
    assert await store.has("t:a")
    assert await store.get("t:b") is None
    assert not await store.has("t:b")


@pytest.mark.asyncio
async def test_memory_store_ttl_with_clock() -> None:
    clock = FakeClock()
    store = MemoryStore(clock=clock)

    await store.set("t:a", "value", 1_000)
    clock.advance(0.999)
    assert await store.get("t:a") == "value"

    clock.advance(0.002)
    assert not await store.has("t:a")
    assert await store.get("t:a") is None


@pytest.mark.asyncio
async def test_memory_store_expired_entry_reads_absent_before_eviction() -> None:
    clock = FakeClock()
    store = MemoryStore(clock=clock)
    await store.set("t:a", "value", 10)
    clock.advance(1)

    assert store.stats()["expired_entries"] == 1
    assert await store.get("t:a") is None
    assert store.size == 0


@pytest.mark.asyncio
async def test_memory_store_isolates_values() -> None:
    store = MemoryStore()
    value = {"items": [1, 2]}
    await store.set("t:a", value, 60_000)
    value["items"].append(3)

    cached = await store.get("t:a")
    assert cached == {"items": [1, 2]}
    cached["items"].append(4)
    assert await store.get("t:a") == {"items": [1, 2]}


@pytest.mark.asyncio
async def test_memory_store_delete_and_clear() -> None:
    store = MemoryStore()
    await store.set("t:a", 1, 60_000)
    await store.set("t:b", 2, 60_000)

    assert await store.delete("t:a")
    assert not await store.delete("t:a")
    assert await store.get("t:b") == 2

    await store.clear()
    assert store.size == 0


@pytest.mark.asyncio
async def test_memory_store_eviction() -> None:
    store = MemoryStore(max_entries=4)
    for i in range(10):
        await store.set(f"t:{i}", i, 60_000 + i)
    assert store.size <= 4
    # Latest write always survives
    assert await store.get("t:9") == 9


@pytest.mark.asyncio
async def test_memory_store_invalidate_namespace() -> None:
    store = MemoryStore()
    await store.set(make_key("a", 1), "x", 60_000)
    await store.set(make_key("a", 2), "y", 60_000)
    await store.set(make_key("b", 1), "z", 60_000)

    assert store.invalidate_namespace("a") == 2
    assert await store.get(make_key("b", 1)) == "z"


# ─────────────────────────────────────────────────────────────────────────────
# Default & Named Stores
# ─────────────────────────────────────────────────────────────────────────────


def test_default_store_singleton() -> None:
    store1 = get_default_store()
    store2 = get_default_store()
    assert store1 is store2
    assert isinstance(store1, MemoryStore)

    custom = MemoryStore(max_entries=10)
    set_default_store(custom)
    assert get_default_store() is custom


def test_default_store_respects_max_entries_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DESCRIBED_CACHE_MAX_ENTRIES", "7")
    clear_settings_cache()
    assert get_default_store().stats()["max_entries"] == 7


def test_default_store_uses_redis_when_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    pytest.importorskip("redis")
    monkeypatch.setenv("DESCRIBED_CACHE_REDIS_URL", "redis://localhost:6379/0")
    clear_settings_cache()
    store = get_default_store()
    assert isinstance(store, RedisStore)
    assert store.stats() == {"backend": "redis", "prefix": "described:"}


def test_resolve_store() -> None:
    fallback = MemoryStore()
    named = MemoryStore()
    register_store("shared", named)
    try:
        assert resolve_store(None, fallback) is fallback
        assert resolve_store(None) is get_default_store()
        assert resolve_store("shared") is named
        assert resolve_store(fallback) is fallback
    finally:
        assert unregister_store("shared")

    with pytest.raises(ConfigurationError):
        resolve_store("shared")


# ─────────────────────────────────────────────────────────────────────────────
# RedisStore
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_redis_store_roundtrip_and_prefix() -> None:
    client = MockAsyncRedisClient()
    store = RedisStore(client, prefix="test:")

    await store.set("weather:abc", {"temp": 4}, 60_000)
    assert await store.get("weather:abc") == {"temp": 4}
    assert await store.has("weather:abc")
    assert "test:weather:abc" in client._data
    assert await store.get("weather:zzz") is None


@pytest.mark.asyncio
async def test_redis_store_ttl_uses_px() -> None:
    clock = FakeClock()
    client = MockAsyncRedisClient(clock)
    store = RedisStore(client)

    await store.set("t:a", "v", 500)
    clock.advance(0.6)
    assert await store.get("t:a") is None


@pytest.mark.asyncio
async def test_redis_store_delete_clear_ping() -> None:
    client = MockAsyncRedisClient()
    other = RedisStore(client, prefix="other:")
    store = RedisStore(client, prefix="test:")

    await store.set("a", 1, 60_000)
    await store.set("b", 2, 60_000)
    await other.set("a", 3, 60_000)

    assert await store.delete("a")
    assert not await store.delete("a")

    await store.clear()
    assert not await store.has("b")
    assert await other.get("a") == 3
    assert await store.ping()
