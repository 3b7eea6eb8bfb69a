"""Result caching with TTL support.

Provides the cache key derivation and the async store capability used by the
invocation pipeline, plus a thread-safe in-memory default store.

Cache keys are ``<tool name>:<sha1 hex of canonical input>``. SHA-1 is a
namespacing key here, not a security boundary: collisions are accepted.
"""

from __future__ import annotations

import hashlib
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import orjson

from described.foundation.config import get_settings
from described.foundation.errors import ConfigurationError

if TYPE_CHECKING:
    from described.foundation.errors import JsonDict

Clock = Callable[[], float]

# Value types a store accepts: anything orjson can serialize
CacheValue = object


# ═══════════════════════════════════════════════════════════════════════════════
# Key Derivation
# ═══════════════════════════════════════════════════════════════════════════════


# Integers orjson cannot encode natively (outside the signed/unsigned 64-bit range)
_INT_MIN, _INT_MAX = -(2**63), 2**64 - 1


def _default(value: object) -> object:
    """orjson fallback: pydantic models dump as JSON, sets sort, anything else stringifies."""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")  # type: ignore[union-attr]
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return str(value)


def _normalize(value: object) -> object:
    """Fold numerically equal values onto one form before serializing.

    Whole floats become ints (``1.0`` keys like ``1``) and integers beyond
    64 bits become ``{"$int": "<digits>"}``.
    """
    match value:
        case bool() | None | str():
            return value
        case float() if value.is_integer():
            return _normalize(int(value))
        case int() if not _INT_MIN <= value <= _INT_MAX:
            return {"$int": str(value)}
        case int() | float():
            return value
        case Mapping():
            return {_normalize_key(k): _normalize(v) for k, v in value.items()}
        case list() | tuple():
            return [_normalize(v) for v in value]
        case set() | frozenset():
            return sorted((_normalize(v) for v in value), key=repr)
        case _ if hasattr(value, "model_dump"):
            return _normalize(value.model_dump(mode="json"))  # type: ignore[attr-defined]
        case _:
            return value


def _normalize_key(key: object) -> object:
    if isinstance(key, float) and key.is_integer():
        key = int(key)
    if isinstance(key, int) and not isinstance(key, bool) and not _INT_MIN <= key <= _INT_MAX:
        return str(key)
    return key


def canonical(value: object) -> bytes:
    """Serialize value so structurally equal values yield identical bytes.

    Mapping keys are sorted at every depth, so insertion order never leaks
    into the result. Numerically equal numbers (``1`` and ``1.0``) serialize
    identically.
    """
    return orjson.dumps(_normalize(value), default=_default, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS)


def make_key(namespace: str, value: object) -> str:
    """Generate cache key from a namespace (tool name) and an input value."""
    digest = hashlib.sha1(canonical(value), usedforsecurity=False).hexdigest()
    return f"{namespace}:{digest}"


# ═══════════════════════════════════════════════════════════════════════════════
# Store Capability
# ═══════════════════════════════════════════════════════════════════════════════


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache stores (enables custom and external implementations).

    ``get`` returns ``None`` for missing and expired keys alike. TTLs are in
    milliseconds.
    """

    async def get(self, key: str) -> CacheValue | None: ...
    async def set(self, key: str, value: CacheValue, ttl: int) -> bool: ...
    async def delete(self, key: str) -> bool: ...
    async def has(self, key: str) -> bool: ...
    async def clear(self) -> None: ...


@dataclass(slots=True)
class CacheEntry:
    """A cached value with expiration tracking."""
    value: bytes
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryStore:
    """Thread-safe in-memory store with TTL-based expiration.

    Uses RLock for synchronization, so each operation is atomic even when the
    store is shared across event loops and threads. Values are serialized on
    write and decoded on read; callers never share mutable state with the
    store. Expired entries read as absent whether or not they were evicted.

    Args:
        max_entries: Maximum number of entries before eviction
        clock: Seconds-returning clock (monotonic by default)

    Example:
        >>> store = MemoryStore()
        >>> await store.set("greet:abc", {"greeting": "hi"}, ttl=60_000)
        >>> await store.get("greet:abc")
        {'greeting': 'hi'}
    """

    __slots__ = ("_entries", "_max_entries", "_clock", "_lock")

    def __init__(self, max_entries: int = 1000, *, clock: Clock = time.monotonic) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()  # RLock allows reentrant calls (e.g. set -> _evict)

    async def get(self, key: str) -> CacheValue | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                return None
            return orjson.loads(entry.value)

    async def set(self, key: str, value: CacheValue, ttl: int) -> bool:
        payload = orjson.dumps(value, default=_default)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                self._evict_unlocked()
            self._entries[key] = CacheEntry(value=payload, expires_at=self._clock() + ttl / 1000)
        return True

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    async def has(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.expired(self._clock())

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def invalidate_namespace(self, namespace: str) -> int:
        """Remove all entries for a tool name. Returns count removed."""
        prefix = f"{namespace}:"
        with self._lock:
            keys = [k for k in self._entries if k.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def _evict_unlocked(self) -> None:
        """Remove expired entries, then soonest-expiring if still over capacity. Caller must hold lock."""
        now = self._clock()
        for key in [k for k, v in self._entries.items() if v.expired(now)]:
            del self._entries[key]

        if len(self._entries) >= self._max_entries:
            ordered = sorted(self._entries, key=lambda k: self._entries[k].expires_at)
            for key in ordered[: max(1, self._max_entries // 4)]:
                del self._entries[key]

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> JsonDict:
        """Get store statistics for monitoring."""
        with self._lock:
            now = self._clock()
            expired = sum(1 for v in self._entries.values() if v.expired(now))
            return {
                "backend": "memory",
                "total_entries": len(self._entries),
                "expired_entries": expired,
                "active_entries": len(self._entries) - expired,
                "max_entries": self._max_entries,
            }


# ═══════════════════════════════════════════════════════════════════════════════
# Default & Named Stores
# ═══════════════════════════════════════════════════════════════════════════════

_default_store: CacheStore | None = None
_default_lock = threading.Lock()
_named_stores: dict[str, CacheStore] = {}


def _store_from_settings() -> CacheStore:
    settings = get_settings().cache
    if settings.redis_url is not None:
        from .redis import RedisStore
        return RedisStore.from_url(settings.redis_url.get_secret_value(), prefix=settings.key_prefix)
    return MemoryStore(max_entries=settings.max_entries)


def get_default_store() -> CacheStore:
    """Get the process-wide default store (created once from settings if unset)."""
    global _default_store
    if _default_store is None:
        with _default_lock:
            if _default_store is None:
                _default_store = _store_from_settings()
    return _default_store


def set_default_store(store: CacheStore) -> None:
    """Replace the process-wide default store."""
    global _default_store
    _default_store = store


def reset_default_store() -> None:
    """Drop the default store so the next lookup builds a fresh one (useful for testing)."""
    global _default_store
    _default_store = None


def register_store(name: str, store: CacheStore) -> None:
    """Register a store under a name selectable per invocation (``InvokeOptions(cache="name")``)."""
    _named_stores[name] = store


def unregister_store(name: str) -> bool:
    return _named_stores.pop(name, None) is not None


def resolve_store(selector: str | CacheStore | None, fallback: CacheStore | None = None) -> CacheStore:
    """Resolve the active store: explicit instance, then registered name, then fallback/default.

    Raises:
        ConfigurationError: If selector names a store that was never registered.
    """
    if selector is None:
        return fallback if fallback is not None else get_default_store()
    if isinstance(selector, str):
        if (store := _named_stores.get(selector)) is None:
            raise ConfigurationError("", f"No cache store registered under '{selector}'")
        return store
    return selector
