"""Result caching with TTL support.

Cache keys are generated from tool name + SHA-1 of the canonical input.

Stores:
    - MemoryStore: Thread-safe in-memory (default)
    - RedisStore: Async redis.asyncio backend (requires described-tools[redis])
"""

from .cache import (
    CacheEntry,
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

__all__ = [
    "CacheStore",
    "CacheEntry",
    "MemoryStore",
    "canonical",
    "make_key",
    "get_default_store",
    "set_default_store",
    "reset_default_store",
    "register_store",
    "unregister_store",
    "resolve_store",
    # Redis (lazy import)
    "RedisStore",
]


def __getattr__(name: str) -> object:
    """Lazy import Redis store to avoid import-time dependency."""
    if name == "RedisStore":
        from .redis import RedisStore
        return RedisStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
