"""Redis store for tool result caching.

Lightweight async adapter for existing Redis deployments via redis.asyncio.
TTL is handled natively by Redis (``SET ... PX``), so expired keys read as
absent without any client-side bookkeeping.

Requires: pip install described-tools[redis]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import orjson

from .cache import CacheValue, _default

if TYPE_CHECKING:
    from described.foundation.errors import JsonDict


@runtime_checkable
class AsyncRedisClient(Protocol):
    """Protocol for async Redis client (duck typing)."""
    async def get(self, name: str) -> bytes | None: ...
    async def set(self, name: str, value: bytes, px: int | None = None) -> bool | None: ...
    async def delete(self, *names: str) -> int: ...
    async def exists(self, *names: str) -> int: ...
    def scan_iter(self, match: str) -> object: ...
    async def ping(self) -> bool: ...


class RedisStore:
    """Redis-backed store for deployments sharing one external cache.

    Args:
        client: Existing async Redis client instance
        prefix: Key prefix for namespacing (default: "described:")

    Example:
        >>> import redis.asyncio as redis
        >>> store = RedisStore(redis.from_url("redis://localhost:6379/0"))
        >>> set_default_store(store)  # Use for every tool

        # Or from URL directly:
        >>> store = RedisStore.from_url("redis://localhost:6379/0")
    """

    __slots__ = ("_client", "_prefix")

    def __init__(self, client: AsyncRedisClient, prefix: str = "described:") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "described:", **redis_kwargs: object) -> RedisStore:
        """Create store from Redis URL (connection is opened lazily on first command)."""
        try:
            import redis.asyncio as aioredis
        except ImportError as e:
            raise ImportError(
                "Redis store requires redis package. "
                "Install with: pip install described-tools[redis]"
            ) from e
        return cls(aioredis.from_url(url, **redis_kwargs), prefix)  # type: ignore[arg-type]

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> CacheValue | None:
        raw = await self._client.get(self._key(key))
        return orjson.loads(raw) if raw is not None else None

    async def set(self, key: str, value: CacheValue, ttl: int) -> bool:
        await self._client.set(self._key(key), orjson.dumps(value, default=_default), px=int(ttl))
        return True

    async def delete(self, key: str) -> bool:
        return await self._client.delete(self._key(key)) > 0

    async def has(self, key: str) -> bool:
        return await self._client.exists(self._key(key)) > 0

    async def clear(self) -> None:
        """Clear all keys under this store's prefix using SCAN (production-safe)."""
        if keys := [k async for k in self._client.scan_iter(match=f"{self._prefix}*")]:  # type: ignore[attr-defined]
            await self._client.delete(*keys)

    async def ping(self) -> bool:
        """Check Redis connection health."""
        try:
            return bool(await self._client.ping())
        except Exception:
            return False

    def stats(self) -> JsonDict:
        return {"backend": "redis", "prefix": self._prefix}
