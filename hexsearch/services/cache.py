"""
Read-through cache.

Memoizes search results and detail lookups in Redis. The cache is a
pure performance layer: on any Redis failure the loader runs directly
and the result is returned uncached. Entries are never invalidated by
ingestion and go stale for at most the TTL.
"""

from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from loguru import logger
from redis.exceptions import RedisError

from hexsearch.config.constants import (
    CACHE_PREFIX_CROSS_CHAIN,
    CACHE_PREFIX_DETAILS,
    CACHE_PREFIX_SEARCH,
)
from hexsearch.utils.serialization import dumps, loads


T = TypeVar("T")


def _options(options: dict[str, Any]) -> str:
    """Canonical serialization of query options (sorted keys, None dropped)."""
    return dumps({k: v for k, v in options.items() if v is not None})


def search_cache_key(query: str, options: dict[str, Any]) -> str:
    """Key for a single-chain search."""
    normalized = " ".join(query.lower().split())
    return f"{CACHE_PREFIX_SEARCH}:{normalized}:{_options(options)}"


def details_cache_key(hash_value: str, entity_type: str | None = None) -> str:
    """Key for a detail lookup."""
    return f"{CACHE_PREFIX_DETAILS}:{hash_value.lower()}:{entity_type or 'all'}"


def cross_chain_cache_key(fragments: Iterable[str], options: dict[str, Any]) -> str:
    """Key for a fragment search. Fragment order does not matter."""
    normalized = "+".join(sorted(f.lower() for f in fragments))
    if options.get("chains") is not None:
        options = {**options, "chains": sorted(options["chains"])}
    return f"{CACHE_PREFIX_CROSS_CHAIN}:{normalized}:{_options(options)}"


class ReadThroughCache:
    """
    Redis-backed read-through cache for JSON-ready payloads.

    Example:
        cache = ReadThroughCache(redis_client, ttl=3600)
        result = await cache.get_or_load(key, lambda: engine.search(...))
    """

    def __init__(self, redis_client: Any | None, ttl: int) -> None:
        """
        Initialize cache.

        Args:
            redis_client: redis.asyncio client (decode_responses=True), or None to disable
            ttl: Entry lifetime in seconds
        """
        self.redis_client = redis_client
        self.ttl = ttl

    async def get(self, key: str) -> Any | None:
        """Cached value, or None on miss or Redis failure."""
        if not self.redis_client:
            return None
        try:
            payload = await self.redis_client.get(key)
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(f"[Cache] Read failed for {key}: {type(e).__name__}: {e}")
            return None
        if payload is None:
            return None
        try:
            return loads(payload)
        except ValueError:
            logger.warning(f"[Cache] Dropping undecodable entry {key}")
            return None

    async def set(self, key: str, payload: str) -> None:
        """Store an encoded payload with the configured TTL. Failures are logged only."""
        if not self.redis_client:
            return
        try:
            await self.redis_client.set(key, payload, ex=self.ttl)
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(f"[Cache] Write failed for {key}: {type(e).__name__}: {e}")

    async def get_or_load(
        self, key: str, loader: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Return the cached value, or run loader and cache its result.

        None results (not-found) are not cached. A fresh result goes
        through the same encoding as a cached one, so hits and misses
        return equal values.

        Args:
            key: Cache key
            loader: Zero-argument coroutine factory

        Returns:
            Cached or freshly loaded value
        """
        cached = await self.get(key)
        if cached is not None:
            logger.debug(f"[Cache] Hit {key}")
            return cached

        value = await loader()
        if value is None:
            return None
        payload = dumps(value)
        await self.set(key, payload)
        return loads(payload)
