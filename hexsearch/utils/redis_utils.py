"""
Redis client construction for the search cache.
"""

import redis.asyncio as redis

from hexsearch.config.settings import Settings


def create_redis_client(settings: Settings) -> redis.Redis:
    """
    Build the shared cache client.

    Responses are decoded to str since cache entries are JSON text.
    Short socket timeouts keep an unreachable Redis from stalling
    searches; ReadThroughCache then falls back to the store.
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
        socket_connect_timeout=settings.redis_timeout,
        socket_timeout=settings.redis_timeout,
    )


def describe_redis(settings: Settings) -> str:
    """Connection target for log lines, credentials masked."""
    auth = ":****@" if settings.redis_password else ""
    return f"redis://{auth}{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
