"""
Health check endpoints.

/health reports store, cache and poller status; /readiness answers
whether the store is reachable; /liveness only confirms the process is up.
"""

import asyncio

from aiohttp import web
from loguru import logger
from sqlalchemy import text

from hexsearch.context import AppContext
from server.app import CONTEXT_KEY, POLLERS_KEY


async def _check_database(ctx: AppContext) -> bool:
    try:
        async with ctx.session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"[Health] Database check failed: {e}")
        return False


async def _check_redis(ctx: AppContext) -> bool:
    if ctx.redis_client is None:
        return False
    try:
        return bool(await ctx.redis_client.ping())
    except Exception as e:
        logger.warning(f"[Health] Redis check failed: {e}")
        return False


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with store, cache and poller status
    """
    ctx = request.app[CONTEXT_KEY]
    database_ok, redis_ok = await asyncio.gather(_check_database(ctx), _check_redis(ctx))
    pollers = request.app.get(POLLERS_KEY)

    # Cache is optional for correctness, so only the store decides health
    return web.json_response(
        {
            "status": "healthy" if database_ok else "unhealthy",
            "database": database_ok,
            "redis": redis_ok,
            "pollers": pollers.status() if pollers is not None else {},
        },
        status=200 if database_ok else 503,
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Returns:
        JSON response indicating if the API can serve queries
    """
    if not await _check_database(request.app[CONTEXT_KEY]):
        return web.json_response({"status": "not_ready", "ready": False}, status=503)
    return web.json_response({"status": "ready", "ready": True})


async def liveness_handler(request: web.Request) -> web.Response:
    """
    Liveness check endpoint.

    Returns:
        JSON response indicating if the process is alive
    """
    return web.json_response({"status": "alive", "alive": True})


def setup_health_routes(app: web.Application) -> None:
    """Register health routes."""
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
