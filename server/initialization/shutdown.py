"""
Server Initialization - Shutdown Module.

Handles graceful shutdown: stops pollers, the HTTP server and the
shared store/cache connections, in that order.
"""

from aiohttp import web
from loguru import logger

from hexsearch.context import AppContext
from hexsearch.services.crawler.poller import ChainPollerManager


async def shutdown_handler(
    ctx: AppContext,
    pollers: ChainPollerManager | None = None,
    runner: web.AppRunner | None = None,
) -> None:
    """Handle graceful shutdown."""
    logger.info("Graceful shutdown initiated...")

    if pollers is not None:
        try:
            await pollers.stop_all()
            logger.info("Pollers stopped")
        except Exception as e:
            logger.warning(f"Error stopping pollers: {e}")

    if runner is not None:
        try:
            await runner.cleanup()
            logger.info("HTTP server stopped")
        except Exception as e:
            logger.warning(f"Error stopping HTTP server: {e}")

    await ctx.close()

    logger.info("Graceful shutdown complete")
