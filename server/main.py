"""
Server main entry point.

Starts the chain pollers and the query API in one process, sharing a
single AppContext, and shuts everything down on SIGINT/SIGTERM.
"""

import asyncio
import signal
import sys

from aiohttp import web
from loguru import logger

from hexsearch.config.settings import settings
from hexsearch.context import AppContext
from hexsearch.services.crawler.poller import ChainPollerManager
from server.app import create_app
from server.initialization.logging import setup_logging
from server.initialization.shutdown import shutdown_handler


async def main() -> None:
    """Initialize and run pollers and API until a termination signal."""
    setup_logging(settings)

    ctx = AppContext.create(settings)
    pollers = ChainPollerManager(settings, ctx.ingestion_pipeline())
    runner: web.AppRunner | None = None

    # Graceful shutdown event
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    try:
        await pollers.start_all()

        runner = web.AppRunner(create_app(ctx, pollers))
        await runner.setup()
        site = web.TCPSite(runner, settings.api_host, settings.api_port)
        await site.start()
        logger.info(f"Query API started on {settings.api_host}:{settings.api_port}")

        await stop_event.wait()
    finally:
        await shutdown_handler(ctx, pollers, runner)


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("hexsearch stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"hexsearch crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
