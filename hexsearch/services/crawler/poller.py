"""
Rate-limited chain poller.

Pulls new blocks from a chain's RPC provider and hands them to the
ingestion pipeline. Requests are spaced by an adaptive delay that grows
on throttling errors and is private to each poller.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from hexsearch.config.constants import (
    POLLER_BASE_DELAY,
    POLLER_DELAY_MULTIPLIER,
    POLLER_MAX_DELAY,
    POLLER_MAX_RATE_LIMIT_RETRIES,
)
from hexsearch.config.settings import Settings
from hexsearch.services.blockchain.rpc_client import ChainRpcClient, create_rpc_client
from hexsearch.services.crawler.pipeline import IngestionPipeline
from hexsearch.utils.exceptions import is_rate_limited, must_log


@dataclass
class CrawlerState:
    """In-memory poller state. Created on start, discarded on stop."""

    last_processed_block: int = 0
    is_running: bool = False
    request_delay: float = POLLER_BASE_DELAY
    last_request_time: float | None = None


class ChainPoller:
    """
    Polls one chain for new blocks.

    Example:
        poller = ChainPoller("ethereum", rpc_client, pipeline, poll_interval=12)
        await poller.start()
        ...
        await poller.stop()
    """

    def __init__(
        self,
        chain: str,
        rpc_client: ChainRpcClient,
        pipeline: IngestionPipeline,
        poll_interval: float = 12.0,
        start_block: int = 0,
        base_delay: float = POLLER_BASE_DELAY,
        max_delay: float = POLLER_MAX_DELAY,
        delay_multiplier: float = POLLER_DELAY_MULTIPLIER,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize poller.

        Args:
            chain: Chain identifier
            rpc_client: Chain RPC client
            pipeline: Ingestion pipeline
            poll_interval: Seconds between head checks
            start_block: First block to ingest (0 = start at current head)
            base_delay: Minimum spacing between RPC requests
            max_delay: Backoff ceiling
            delay_multiplier: Backoff growth factor
            sleep: Sleep function (injectable for tests)
            clock: Monotonic clock (injectable for tests)
        """
        self.chain = chain
        self.rpc_client = rpc_client
        self.pipeline = pipeline
        self.poll_interval = poll_interval
        self.start_block = start_block
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.delay_multiplier = delay_multiplier
        self._sleep = sleep
        self._clock = clock
        self.state = CrawlerState(request_delay=base_delay)
        self._task: asyncio.Task | None = None
        self.logger = logger.bind(service=f"Poller:{chain}")

    @property
    def _tag(self) -> str:
        return f"[Poller:{self.chain}]"

    def is_active(self) -> bool:
        """True while the run-loop is active."""
        return self.state.is_running

    def get_last_processed_block(self) -> int:
        """Last block fully written to the index."""
        return self.state.last_processed_block

    async def start(self) -> None:
        """
        Record the baseline block and start the run-loop.

        Starting an already running poller is a no-op.
        """
        if self.state.is_running:
            self.logger.warning(f"{self._tag} Already running")
            return

        self.state = CrawlerState(is_running=True, request_delay=self.base_delay)
        try:
            if self.start_block > 0:
                self.state.last_processed_block = self.start_block - 1
            else:
                await self._throttle()
                self.state.last_processed_block = (
                    await self.rpc_client.get_latest_block_number()
                )
        except Exception:
            self.state.is_running = False
            raise

        self.logger.info(
            f"{self._tag} Starting after block {self.state.last_processed_block}"
        )
        self._task = asyncio.create_task(self._run_loop(), name=f"poller-{self.chain}")

    async def stop(self) -> None:
        """Stop the run-loop and discard state."""
        self.logger.info(f"{self._tag} Stopping")
        self.state.is_running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self.state = CrawlerState(request_delay=self.base_delay)

    async def _run_loop(self) -> None:
        while self.state.is_running:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.exception(f"{self._tag} Poll cycle failed: {e}")
            await self._sleep(self.poll_interval)

    async def poll_once(self) -> int:
        """
        Process every block between the last processed one and the head.

        Returns:
            Number of blocks ingested
        """
        try:
            await self._throttle()
            head = await self.rpc_client.get_latest_block_number()
        except Exception as e:
            if not is_rate_limited(e):
                raise
            await self._back_off()
            return 0

        processed = 0
        block_number = self.state.last_processed_block + 1
        while block_number <= head and self.state.is_running:
            if await self.process_block(block_number):
                processed += 1
            block_number += 1
        return processed

    async def process_block(self, block_number: int) -> bool:
        """
        Fetch and ingest one block, retrying on throttling.

        Failures are logged and do not stop the poller. The last
        processed block only advances on success.

        Returns:
            True if the block was ingested
        """
        for _ in range(POLLER_MAX_RATE_LIMIT_RETRIES + 1):
            try:
                await self._throttle()
                raw_block = await self.rpc_client.get_block(
                    block_number, include_transactions=True
                )
                if raw_block is None:
                    self.logger.warning(f"{self._tag} Block {block_number} not found")
                    return False

                extracted = await self.pipeline.process_block(self.chain, raw_block)
                self.state.last_processed_block = block_number
                self.logger.info(
                    f"{self._tag} Processed block {block_number}: "
                    f"{len(extracted.transactions)} txs, "
                    f"{len(extracted.addresses)} addresses"
                )
                return True
            except Exception as e:
                if is_rate_limited(e):
                    await self._back_off()
                    continue
                if must_log(e):
                    self.logger.error(f"{self._tag} Error processing block {block_number}: {e}")
                else:
                    self.logger.exception(
                        f"{self._tag} Unexpected error processing block {block_number}: {e}"
                    )
                return False

        self.logger.error(
            f"{self._tag} Skipping block {block_number} after "
            f"{POLLER_MAX_RATE_LIMIT_RETRIES} throttled retries"
        )
        return False

    async def _throttle(self) -> None:
        """Sleep until request_delay has elapsed since the previous request."""
        if self.state.last_request_time is not None:
            elapsed = self._clock() - self.state.last_request_time
            wait = max(0.0, self.state.request_delay - elapsed)
            if wait > 0:
                await self._sleep(wait)
        self.state.last_request_time = self._clock()

    async def _back_off(self) -> None:
        """Grow the request delay and pause for it."""
        self.state.request_delay = min(
            self.state.request_delay * self.delay_multiplier, self.max_delay
        )
        self.logger.warning(
            f"{self._tag} Rate limited, request delay now {self.state.request_delay:.2f}s"
        )
        await self._sleep(self.state.request_delay)


class ChainPollerManager:
    """Runs one poller per enabled chain."""

    def __init__(
        self,
        settings: Settings,
        pipeline: IngestionPipeline,
        client_factory: Callable[[str, Settings], ChainRpcClient] = create_rpc_client,
    ) -> None:
        self.settings = settings
        self.pipeline = pipeline
        self.client_factory = client_factory
        self.pollers: dict[str, ChainPoller] = {}

    def _build_poller(self, chain: str) -> ChainPoller:
        return ChainPoller(
            chain,
            self.client_factory(chain, self.settings),
            self.pipeline,
            poll_interval=self.settings.get_poll_interval(chain),
            start_block=self.settings.get_start_block(chain),
            base_delay=self.settings.poller_base_delay,
            max_delay=self.settings.poller_max_delay,
            delay_multiplier=self.settings.poller_delay_multiplier,
        )

    async def start_all(self) -> None:
        """Start pollers for all enabled chains. A chain failing to start is logged."""
        for chain in self.settings.get_enabled_chains():
            poller = self.pollers.get(chain) or self._build_poller(chain)
            self.pollers[chain] = poller
            try:
                await poller.start()
            except Exception as e:
                logger.error(f"[Poller:{chain}] Failed to start: {e}")

    async def stop_all(self) -> None:
        """Stop all pollers and close their RPC clients."""
        for chain, poller in self.pollers.items():
            try:
                await poller.stop()
                await poller.rpc_client.close()
            except Exception as e:
                logger.error(f"[Poller:{chain}] Error during stop: {e}")

    def status(self) -> dict[str, dict[str, Any]]:
        """Per-chain activity, for health reporting."""
        return {
            chain: {
                "active": poller.is_active(),
                "last_processed_block": poller.get_last_processed_block(),
                "request_delay": poller.state.request_delay,
            }
            for chain, poller in self.pollers.items()
        }
