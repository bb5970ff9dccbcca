"""
Tests for the rate-limited chain poller.

RPC client and pipeline are AsyncMocks; sleep and clock are injected so
no test waits on real time.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from hexsearch.services.crawler.poller import ChainPoller, ChainPollerManager
from hexsearch.utils.exceptions import ProviderError, RateLimitError, StoreError


class FakeClock:
    """Monotonic clock advanced by the fake sleep."""

    def __init__(self):
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rpc_client():
    client = AsyncMock()
    client.get_latest_block_number = AsyncMock(return_value=10)
    client.get_block = AsyncMock(side_effect=lambda n, include_transactions=True: {"number": n})
    client.close = AsyncMock()
    return client


@pytest.fixture
def pipeline():
    pipeline = AsyncMock()
    extracted = MagicMock(transactions=[], addresses=[])
    pipeline.process_block = AsyncMock(return_value=extracted)
    return pipeline


@pytest.fixture
def poller(rpc_client, pipeline, clock):
    return ChainPoller(
        "ethereum",
        rpc_client,
        pipeline,
        poll_interval=12.0,
        base_delay=0.5,
        max_delay=2.0,
        delay_multiplier=2.0,
        sleep=clock.sleep,
        clock=clock,
    )


class TestPollerLifecycle:
    """Test start/stop and state observers."""

    @pytest.mark.asyncio
    async def test_start_records_head_as_baseline(self, poller, rpc_client):
        """Starting at the head implies no backfill."""
        await poller.start()
        try:
            assert poller.is_active()
            assert poller.get_last_processed_block() == 10
        finally:
            await poller.stop()
        assert not poller.is_active()

    @pytest.mark.asyncio
    async def test_stop_discards_state(self, poller):
        """A stopped poller keeps no progress or backoff."""
        await poller.start()
        poller.state.request_delay = 2.0
        await poller.stop()

        assert poller.get_last_processed_block() == 0
        assert poller.state.request_delay == 0.5
        assert poller.state.last_request_time is None

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, poller, rpc_client):
        """Second start neither fails nor spawns a second loop."""
        await poller.start()
        task = poller._task
        await poller.start()
        try:
            assert poller._task is task
            assert rpc_client.get_latest_block_number.await_count == 1
        finally:
            await poller.stop()

    @pytest.mark.asyncio
    async def test_explicit_start_block(self, rpc_client, pipeline, clock):
        """A configured start block begins right before it."""
        poller = ChainPoller(
            "ethereum", rpc_client, pipeline, start_block=5,
            sleep=clock.sleep, clock=clock,
        )
        await poller.start()
        try:
            assert poller.get_last_processed_block() == 4
        finally:
            await poller.stop()

    @pytest.mark.asyncio
    async def test_failed_start_leaves_poller_idle(self, poller, rpc_client):
        """Provider failure during start propagates and resets state."""
        rpc_client.get_latest_block_number.side_effect = ProviderError("down")
        with pytest.raises(ProviderError):
            await poller.start()
        assert not poller.is_active()


class TestPollerProcessing:
    """Test block processing and failure handling."""

    @pytest.mark.asyncio
    async def test_poll_once_processes_new_blocks_in_order(self, poller, rpc_client, pipeline):
        """Every block after the last processed one is ingested."""
        poller.state.is_running = True
        poller.state.last_processed_block = 7

        processed = await poller.poll_once()

        assert processed == 3
        numbers = [c.args[0] for c in rpc_client.get_block.await_args_list]
        assert numbers == [8, 9, 10]
        assert poller.get_last_processed_block() == 10
        assert pipeline.process_block.await_count == 3

    @pytest.mark.asyncio
    async def test_block_failure_does_not_stop_poller(self, poller, pipeline):
        """A store error on one block is logged, later blocks still run."""
        poller.state.is_running = True
        poller.state.last_processed_block = 7
        extracted = MagicMock(transactions=[], addresses=[])
        pipeline.process_block.side_effect = [extracted, StoreError("boom"), extracted]

        processed = await poller.poll_once()

        assert processed == 2
        assert poller.get_last_processed_block() == 10

    @pytest.mark.asyncio
    async def test_failed_block_does_not_advance(self, poller, pipeline):
        """last_processed_block only moves on success."""
        poller.state.is_running = True
        poller.state.last_processed_block = 9
        pipeline.process_block.side_effect = StoreError("boom")

        assert await poller.process_block(10) is False
        assert poller.get_last_processed_block() == 9

    @pytest.mark.asyncio
    async def test_missing_block_is_skipped(self, poller, rpc_client, pipeline):
        """Provider 'not found' is logged and skipped."""
        rpc_client.get_block.side_effect = None
        rpc_client.get_block.return_value = None

        assert await poller.process_block(11) is False
        pipeline.process_block.assert_not_awaited()


class TestPollerRateLimiting:
    """Test throttle spacing and adaptive backoff."""

    @pytest.mark.asyncio
    async def test_throttle_enforces_minimum_spacing(self, poller, clock):
        """Back-to-back requests sleep for the remaining delay."""
        await poller._throttle()
        assert clock.sleeps == []

        clock.now += 0.2
        await poller._throttle()
        assert clock.sleeps == [pytest.approx(0.3)]

    @pytest.mark.asyncio
    async def test_throttle_skips_sleep_when_enough_time_passed(self, poller, clock):
        await poller._throttle()
        clock.now += 5
        await poller._throttle()
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_rate_limit_doubles_delay_up_to_ceiling(self, poller, rpc_client, clock):
        """Each throttling error multiplies the delay, capped at the maximum."""
        rpc_client.get_block.side_effect = [
            RateLimitError("Too Many Requests"),
            RateLimitError("Too Many Requests"),
            RateLimitError("Too Many Requests"),
            {"number": 11},
        ]

        assert await poller.process_block(11) is True

        assert poller.state.request_delay == 2.0
        # Extra backoff sleeps of the new delay: 1.0, 2.0, 2.0
        assert [s for s in clock.sleeps if s >= 1.0] == [1.0, 2.0, 2.0]
        assert poller.get_last_processed_block() == 11

    @pytest.mark.asyncio
    async def test_backoff_state_is_per_poller(self, rpc_client, pipeline, clock):
        """Two chains never share a request delay."""
        eth = ChainPoller("ethereum", rpc_client, pipeline, sleep=clock.sleep, clock=clock)
        btc = ChainPoller("bitcoin", AsyncMock(), pipeline, sleep=clock.sleep, clock=clock)

        await eth._back_off()

        assert eth.state.request_delay == 1.0
        assert btc.state.request_delay == 0.5

    @pytest.mark.asyncio
    async def test_rate_limited_head_check_backs_off(self, poller, rpc_client):
        """Throttling on the head check backs off and processes nothing."""
        poller.state.is_running = True
        rpc_client.get_latest_block_number.side_effect = RateLimitError("429")

        assert await poller.poll_once() == 0
        assert poller.state.request_delay == 1.0


class TestChainPollerManager:
    """Test multi-chain poller management."""

    @pytest.mark.asyncio
    async def test_starts_one_poller_per_enabled_chain(self, test_settings, pipeline, rpc_client):
        test_settings.enabled_chains = "ethereum,bitcoin"
        factory = MagicMock(return_value=rpc_client)
        manager = ChainPollerManager(test_settings, pipeline, client_factory=factory)

        await manager.start_all()
        try:
            assert set(manager.pollers) == {"ethereum", "bitcoin"}
            assert all(p.is_active() for p in manager.pollers.values())
            status = manager.status()
            assert status["ethereum"]["last_processed_block"] == 10
        finally:
            await manager.stop_all()

        assert not any(p.is_active() for p in manager.pollers.values())
        assert rpc_client.close.await_count == 2

    @pytest.mark.asyncio
    async def test_failing_chain_does_not_block_others(self, test_settings, pipeline, rpc_client):
        test_settings.enabled_chains = "ethereum,bitcoin"
        broken = AsyncMock()
        broken.get_latest_block_number = AsyncMock(side_effect=ProviderError("down"))
        factory = MagicMock(side_effect=lambda chain, s: broken if chain == "bitcoin" else rpc_client)
        manager = ChainPollerManager(test_settings, pipeline, client_factory=factory)

        await manager.start_all()
        try:
            assert manager.pollers["ethereum"].is_active()
            assert not manager.pollers["bitcoin"].is_active()
        finally:
            await manager.stop_all()
        await asyncio.sleep(0)
