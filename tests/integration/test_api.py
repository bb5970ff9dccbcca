"""
HTTP API tests.

Runs the real aiohttp application on a test server backed by the
temporary store and the fake Redis.
"""

import asyncio
import dataclasses
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from aiohttp import test_utils

from hexsearch.context import AppContext
from hexsearch.utils.exceptions import StoreError
from server.app import CROSS_CHAIN_SERVICE_KEY, SEARCH_SERVICE_KEY, create_app

pytestmark = pytest.mark.integration

ADDRESS = "0x" + "06e313d0" + "0" * 32


@pytest.fixture
def app_context(store_settings, engine, session_factory, fake_redis):
    return AppContext(
        settings=store_settings,
        engine=engine,
        session_factory=session_factory,
        redis_client=fake_redis,
    )


@pytest_asyncio.fixture
async def make_client():
    """Start a test server for an application, closed after the test."""
    clients = []

    async def _make(app) -> test_utils.TestClient:
        client = test_utils.TestClient(test_utils.TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.close()


@pytest_asyncio.fixture
async def client(app_context, make_client):
    return await make_client(create_app(app_context))


@pytest_asyncio.fixture
async def indexed(index_address, index_transaction):
    when = datetime(2024, 1, 1, tzinfo=UTC)
    await index_address(ADDRESS, "ethereum", when)
    await index_transaction("0xfeed", "ethereum", 7, ADDRESS, "0xbbb", when)


class TestValidation:
    """Invalid parameters are rejected before any store access."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        [
            "/search",
            "/search?q=%20",
            "/search?q=abcd&limit=0",
            "/search?q=abcd&limit=101",
            "/search?q=abcd&limit=ten",
            "/search?q=abcd&offset=-1",
            "/search?q=abcd&type=wallet",
            "/search?q=xyz&exact=true",
            "/search/not-hex",
            "/cross-chain/search",
            "/cross-chain/search?fragments=,",
            "/cross-chain/search?fragments=06e3&chains=bad%20chain",
        ],
    )
    async def test_bad_request(self, client, session_factory, path):
        response = await client.get(path)

        assert response.status == 400
        assert "error" in await response.json()
        assert session_factory.calls == 0


class TestSearchRoutes:
    """Test single-chain search routes."""

    @pytest.mark.asyncio
    async def test_search_empty(self, client):
        response = await client.get("/search?q=0xABCD")

        assert response.status == 200
        assert await response.json() == {"query": "0xabcd", "count": 0, "results": []}

    @pytest.mark.asyncio
    async def test_multi_search(self, client, pipeline, sample_eth_block):
        await pipeline.process_block("ethereum", sample_eth_block)

        response = await client.get("/search/multi/1111%201111?type=transaction")

        body = await response.json()
        assert response.status == 200
        assert body["patterns"] == ["1111", "1111"]
        assert body["count"] == 1
        assert body["results"][0]["hash"] == "11" * 32

    @pytest.mark.asyncio
    async def test_details(self, client, pipeline, sample_eth_block):
        await pipeline.process_block("ethereum", sample_eth_block)

        response = await client.get("/search/0x" + "ab" * 32)

        body = await response.json()
        assert response.status == 200
        assert body["type"] == "Block"
        assert body["number"] == 100

    @pytest.mark.asyncio
    async def test_details_not_found(self, client):
        response = await client.get("/search/0xdeadbeef")

        assert response.status == 404
        assert await response.json() == {"error": "Item not found"}


class TestCrossChainRoutes:
    """Test cross-chain routes."""

    @pytest.mark.asyncio
    async def test_fragment_search(self, client, indexed):
        response = await client.get("/cross-chain/search?fragments=06E3,13d0&limit=5")

        body = await response.json()
        assert response.status == 200
        assert body["fragments"] == ["06e3", "13d0"]
        assert body["addressCount"] == 1
        assert body["transactionCount"] == 1
        assert body["results"]["addresses"][0]["address"] == ADDRESS
        assert body["results"]["transactions"][0]["txHash"] == "0xfeed"

    @pytest.mark.asyncio
    async def test_chains(self, client, indexed):
        response = await client.get("/cross-chain/chains")

        assert await response.json() == {"count": 1, "chains": ["ethereum"]}

    @pytest.mark.asyncio
    async def test_address_transactions(self, client, indexed):
        response = await client.get(f"/cross-chain/address/{ADDRESS.upper()}/transactions")

        body = await response.json()
        assert response.status == 200
        assert body["address"] == ADDRESS.lower()
        assert body["addressDetails"]["txCount"] == 1
        assert body["transactionCount"] == 1
        assert body["transactions"][0]["toAddress"] == "0xbbb"

    @pytest.mark.asyncio
    async def test_address_not_found(self, client, indexed):
        response = await client.get("/cross-chain/address/0x06e3/transactions")

        assert response.status == 404
        assert await response.json() == {"error": "Address not found"}


class TestErrorMapping:
    """Service failures map to 500 and 504."""

    @pytest.mark.asyncio
    async def test_store_error(self, app_context, make_client):
        app = create_app(app_context)
        service = MagicMock()
        service.search = AsyncMock(side_effect=StoreError("connection refused"))
        app[SEARCH_SERVICE_KEY] = service
        client = await make_client(app)

        response = await client.get("/search?q=abcd")

        assert response.status == 500
        assert await response.json() == {"error": "Internal server error"}

    @pytest.mark.asyncio
    async def test_unexpected_error(self, app_context, make_client):
        app = create_app(app_context)
        service = MagicMock()
        service.get_supported_blockchains = AsyncMock(side_effect=RuntimeError("boom"))
        app[CROSS_CHAIN_SERVICE_KEY] = service
        client = await make_client(app)

        response = await client.get("/cross-chain/chains")

        assert response.status == 500

    @pytest.mark.asyncio
    async def test_timeout(self, app_context, make_client):
        settings = app_context.settings.model_copy(update={"query_timeout": 0.05})
        app = create_app(dataclasses.replace(app_context, settings=settings))

        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        service = MagicMock()
        service.search_address_fragments = slow
        app[CROSS_CHAIN_SERVICE_KEY] = service
        client = await make_client(app)

        response = await client.get("/cross-chain/search?fragments=06e3")

        assert response.status == 504
        assert await response.json() == {"error": "Query timed out"}


class TestHealthRoutes:
    """Test health endpoints."""

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/liveness")

        assert await response.json() == {"status": "alive", "alive": True}

    @pytest.mark.asyncio
    async def test_readiness(self, client):
        response = await client.get("/readiness")

        assert response.status == 200
        assert (await response.json())["ready"] is True

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status == 200
        assert await response.json() == {
            "status": "healthy",
            "database": True,
            "redis": True,
            "pollers": {},
        }
