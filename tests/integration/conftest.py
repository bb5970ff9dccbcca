"""
Fixtures for integration tests.

A temporary SQLite file (aiosqlite) stands in for the index store and an
in-memory dict for Redis. Both count their calls so tests can observe
whether a request reached the store.
"""

from datetime import datetime

import pytest
import pytest_asyncio

from hexsearch.config.database import create_engine, create_session_maker
from hexsearch.config.settings import Settings
from hexsearch.models import Base
from hexsearch.services.cache import ReadThroughCache
from hexsearch.services.crawler.pipeline import IngestionPipeline
from hexsearch.services.cross_chain_search import CrossChainSearchService
from hexsearch.services.global_index_service import GlobalIndexService
from hexsearch.services.search_service import SearchService


class FakeRedis:
    """Minimal redis.asyncio stand-in (decode_responses=True)."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.get_calls = 0
        self.set_calls = 0

    async def get(self, key: str) -> str | None:
        self.get_calls += 1
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.set_calls += 1
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        pass


class CountingSessionFactory:
    """Wraps a session factory and counts opened sessions (store calls)."""

    def __init__(self, factory):
        self.factory = factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.factory()


@pytest.fixture
def store_settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'hexsearch.db'}",
        log_file=None,
        cache_ttl=120,
    )


@pytest_asyncio.fixture
async def engine(store_settings):
    engine = create_engine(store_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return CountingSessionFactory(create_session_maker(engine))


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis, store_settings):
    return ReadThroughCache(fake_redis, store_settings.cache_ttl)


@pytest.fixture
def cross_chain_service(session_factory, cache, store_settings):
    return CrossChainSearchService(session_factory, cache, store_settings)


@pytest.fixture
def search_service(session_factory, cache):
    return SearchService(session_factory, cache)


@pytest.fixture
def pipeline(session_factory, store_settings):
    return IngestionPipeline(session_factory, store_settings)


@pytest.fixture
def index_address(session_factory):
    """Index one address sighting in its own committed transaction."""

    async def _index(address: str, chain: str, when: datetime) -> None:
        async with session_factory() as session:
            await GlobalIndexService(session).index_address_globally(address, chain, when)
            await session.commit()

    return _index


@pytest.fixture
def index_transaction(session_factory):
    """Index one global transaction in its own committed transaction."""

    async def _index(tx_hash, chain, block_number, from_address, to_address, when) -> None:
        async with session_factory() as session:
            await GlobalIndexService(session).index_transaction_globally(
                tx_hash, chain, block_number, from_address, to_address, when
            )
            await session.commit()

    return _index
