"""
Application context.

Owns the long-lived store and cache handles. Built once at process start
and passed to every component that needs them; closed on shutdown.
"""

from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hexsearch.config.database import create_engine, create_session_maker
from hexsearch.config.settings import Settings
from hexsearch.services.cache import ReadThroughCache
from hexsearch.services.cross_chain_search import CrossChainSearchService
from hexsearch.services.crawler.pipeline import IngestionPipeline
from hexsearch.services.search_service import SearchService
from hexsearch.utils.redis_utils import create_redis_client, describe_redis


@dataclass
class AppContext:
    """Shared engine, session factory, Redis client and settings."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    redis_client: Any | None = None

    @classmethod
    def create(cls, settings: Settings, redis_client: Any | None = None) -> "AppContext":
        """
        Build the context from settings.

        Args:
            settings: Application settings
            redis_client: Pre-built Redis client (default: from settings)

        Returns:
            Ready-to-use context
        """
        engine = create_engine(settings)
        if redis_client is None:
            redis_client = create_redis_client(settings)
            logger.info(f"[Context] Redis: {describe_redis(settings)}")
        return cls(
            settings=settings,
            engine=engine,
            session_factory=create_session_maker(engine),
            redis_client=redis_client,
        )

    def read_through_cache(self) -> ReadThroughCache:
        """Cache bound to the shared Redis client and configured TTL."""
        return ReadThroughCache(self.redis_client, self.settings.cache_ttl)

    def search_service(self) -> SearchService:
        """Single-chain search engine."""
        return SearchService(self.session_factory, self.read_through_cache())

    def cross_chain_search_service(self) -> CrossChainSearchService:
        """Fragment search engine."""
        return CrossChainSearchService(
            self.session_factory, self.read_through_cache(), self.settings
        )

    def ingestion_pipeline(self) -> IngestionPipeline:
        """Block ingestion pipeline."""
        return IngestionPipeline(self.session_factory, self.settings)

    async def close(self) -> None:
        """Close Redis and dispose the engine. Errors are logged."""
        if self.redis_client is not None:
            try:
                await self.redis_client.aclose()
                logger.info("[Context] Redis connection closed")
            except Exception as e:
                logger.warning(f"[Context] Error closing Redis: {e}")
        try:
            await self.engine.dispose()
            logger.info("[Context] Database connections closed")
        except Exception as e:
            logger.warning(f"[Context] Error closing database: {e}")
