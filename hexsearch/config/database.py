"""
Database engine and session factory.

Builds the SQLAlchemy async engine from settings.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hexsearch.config.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Create async engine for the index store.

    Args:
        settings: Application settings

    Returns:
        Configured AsyncEngine
    """
    kwargs = {"echo": settings.database_echo}
    if settings.database_url.startswith("postgresql"):
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["pool_pre_ping"] = True
    return create_async_engine(settings.database_url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
