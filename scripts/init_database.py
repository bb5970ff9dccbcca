#!/usr/bin/env python3
"""
Create the hexsearch schema.

Creates the global index tables (global_address_index, address_fragments,
global_transaction_index) and the per-chain tables (blocks, transactions,
addresses) in the store named by DATABASE_URL.

Usage:
    python scripts/init_database.py          # create missing tables
    python scripts/init_database.py --reset  # drop and recreate (dev only)
"""

import argparse
import asyncio
import sys

from loguru import logger

from hexsearch.config.database import create_engine
from hexsearch.config.settings import settings
from hexsearch.models import Base

logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database(reset: bool = False) -> None:
    """Create all index tables, optionally dropping them first."""
    engine = create_engine(settings)
    tables = ", ".join(sorted(Base.metadata.tables))

    try:
        async with engine.begin() as conn:
            if reset:
                if settings.environment == "production":
                    logger.error("Refusing to drop tables in production")
                    sys.exit(1)
                logger.warning(f"Dropping tables: {tables}")
                await conn.run_sync(Base.metadata.drop_all)
            logger.info(f"Creating tables: {tables}")
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    finally:
        await engine.dispose()

    logger.success("Schema ready")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the hexsearch schema")
    parser.add_argument(
        "--reset", action="store_true", help="drop existing tables first"
    )
    args = parser.parse_args()
    asyncio.run(init_database(reset=args.reset))
