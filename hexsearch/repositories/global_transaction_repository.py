"""
Global transaction repository.

Data access layer for GlobalTransactionIndex.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hexsearch.models.global_index import GlobalTransactionIndex
from hexsearch.repositories.base import BaseRepository
from hexsearch.repositories.filters import in_chains, where_all


class GlobalTransactionRepository(BaseRepository[GlobalTransactionIndex]):
    """Global transaction index repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(GlobalTransactionIndex, session)

    async def get(self, tx_hash: str, blockchain: str) -> GlobalTransactionIndex | None:
        """Get entry by its (tx_hash, blockchain) key."""
        return await self.session.get(GlobalTransactionIndex, (tx_hash, blockchain))

    async def add(
        self,
        tx_hash: str,
        blockchain: str,
        block_number: int,
        from_address: str | None,
        to_address: str | None,
        timestamp: datetime,
    ) -> None:
        """
        Store a transaction. A second write of the same key is a no-op.
        """
        await self.insert_ignore(
            [
                {
                    "tx_hash": tx_hash,
                    "blockchain": blockchain,
                    "block_number": block_number,
                    "from_address": from_address,
                    "to_address": to_address,
                    "timestamp": timestamp,
                }
            ]
        )

    async def find_by_addresses(
        self,
        addresses: Sequence[str],
        chains: Iterable[str] | None = None,
        limit: int = 100,
    ) -> list[GlobalTransactionIndex]:
        """
        Find transactions sent from or to any of the addresses.

        Args:
            addresses: Normalized addresses
            chains: Optional chain restriction
            limit: Max rows

        Returns:
            Transactions, newest first, ties by hash
        """
        if not addresses:
            return []
        addresses = list(addresses)
        conditions = where_all(
            or_(
                GlobalTransactionIndex.from_address.in_(addresses),
                GlobalTransactionIndex.to_address.in_(addresses),
            ),
            in_chains(GlobalTransactionIndex.blockchain, chains),
        )
        stmt = (
            select(GlobalTransactionIndex)
            .where(*conditions)
            .order_by(
                GlobalTransactionIndex.timestamp.desc(),
                GlobalTransactionIndex.tx_hash,
                GlobalTransactionIndex.blockchain,
            )
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
