"""
Global address repository.

Data access layer for GlobalAddressIndex. Writes are single statements
so concurrent writers never lose an increment or move last_seen back.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hexsearch.models.global_index import GlobalAddressIndex
from hexsearch.repositories.base import BaseRepository
from hexsearch.repositories.filters import contains_all, in_chains, where_all


class GlobalAddressRepository(BaseRepository[GlobalAddressIndex]):
    """Global address index repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(GlobalAddressIndex, session)

    async def get(self, address: str, blockchain: str) -> GlobalAddressIndex | None:
        """Get entry by its (address, blockchain) key."""
        return await self.session.get(GlobalAddressIndex, (address, blockchain))

    async def record_sighting(
        self, address: str, blockchain: str, seen_at: datetime
    ) -> None:
        """
        Create the entry or bump it for one more sighting.

        tx_count is incremented atomically and last_seen only ever moves
        forward. first_seen is left alone (see set_first_seen_if_null).

        Args:
            address: Normalized address
            blockchain: Chain identifier
            seen_at: Block timestamp of the sighting
        """
        table = GlobalAddressIndex.__table__
        stmt = self._insert().values(
            address=address,
            blockchain=blockchain,
            first_seen=None,
            last_seen=seen_at,
            tx_count=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.address, table.c.blockchain],
            set_={
                "tx_count": table.c.tx_count + 1,
                "last_seen": case(
                    (table.c.last_seen.is_(None), stmt.excluded.last_seen),
                    (
                        table.c.last_seen < stmt.excluded.last_seen,
                        stmt.excluded.last_seen,
                    ),
                    else_=table.c.last_seen,
                ),
            },
        )
        await self.session.execute(stmt)

    async def set_first_seen_if_null(
        self, address: str, blockchain: str, seen_at: datetime
    ) -> bool:
        """
        Compare-and-set first_seen.

        Returns:
            True if this call set the value, False if it was already set
        """
        stmt = (
            update(GlobalAddressIndex)
            .where(
                GlobalAddressIndex.address == address,
                GlobalAddressIndex.blockchain == blockchain,
                GlobalAddressIndex.first_seen.is_(None),
            )
            .values(first_seen=seen_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def touch(self, address: str, blockchain: str, seen_at: datetime) -> None:
        """Record a sighting, setting first_seen on the first one."""
        await self.record_sighting(address, blockchain, seen_at)
        await self.set_first_seen_if_null(address, blockchain, seen_at)

    async def find_address_keys_containing(
        self,
        patterns: Sequence[str],
        chains: Iterable[str] | None = None,
        limit: int = 100,
    ) -> list[tuple[str, str]]:
        """
        Find (address, blockchain) keys whose address contains every pattern.

        Args:
            patterns: Literal substrings (lowercase)
            chains: Optional chain restriction
            limit: Max rows

        Returns:
            Keys ordered by address, blockchain
        """
        conditions = where_all(
            contains_all(GlobalAddressIndex.address, patterns),
            in_chains(GlobalAddressIndex.blockchain, chains),
        )
        stmt = (
            select(GlobalAddressIndex.address, GlobalAddressIndex.blockchain)
            .where(*conditions)
            .order_by(GlobalAddressIndex.address, GlobalAddressIndex.blockchain)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row.address, row.blockchain) for row in result]

    async def find_by_addresses(
        self,
        addresses: Sequence[str],
        chains: Iterable[str] | None = None,
    ) -> list[GlobalAddressIndex]:
        """
        Load all per-chain entries for the given addresses.

        Returns:
            Entries ordered by address, blockchain
        """
        if not addresses:
            return []
        conditions = where_all(
            GlobalAddressIndex.address.in_(list(addresses)),
            in_chains(GlobalAddressIndex.blockchain, chains),
        )
        stmt = (
            select(GlobalAddressIndex)
            .where(*conditions)
            .order_by(GlobalAddressIndex.address, GlobalAddressIndex.blockchain)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def distinct_blockchains(self, scan_limit: int = 1000) -> list[str]:
        """
        Distinct chain identifiers present in the index.

        Args:
            scan_limit: Upper bound on distinct values returned

        Returns:
            Sorted chain identifiers
        """
        stmt = (
            select(GlobalAddressIndex.blockchain)
            .distinct()
            .order_by(GlobalAddressIndex.blockchain)
            .limit(scan_limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
