"""
Per-chain data repositories.

Blocks, transactions and addresses of a single chain. Each repository
has one searchable column (hash or address) used for both exact and
substring lookups.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, ClassVar, TypeVar

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from hexsearch.models.chain_data import Block, ChainAddress, ChainTransaction
from hexsearch.repositories.base import BaseRepository
from hexsearch.repositories.filters import contains_all, where_all

ChainModel = TypeVar("ChainModel", Block, ChainTransaction, ChainAddress)


class ChainEntityRepository(BaseRepository[ChainModel]):
    """
    Shared lookups for per-chain tables.

    Subclasses set `search_field` (column matched by queries) and
    `order_field` (column results are sorted by, newest first).
    """

    search_field: ClassVar[str]
    order_field: ClassVar[str]

    def _search_column(self):
        return getattr(self.model, self.search_field)

    def _ordered(self, stmt):
        return stmt.order_by(
            getattr(self.model, self.order_field).desc(),
            self._search_column(),
            self.model.blockchain,
        )

    async def find_exact(
        self,
        value: str,
        blockchain: str | None = None,
        limit: int = 10,
    ) -> list[ChainModel]:
        """
        Rows whose search field equals value.

        Args:
            value: Normalized hash or address
            blockchain: Optional chain restriction
            limit: Max rows

        Returns:
            Matching rows, newest first
        """
        conditions = where_all(
            self._search_column() == value,
            self.model.blockchain == blockchain if blockchain else None,
        )
        stmt = self._ordered(select(self.model).where(*conditions)).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_containing_all(
        self,
        patterns: Sequence[str],
        blockchain: str | None = None,
        limit: int = 10,
    ) -> list[ChainModel]:
        """
        Rows whose search field contains every pattern.

        Args:
            patterns: Literal substrings (normalized)
            blockchain: Optional chain restriction
            limit: Max rows

        Returns:
            Matching rows, newest first
        """
        conditions = where_all(
            contains_all(self._search_column(), patterns),
            self.model.blockchain == blockchain if blockchain else None,
        )
        stmt = self._ordered(select(self.model).where(*conditions)).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class BlockRepository(ChainEntityRepository[Block]):
    """Block repository."""

    search_field = "hash"
    order_field = "timestamp"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Block, session)

    async def add(self, blocks: list[dict[str, Any]]) -> None:
        """Store blocks. Blocks already present are kept as-is."""
        await self.insert_ignore(blocks)


class ChainTransactionRepository(ChainEntityRepository[ChainTransaction]):
    """Per-chain transaction repository."""

    search_field = "hash"
    order_field = "timestamp"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ChainTransaction, session)

    async def add(self, transactions: list[dict[str, Any]]) -> None:
        """Store transactions. Transactions already present are kept as-is."""
        await self.insert_ignore(transactions)


class ChainAddressRepository(ChainEntityRepository[ChainAddress]):
    """Per-chain address repository."""

    search_field = "address"
    order_field = "updated_at"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ChainAddress, session)

    async def upsert(
        self, blockchain: str, addresses: Sequence[str], seen_at: datetime
    ) -> None:
        """
        Create addresses or advance their updated_at.

        created_at is written only when the row is created.

        Args:
            blockchain: Chain identifier
            addresses: Normalized addresses
            seen_at: Block timestamp
        """
        if not addresses:
            return
        table = ChainAddress.__table__
        stmt = self._insert().values(
            [
                {
                    "blockchain": blockchain,
                    "address": address,
                    "created_at": seen_at,
                    "updated_at": seen_at,
                }
                for address in dict.fromkeys(addresses)
            ]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.blockchain, table.c.address],
            set_={
                "updated_at": case(
                    (
                        table.c.updated_at < stmt.excluded.updated_at,
                        stmt.excluded.updated_at,
                    ),
                    else_=table.c.updated_at,
                ),
            },
        )
        await self.session.execute(stmt)
