"""
Address fragment repository.

Data access layer for the fragment inverted index.
"""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hexsearch.models.global_index import AddressFragment
from hexsearch.repositories.base import BaseRepository
from hexsearch.repositories.filters import contains, in_chains, where_all


class AddressFragmentRepository(BaseRepository[AddressFragment]):
    """Address fragment repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(AddressFragment, session)

    async def add_fragments(
        self, address: str, blockchain: str, fragments: Iterable[str]
    ) -> None:
        """
        Store fragments of an address. Existing rows are skipped.

        Args:
            address: Normalized address
            blockchain: Chain identifier
            fragments: Fragments from generate_fragments()
        """
        await self.insert_ignore(
            [
                {"fragment": f, "address": address, "blockchain": blockchain}
                for f in dict.fromkeys(fragments)
            ]
        )

    async def find_address_keys_by_fragment(
        self,
        probe: str,
        chains: Iterable[str] | None = None,
        limit: int = 100,
        query: str | None = None,
    ) -> list[tuple[str, str]]:
        """
        Find (address, blockchain) keys owning a fragment containing probe.

        The limit applies after the address itself is checked against the
        full query, so probe-only matches never crowd out real ones.

        Args:
            probe: Literal substring, at most one fragment long
            chains: Optional chain restriction
            limit: Max distinct keys
            query: Full query the address must contain (default: probe)

        Returns:
            Distinct keys ordered by address, blockchain
        """
        conditions = where_all(
            contains(AddressFragment.fragment, probe),
            contains(AddressFragment.address, query) if query and query != probe else None,
            in_chains(AddressFragment.blockchain, chains),
        )
        stmt = (
            select(AddressFragment.address, AddressFragment.blockchain)
            .where(*conditions)
            .distinct()
            .order_by(AddressFragment.address, AddressFragment.blockchain)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row.address, row.blockchain) for row in result]
