"""
Cross-chain fragment search.

Resolves a list of literal address fragments to matching addresses on
any chain, plus the transactions that involve them.

Pipeline:
1. Candidates: single short fragment -> fragment index scan,
   otherwise -> global address index scan (over-fetched)
2. Intersection: every fragment must be a literal substring
3. Enrichment: per-chain index rows grouped into one AddressResult
4. Pagination after grouping, addresses in ascending order
5. Transaction expansion for the page of addresses

Each store query runs in its own session so independent queries of one
request can be gathered concurrently.
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hexsearch.config.settings import Settings
from hexsearch.repositories.address_fragment_repository import AddressFragmentRepository
from hexsearch.repositories.global_address_repository import GlobalAddressRepository
from hexsearch.repositories.global_transaction_repository import GlobalTransactionRepository
from hexsearch.services.cache import ReadThroughCache, cross_chain_cache_key
from hexsearch.services.cross_chain_search.results import (
    AddressResult,
    CrossChainSearchOptions,
    TransactionResult,
)
from hexsearch.utils.db_decorators import wraps_store_errors
from hexsearch.utils.fragments import fragment_probe


T = TypeVar("T")


def normalize_fragments(fragments: Sequence[str]) -> list[str]:
    """Lowercase, strip and drop empty fragments, keeping order."""
    return [f.strip().lower() for f in fragments if f and f.strip()]


class CrossChainSearchService:
    """
    Fragment search engine over the global index.

    Example:
        service = CrossChainSearchService(session_factory, cache, settings)
        result = await service.search_address_fragments(["06e3", "13d0"])
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: ReadThroughCache,
        settings: Settings,
    ) -> None:
        """
        Initialize search engine.

        Args:
            session_factory: Session factory for the index store
            cache: Read-through cache
            settings: Fragment tuning and over-fetch factors
        """
        self.session_factory = session_factory
        self.cache = cache
        self.settings = settings
        self.logger = logger.bind(service="CrossChainSearch")

    async def _query(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run one store query in its own session."""
        async with self.session_factory() as session:
            return await fn(session)

    @wraps_store_errors
    async def search_address_fragments(
        self,
        fragments: Sequence[str],
        options: CrossChainSearchOptions | None = None,
    ) -> dict[str, list[dict[str, Any]]]:
        """
        Find addresses containing all fragments and their transactions.

        Args:
            fragments: Literal address fragments (AND semantics)
            options: Pagination and chain filter

        Returns:
            {"addresses": [...], "transactions": [...]}
        """
        options = options or CrossChainSearchOptions()
        normalized = normalize_fragments(fragments)
        if not normalized:
            return {"addresses": [], "transactions": []}

        async def load() -> dict[str, list[dict[str, Any]]]:
            addresses = await self.find_addresses_with_all_fragments(normalized, options)
            if not addresses:
                return {"addresses": [], "transactions": []}
            transactions = await self.find_transactions_for_addresses(
                [a.address for a in addresses], options
            )
            self.logger.info(
                f"[CrossChainSearch] {'+'.join(normalized)}: "
                f"{len(addresses)} addresses, {len(transactions)} transactions"
            )
            return {
                "addresses": [a.to_dict() for a in addresses],
                "transactions": [t.to_dict() for t in transactions],
            }

        key = cross_chain_cache_key(normalized, options.cache_dict())
        return await self.cache.get_or_load(key, load)

    async def _candidates(
        self, fragments: list[str], options: CrossChainSearchOptions
    ) -> list[tuple[str, str]]:
        """Candidate (address, blockchain) keys for the fragment list."""
        fetch_limit = (options.offset + options.limit) * self.settings.candidate_overfetch
        driver = fragments[0]

        if len(fragments) == 1 and len(driver) <= self.settings.fragment_size:
            probe = fragment_probe(
                driver, self.settings.fragment_size, self.settings.fragment_stride
            )
            return await self._query(
                lambda s: AddressFragmentRepository(s).find_address_keys_by_fragment(
                    probe, options.chains, fetch_limit, query=driver
                )
            )

        return await self._query(
            lambda s: GlobalAddressRepository(s).find_address_keys_containing(
                fragments, options.chains, fetch_limit
            )
        )

    @wraps_store_errors
    async def find_addresses_with_all_fragments(
        self,
        fragments: Sequence[str],
        options: CrossChainSearchOptions | None = None,
        exact: bool = False,
    ) -> list[AddressResult]:
        """
        Addresses containing every fragment, grouped across chains.

        Args:
            fragments: Literal fragments (AND semantics)
            options: Pagination and chain filter
            exact: Treat the single fragment as a full address (equality)

        Returns:
            Page of AddressResult ordered by address
        """
        options = options or CrossChainSearchOptions()
        fragments = normalize_fragments(fragments)
        if not fragments or options.chains == ():
            return []

        if exact:
            matching = [fragments[0]]
        else:
            candidates = await self._candidates(fragments, options)
            matching = sorted(
                {
                    address
                    for address, _ in candidates
                    if all(f in address for f in fragments)
                }
            )
        if not matching:
            return []

        rows = await self._query(
            lambda s: GlobalAddressRepository(s).find_by_addresses(matching, options.chains)
        )

        grouped: dict[str, AddressResult] = {}
        for row in rows:
            result = grouped.setdefault(row.address, AddressResult(address=row.address))
            result.merge(row.blockchain, row.first_seen, row.last_seen, row.tx_count)

        ordered = [grouped[address] for address in sorted(grouped)]
        return ordered[options.offset:options.offset + options.limit]

    @wraps_store_errors
    async def find_transactions_for_addresses(
        self,
        addresses: Sequence[str],
        options: CrossChainSearchOptions | None = None,
        offset: int = 0,
    ) -> list[TransactionResult]:
        """
        Transactions sent from or to any of the addresses.

        Args:
            addresses: Full addresses
            options: Limit and chain filter (options.offset is ignored)
            offset: Transactions to skip

        Returns:
            Transactions, newest first
        """
        options = options or CrossChainSearchOptions()
        addresses = normalize_fragments(addresses)
        if not addresses or options.chains == ():
            return []

        fetch_limit = (offset + options.limit) * self.settings.transaction_overfetch
        rows = await self._query(
            lambda s: GlobalTransactionRepository(s).find_by_addresses(
                addresses, options.chains, fetch_limit
            )
        )
        return [
            TransactionResult(
                tx_hash=row.tx_hash,
                blockchain=row.blockchain,
                block_number=row.block_number,
                from_address=row.from_address,
                to_address=row.to_address,
                timestamp=row.timestamp,
            )
            for row in rows[offset:offset + options.limit]
        ]

    @wraps_store_errors
    async def get_supported_blockchains(self) -> list[str]:
        """Distinct chains present in the global address index."""
        return await self._query(
            lambda s: GlobalAddressRepository(s).distinct_blockchains(
                self.settings.supported_chains_scan_limit
            )
        )
