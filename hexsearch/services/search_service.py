"""
Single-chain search.

Exact and multi-pattern substring search over the per-chain blocks,
transactions and addresses tables, plus single-hash detail lookups.
The three table lookups of one search run concurrently, each in its own
session, and are merged newest first.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hexsearch.config.constants import (
    DETAIL_PROBE_ORDER,
    ENTITY_ADDRESS,
    ENTITY_BLOCK,
    ENTITY_TRANSACTION,
    SEARCH_DEFAULT_LIMIT,
    SEARCH_DEFAULT_OFFSET,
)
from hexsearch.models.chain_data import Block, ChainAddress, ChainTransaction
from hexsearch.repositories.chain_data_repository import (
    BlockRepository,
    ChainAddressRepository,
    ChainEntityRepository,
    ChainTransactionRepository,
)
from hexsearch.services.cache import ReadThroughCache, details_cache_key, search_cache_key
from hexsearch.utils.db_decorators import wraps_store_errors
from hexsearch.utils.hex import normalize_hex
from hexsearch.utils.serialization import isoformat


T = TypeVar("T")

_EPOCH = datetime.min.replace(tzinfo=UTC)

REPOSITORIES: dict[str, type[ChainEntityRepository]] = {
    "block": BlockRepository,
    "transaction": ChainTransactionRepository,
    "address": ChainAddressRepository,
}


@dataclass(frozen=True)
class SearchOptions:
    """
    Options for a single-chain search.

    exact=None picks exact search for a single pattern and substring
    search for several; an explicit value always wins.
    """

    limit: int = SEARCH_DEFAULT_LIMIT
    offset: int = SEARCH_DEFAULT_OFFSET
    type: str | None = None
    blockchain: str | None = None
    exact: bool | None = None

    def cache_dict(self) -> dict[str, Any]:
        return {
            "limit": self.limit,
            "offset": self.offset,
            "type": self.type,
            "blockchain": self.blockchain,
            "exact": self.exact,
        }


def parse_patterns(query: str) -> list[str]:
    """Split a query on whitespace into normalized literal patterns."""
    return [normalize_hex(p) for p in query.split() if normalize_hex(p)]


def _entity_timestamp(entity: Block | ChainTransaction | ChainAddress) -> datetime:
    if isinstance(entity, ChainAddress):
        return entity.updated_at or entity.created_at
    return entity.timestamp


def _search_result(entity: Block | ChainTransaction | ChainAddress) -> dict[str, Any]:
    """Shape a row into a search hit."""
    if isinstance(entity, Block):
        return {
            "id": f"{entity.blockchain}-block-{entity.number}",
            "hash": entity.hash,
            "type": ENTITY_BLOCK,
            "blockchain": entity.blockchain,
            "blockNumber": entity.number,
            "timestamp": isoformat(entity.timestamp),
            "parentHash": entity.parent_hash,
        }
    if isinstance(entity, ChainTransaction):
        return {
            "id": f"{entity.blockchain}-tx-{entity.hash}",
            "hash": entity.hash,
            "type": ENTITY_TRANSACTION,
            "blockchain": entity.blockchain,
            "blockNumber": entity.block_number,
            "timestamp": isoformat(entity.timestamp),
            "from": entity.from_address,
            "to": entity.to_address,
            "value": entity.value,
        }
    return {
        "id": f"{entity.blockchain}-addr-{entity.address}",
        "hash": entity.address,
        "type": ENTITY_ADDRESS,
        "blockchain": entity.blockchain,
        "timestamp": isoformat(_entity_timestamp(entity)),
    }


def format_detail_result(entity: Block | ChainTransaction | ChainAddress) -> dict[str, Any]:
    """
    Shape a row into a detail object.

    Fields depend on the entity kind:
    block -> hash, number, parentHash, timestamp;
    transaction -> hash, blockNumber, from, to, value, timestamp;
    address -> hash, address, createdAt, updatedAt.
    """
    if isinstance(entity, Block):
        return {
            "type": ENTITY_BLOCK,
            "blockchain": entity.blockchain,
            "hash": entity.hash,
            "number": entity.number,
            "parentHash": entity.parent_hash,
            "timestamp": isoformat(entity.timestamp),
        }
    if isinstance(entity, ChainTransaction):
        return {
            "type": ENTITY_TRANSACTION,
            "blockchain": entity.blockchain,
            "hash": entity.hash,
            "blockNumber": entity.block_number,
            "from": entity.from_address,
            "to": entity.to_address,
            "value": entity.value,
            "timestamp": isoformat(entity.timestamp),
        }
    return {
        "type": ENTITY_ADDRESS,
        "blockchain": entity.blockchain,
        "hash": entity.address,
        "address": entity.address,
        "createdAt": isoformat(entity.created_at),
        "updatedAt": isoformat(entity.updated_at),
    }


def merge_results(
    groups: Sequence[Sequence[Block | ChainTransaction | ChainAddress]],
    offset: int,
    limit: int,
) -> list[dict[str, Any]]:
    """
    Merge per-table rows: newest first, ties by result id, then paginate.
    """
    hits = [(_entity_timestamp(e) or _EPOCH, _search_result(e)) for group in groups for e in group]
    hits.sort(key=lambda hit: hit[1]["id"])
    hits.sort(key=lambda hit: hit[0], reverse=True)
    return [result for _, result in hits[offset:offset + limit]]


class SearchService:
    """
    Single-chain search engine.

    Example:
        service = SearchService(session_factory, cache)
        hits = await service.search("abcd 1234", SearchOptions(limit=5))
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: ReadThroughCache,
    ) -> None:
        """
        Initialize search engine.

        Args:
            session_factory: Session factory for the index store
            cache: Read-through cache
        """
        self.session_factory = session_factory
        self.cache = cache
        self.logger = logger.bind(service="Search")

    async def _query(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run one store query in its own session."""
        async with self.session_factory() as session:
            return await fn(session)

    @staticmethod
    def _kinds(entity_type: str | None) -> list[str]:
        if entity_type:
            kind = entity_type.lower()
            return [kind] if kind in REPOSITORIES else []
        return list(DETAIL_PROBE_ORDER)

    @wraps_store_errors
    async def search(
        self, query: str, options: SearchOptions | None = None
    ) -> list[dict[str, Any]]:
        """
        Search blocks, transactions and addresses.

        Args:
            query: One or more whitespace separated patterns
            options: Pagination, filters and match mode

        Returns:
            Hits ordered newest first
        """
        options = options or SearchOptions()
        patterns = parse_patterns(query)
        if not patterns:
            return []

        exact = options.exact if options.exact is not None else len(patterns) == 1

        async def load() -> list[dict[str, Any]]:
            self.logger.debug(
                f"[Search] {'exact' if exact else 'substring'} search for {patterns}"
            )
            if exact:
                return await self.exact_search(patterns[0], options)
            return await self.substring_search(patterns, options)

        return await self.cache.get_or_load(
            search_cache_key(query, options.cache_dict()), load
        )

    async def _fan_out(
        self,
        options: SearchOptions,
        lookup: Callable[[ChainEntityRepository, int], Awaitable[list]],
    ) -> list[dict[str, Any]]:
        """Run the lookup on every requested table concurrently and merge."""
        fetch_limit = options.offset + options.limit

        def run(kind: str):
            return self._query(lambda s: lookup(REPOSITORIES[kind](s), fetch_limit))

        groups = await asyncio.gather(*(run(kind) for kind in self._kinds(options.type)))
        return merge_results(groups, options.offset, options.limit)

    @wraps_store_errors
    async def exact_search(
        self, query: str, options: SearchOptions | None = None
    ) -> list[dict[str, Any]]:
        """Hits whose hash or address equals the normalized query."""
        options = options or SearchOptions()
        value = normalize_hex(query)
        return await self._fan_out(
            options,
            lambda repo, limit: repo.find_exact(value, options.blockchain, limit),
        )

    @wraps_store_errors
    async def substring_search(
        self, patterns: Sequence[str], options: SearchOptions | None = None
    ) -> list[dict[str, Any]]:
        """Hits whose hash or address contains every pattern."""
        options = options or SearchOptions()
        normalized = [normalize_hex(p) for p in patterns if normalize_hex(p)]
        if not normalized:
            return []
        return await self._fan_out(
            options,
            lambda repo, limit: repo.find_containing_all(normalized, options.blockchain, limit),
        )

    @wraps_store_errors
    async def get_details(
        self, hash_value: str, entity_type: str | None = None
    ) -> dict[str, Any] | None:
        """
        Resolve a single hash or address.

        Without a type, probes block, then transaction, then address.

        Args:
            hash_value: Hash or address (0x optional)
            entity_type: block, transaction or address

        Returns:
            Detail object, or None if nothing matches
        """
        normalized = normalize_hex(hash_value)
        if not normalized:
            return None

        async def load() -> dict[str, Any] | None:
            for kind in self._kinds(entity_type):
                rows = await self._query(
                    lambda s, kind=kind: REPOSITORIES[kind](s).find_exact(normalized, limit=1)
                )
                if rows:
                    return format_detail_result(rows[0])
            return None

        key = details_cache_key(normalized, entity_type.lower() if entity_type else None)
        return await self.cache.get_or_load(key, load)
