"""
Ingestion pipeline.

Extracts a raw block and writes it to the per-chain tables and the
global index inside one transaction. A failed block is rolled back as a
whole, so retrying it never double-counts tx_count.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hexsearch.config.settings import Settings
from hexsearch.repositories.chain_data_repository import (
    BlockRepository,
    ChainAddressRepository,
    ChainTransactionRepository,
)
from hexsearch.services.base_service import BaseService, transaction
from hexsearch.services.crawler.extractor import ExtractedBlock, get_extractor
from hexsearch.services.global_index_service import GlobalIndexService
from hexsearch.utils.db_decorators import wraps_store_errors
from hexsearch.utils.hex import normalize_hex


class BlockWriter(BaseService):
    """Writes one extracted block, committing on success."""

    def __init__(self, session: AsyncSession, settings: Settings) -> None:
        super().__init__(session)
        self.index = GlobalIndexService(
            session,
            fragment_size=settings.fragment_size,
            fragment_stride=settings.fragment_stride,
        )
        self.blocks = BlockRepository(session)
        self.transactions = ChainTransactionRepository(session)
        self.addresses = ChainAddressRepository(session)

    async def _write_chain_data(self, block: ExtractedBlock) -> None:
        """Per-chain rows, stored without 0x prefix."""
        await self.blocks.add(
            [
                {
                    "blockchain": block.chain,
                    "hash": normalize_hex(block.block_hash),
                    "number": block.number,
                    "parent_hash": normalize_hex(block.parent_hash) or None,
                    "timestamp": block.timestamp,
                }
            ]
        )
        await self.transactions.add(
            [
                {
                    "blockchain": block.chain,
                    "hash": normalize_hex(tx.tx_hash),
                    "block_number": block.number,
                    "from_address": normalize_hex(tx.from_address) or None,
                    "to_address": normalize_hex(tx.to_address) or None,
                    "value": tx.value,
                    "timestamp": block.timestamp,
                }
                for tx in block.transactions
            ]
        )
        await self.addresses.upsert(
            block.chain,
            [normalize_hex(a) for a in block.addresses],
            block.timestamp,
        )

    async def _write_global_index(self, block: ExtractedBlock) -> None:
        for tx in block.transactions:
            await self.index.index_transaction_globally(
                tx.tx_hash,
                block.chain,
                block.number,
                tx.from_address,
                tx.to_address,
                block.timestamp,
            )
            for address in tx.addresses:
                await self.index.index_address_globally(
                    address, block.chain, block.timestamp
                )
        if block.fee_recipient:
            await self.index.index_address_globally(
                block.fee_recipient, block.chain, block.timestamp
            )

    @transaction
    async def write_block(self, block: ExtractedBlock) -> None:
        """
        Persist an extracted block.

        Args:
            block: Output of a ChainExtractor
        """
        await self._write_chain_data(block)
        await self._write_global_index(block)


class IngestionPipeline:
    """
    Chain-agnostic block ingestion.

    Example:
        pipeline = IngestionPipeline(session_factory, settings)
        extracted = await pipeline.process_block("ethereum", raw_block)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            session_factory: Session factory for the index store
            settings: Application settings (fragment tuning)
        """
        self.session_factory = session_factory
        self.settings = settings

    @wraps_store_errors
    async def process_block(self, chain: str, raw_block: dict[str, Any]) -> ExtractedBlock:
        """
        Extract and persist one raw block.

        Args:
            chain: Chain identifier
            raw_block: Block dict from the chain's RPC client

        Returns:
            The extracted block

        Raises:
            StoreError: If any write fails (nothing is committed)
        """
        extracted = get_extractor(chain).extract(raw_block)
        async with self.session_factory() as session:
            await BlockWriter(session, self.settings).write_block(extracted)
        return extracted
