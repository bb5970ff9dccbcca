"""
Global index writer.

Persists extracted addresses and transactions into the cross-chain
index and the fragment inverted index. Every write is safe to repeat;
the caller owns the transaction.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from hexsearch.repositories.address_fragment_repository import AddressFragmentRepository
from hexsearch.repositories.global_address_repository import GlobalAddressRepository
from hexsearch.repositories.global_transaction_repository import GlobalTransactionRepository
from hexsearch.services.base_service import BaseService
from hexsearch.utils.fragments import FRAGMENT_SIZE, FRAGMENT_STRIDE, generate_fragments
from hexsearch.utils.hex import normalize_address


class GlobalIndexService(BaseService):
    """Writes to global_address_index, address_fragments and global_transaction_index."""

    def __init__(
        self,
        session: AsyncSession,
        fragment_size: int = FRAGMENT_SIZE,
        fragment_stride: int = FRAGMENT_STRIDE,
    ) -> None:
        """
        Initialize index writer.

        Args:
            session: Async database session
            fragment_size: Fragment length
            fragment_stride: Offset between fragments
        """
        super().__init__(session)
        self.fragment_size = fragment_size
        self.fragment_stride = fragment_stride
        self.address_repo = GlobalAddressRepository(session)
        self.fragment_repo = AddressFragmentRepository(session)
        self.transaction_repo = GlobalTransactionRepository(session)

    async def index_address_globally(
        self, address: str, blockchain: str, timestamp: datetime
    ) -> None:
        """
        Record a sighting of an address.

        Increments tx_count, advances last_seen, sets first_seen only
        if unset, and (re)inserts the address fragments.

        Args:
            address: Address in the chain's native format
            blockchain: Chain identifier
            timestamp: Block timestamp
        """
        address = normalize_address(address)
        if not address:
            return

        await self.address_repo.touch(address, blockchain, timestamp)
        await self.fragment_repo.add_fragments(
            address,
            blockchain,
            generate_fragments(address, self.fragment_size, self.fragment_stride),
        )
        self.logger.debug(f"[IndexWriter] Indexed address {address} on {blockchain}")

    async def index_transaction_globally(
        self,
        tx_hash: str,
        blockchain: str,
        block_number: int,
        from_address: str | None,
        to_address: str | None,
        timestamp: datetime,
    ) -> None:
        """
        Record a transaction. Re-indexing the same key is a no-op.

        Args:
            tx_hash: Transaction hash
            blockchain: Chain identifier
            block_number: Containing block
            from_address: Sender, None for coinbase inputs
            to_address: Receiver, None for contract creation
            timestamp: Block timestamp
        """
        await self.transaction_repo.add(
            tx_hash=normalize_address(tx_hash),
            blockchain=blockchain,
            block_number=block_number,
            from_address=normalize_address(from_address),
            to_address=normalize_address(to_address),
            timestamp=timestamp,
        )
