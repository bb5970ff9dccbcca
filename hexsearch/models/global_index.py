"""
Global index models.

Cross-chain view of addresses and transactions, plus the fragment
inverted index that makes substring search over addresses tractable.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Index
from sqlalchemy.orm import Mapped, mapped_column

from hexsearch.models.base import Base
from hexsearch.models.types import AddressType, ChainType, HashType, UTCDateTime


class GlobalAddressIndex(Base):
    """
    Every address seen on any chain.

    Key is (address, blockchain). Addresses are stored lowercase in the
    chain's native format. Rows are never deleted.
    """

    __tablename__ = "global_address_index"

    address: Mapped[str] = mapped_column(AddressType, primary_key=True)
    blockchain: Mapped[str] = mapped_column(ChainType, primary_key=True, index=True)

    # Set exactly once, on the first sighting
    first_seen: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # Only ever moves forward
    last_seen: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    tx_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<GlobalAddressIndex(address={self.address}, "
            f"blockchain={self.blockchain}, tx_count={self.tx_count})>"
        )


class AddressFragment(Base):
    """
    Fixed-length substring of a normalized address.

    Fully determined by content, so re-inserting is idempotent.
    """

    __tablename__ = "address_fragments"

    fragment: Mapped[str] = mapped_column(AddressType, primary_key=True, index=True)
    address: Mapped[str] = mapped_column(AddressType, primary_key=True)
    blockchain: Mapped[str] = mapped_column(ChainType, primary_key=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<AddressFragment(fragment={self.fragment}, "
            f"address={self.address}, blockchain={self.blockchain})>"
        )


class GlobalTransactionIndex(Base):
    """
    Every transaction seen on any chain. Immutable after creation.

    from_address is null for coinbase-style inputs, to_address is null
    for contract creation.
    """

    __tablename__ = "global_transaction_index"
    __table_args__ = (
        Index("ix_global_tx_from_address", "from_address"),
        Index("ix_global_tx_to_address", "to_address"),
    )

    tx_hash: Mapped[str] = mapped_column(HashType, primary_key=True)
    blockchain: Mapped[str] = mapped_column(ChainType, primary_key=True)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    from_address: Mapped[str | None] = mapped_column(AddressType, nullable=True)
    to_address: Mapped[str | None] = mapped_column(AddressType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<GlobalTransactionIndex(tx_hash={self.tx_hash[:16]}..., "
            f"blockchain={self.blockchain}, block={self.block_number})>"
        )
