"""
Per-chain data models.

Blocks, transactions and addresses for a single chain, searched by the
single-chain search engine. Hashes and addresses are stored with
normalize_hex (lowercase, no 0x prefix).
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, Index
from sqlalchemy.orm import Mapped, mapped_column

from hexsearch.models.base import Base
from hexsearch.models.types import (
    AddressType,
    ChainType,
    HashType,
    UTCDateTime,
    ValueType,
)


class Block(Base):
    """Block header."""

    __tablename__ = "blocks"
    __table_args__ = (
        Index("ix_blocks_blockchain_number", "blockchain", "number"),
        Index("ix_blocks_hash", "hash"),
    )

    blockchain: Mapped[str] = mapped_column(ChainType, primary_key=True)
    hash: Mapped[str] = mapped_column(HashType, primary_key=True)
    number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    parent_hash: Mapped[str | None] = mapped_column(HashType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Block(blockchain={self.blockchain}, number={self.number})>"


class ChainTransaction(Base):
    """Transaction as seen on one chain."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_hash", "hash"),
        Index("ix_transactions_from_address", "from_address"),
        Index("ix_transactions_to_address", "to_address"),
        Index("ix_transactions_block_number", "block_number"),
    )

    blockchain: Mapped[str] = mapped_column(ChainType, primary_key=True)
    hash: Mapped[str] = mapped_column(HashType, primary_key=True)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    from_address: Mapped[str | None] = mapped_column(AddressType, nullable=True)
    to_address: Mapped[str | None] = mapped_column(AddressType, nullable=True)
    value: Mapped[str | None] = mapped_column(ValueType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ChainTransaction(blockchain={self.blockchain}, "
            f"hash={self.hash[:16]}...)>"
        )


class ChainAddress(Base):
    """Address as seen on one chain."""

    __tablename__ = "addresses"
    __table_args__ = (Index("ix_addresses_address", "address"),)

    blockchain: Mapped[str] = mapped_column(ChainType, primary_key=True)
    address: Mapped[str] = mapped_column(AddressType, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ChainAddress(blockchain={self.blockchain}, address={self.address})>"
