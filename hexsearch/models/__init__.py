"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from hexsearch.models.base import Base

# Per-chain data
from hexsearch.models.chain_data import Block, ChainAddress, ChainTransaction

# Global (cross-chain) index
from hexsearch.models.global_index import (
    AddressFragment,
    GlobalAddressIndex,
    GlobalTransactionIndex,
)

__all__ = [
    "Base",
    "AddressFragment",
    "GlobalAddressIndex",
    "GlobalTransactionIndex",
    "Block",
    "ChainTransaction",
    "ChainAddress",
]
