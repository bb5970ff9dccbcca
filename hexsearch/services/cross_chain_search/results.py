"""
Cross-chain search options and result containers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from hexsearch.config.constants import SEARCH_DEFAULT_LIMIT, SEARCH_DEFAULT_OFFSET
from hexsearch.utils.serialization import isoformat


@dataclass(frozen=True)
class CrossChainSearchOptions:
    """Pagination and chain filter for a fragment search."""

    limit: int = SEARCH_DEFAULT_LIMIT
    offset: int = SEARCH_DEFAULT_OFFSET
    type: str | None = None
    # None means all chains; an empty tuple matches nothing
    chains: tuple[str, ...] | None = None

    def cache_dict(self) -> dict[str, Any]:
        """Options as they enter the cache key."""
        return {
            "limit": self.limit,
            "offset": self.offset,
            "type": self.type,
            "chains": list(self.chains) if self.chains is not None else None,
        }


@dataclass
class AddressResult:
    """One address with its per-chain index entries merged."""

    address: str
    blockchains: list[str] = field(default_factory=list)
    first_seen: datetime | None = None
    last_seen: datetime | None = None
    tx_count: int = 0

    def merge(self, blockchain: str, first_seen, last_seen, tx_count: int) -> None:
        """Fold in one per-chain entry."""
        if blockchain not in self.blockchains:
            self.blockchains.append(blockchain)
            self.blockchains.sort()
        if first_seen is not None and (self.first_seen is None or first_seen < self.first_seen):
            self.first_seen = first_seen
        if last_seen is not None and (self.last_seen is None or last_seen > self.last_seen):
            self.last_seen = last_seen
        self.tx_count += int(tx_count or 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "blockchains": list(self.blockchains),
            "firstSeen": isoformat(self.first_seen),
            "lastSeen": isoformat(self.last_seen),
            "txCount": self.tx_count,
        }


@dataclass(frozen=True)
class TransactionResult:
    """Transaction from the global index."""

    tx_hash: str
    blockchain: str
    block_number: int
    from_address: str | None
    to_address: str | None
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "txHash": self.tx_hash,
            "blockchain": self.blockchain,
            "blockNumber": self.block_number,
            "fromAddress": self.from_address,
            "toAddress": self.to_address,
            "timestamp": isoformat(self.timestamp),
        }
