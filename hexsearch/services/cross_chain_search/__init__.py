"""Cross-chain fragment search."""

from hexsearch.services.cross_chain_search.results import (
    AddressResult,
    CrossChainSearchOptions,
    TransactionResult,
)
from hexsearch.services.cross_chain_search.service import (
    CrossChainSearchService,
    normalize_fragments,
)

__all__ = [
    "AddressResult",
    "CrossChainSearchOptions",
    "CrossChainSearchService",
    "TransactionResult",
    "normalize_fragments",
]
