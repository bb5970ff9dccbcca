"""
Chain RPC client interface.

Pollers only talk to this interface. Implementations return plain dicts
shaped like their chain's native RPC payloads and signal throttling
with RateLimitError, so backoff logic stays chain-agnostic.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from hexsearch.config.constants import BITCOIN, ETHEREUM, RATE_LIMIT_MARKERS
from hexsearch.utils.exceptions import ProviderError, RateLimitError


if TYPE_CHECKING:
    from hexsearch.config.settings import Settings


class ChainRpcClient(ABC):
    """Per-chain RPC collaborator."""

    chain: str

    @abstractmethod
    async def get_latest_block_number(self) -> int:
        """Current chain head."""

    @abstractmethod
    async def get_block(
        self, number: int, include_transactions: bool = True
    ) -> dict[str, Any] | None:
        """
        Fetch block by number.

        Returns:
            Block dict, or None if the provider does not have it (yet)
        """

    @abstractmethod
    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """Fetch transaction by hash, or None if unknown."""

    async def close(self) -> None:
        """Release network resources."""


def looks_rate_limited(exc: BaseException, status: int | None = None) -> bool:
    """
    Check if a provider failure signals request throttling.

    Args:
        exc: Raised exception
        status: HTTP status, when known

    Returns:
        True for HTTP 429 or a throttling message
    """
    if status == 429:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def to_provider_error(
    exc: BaseException, chain: str, operation: str, status: int | None = None
) -> ProviderError:
    """
    Map a raw provider failure onto the hexsearch taxonomy.

    Returns:
        RateLimitError when throttled, ProviderError otherwise
    """
    if isinstance(exc, ProviderError):
        return exc
    message = f"{chain} {operation} failed: {exc}"
    if looks_rate_limited(exc, status):
        return RateLimitError(message)
    return ProviderError(message)


def create_rpc_client(chain: str, settings: "Settings") -> ChainRpcClient:
    """
    Build the RPC client for a chain.

    Raises:
        ValueError: If the chain has no client
    """
    if chain == ETHEREUM:
        from hexsearch.services.blockchain.ethereum_rpc import EthereumRpcClient

        return EthereumRpcClient(settings.eth_rpc_url, timeout=settings.rpc_timeout)
    if chain == BITCOIN:
        from hexsearch.services.blockchain.bitcoin_rpc import BitcoinRpcClient

        return BitcoinRpcClient(
            settings.btc_rpc_url,
            user=settings.btc_rpc_user,
            password=settings.btc_rpc_password,
            timeout=settings.rpc_timeout,
        )
    raise ValueError(f"No RPC client for chain: {chain}")
