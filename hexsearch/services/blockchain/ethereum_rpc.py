"""
Ethereum RPC client.

AsyncWeb3 over HTTP. Blocks and transactions are converted from web3's
AttributeDict / HexBytes into plain dicts with 0x-prefixed hex strings.
"""

from typing import Any

import aiohttp
from loguru import logger
from web3 import AsyncWeb3, Web3
from web3.exceptions import BlockNotFound, TransactionNotFound

from hexsearch.config.constants import ETHEREUM, RPC_TIMEOUT
from hexsearch.services.blockchain.rpc_client import ChainRpcClient, to_provider_error
from hexsearch.utils.exceptions import ProviderError
from hexsearch.utils.timeouts import with_timeout


def _hex(value: Any) -> Any:
    """HexBytes to 0x-hex, everything else unchanged."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return value


def _plain_transaction(tx: Any) -> dict[str, Any]:
    return {
        "hash": _hex(tx["hash"]),
        "blockNumber": tx.get("blockNumber"),
        "from": tx.get("from"),
        "to": tx.get("to"),
        "value": str(tx.get("value", 0)),
    }


def _plain_block(block: Any) -> dict[str, Any]:
    transactions = [
        _plain_transaction(tx) if not isinstance(tx, (bytes, bytearray, str)) else {"hash": _hex(tx)}
        for tx in block.get("transactions", [])
    ]
    return {
        "number": block["number"],
        "hash": _hex(block["hash"]),
        "parentHash": _hex(block.get("parentHash")),
        "timestamp": block["timestamp"],
        "miner": block.get("miner"),
        "transactions": transactions,
    }


class EthereumRpcClient(ChainRpcClient):
    """Ethereum JSON-RPC client."""

    chain = ETHEREUM

    def __init__(
        self,
        rpc_url: str,
        timeout: float = RPC_TIMEOUT,
        web3: AsyncWeb3 | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            rpc_url: HTTP RPC endpoint
            timeout: Per-call timeout in seconds
            web3: Pre-built AsyncWeb3 instance (tests)
        """
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.web3 = web3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    async def _call(self, coro: Any, operation: str) -> Any:
        try:
            return await with_timeout(
                coro,
                timeout=self.timeout,
                operation_name=f"[Ethereum] {operation}",
                error_cls=ProviderError,
            )
        except (BlockNotFound, TransactionNotFound):
            raise
        except aiohttp.ClientResponseError as e:
            raise to_provider_error(e, self.chain, operation, status=e.status) from e
        except Exception as e:
            raise to_provider_error(e, self.chain, operation) from e

    async def get_latest_block_number(self) -> int:
        """Current chain head."""
        return int(await self._call(self.web3.eth.block_number, "eth_blockNumber"))

    async def get_block(
        self, number: int, include_transactions: bool = True
    ) -> dict[str, Any] | None:
        """
        Fetch block by number.

        Returns:
            Block dict or None if the node does not have it yet
        """
        try:
            block = await self._call(
                self.web3.eth.get_block(number, full_transactions=include_transactions),
                "eth_getBlockByNumber",
            )
        except BlockNotFound:
            logger.debug(f"[Ethereum] Block {number} not found")
            return None
        if block is None:
            return None
        return _plain_block(block)

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """Fetch transaction by hash."""
        try:
            tx = await self._call(
                self.web3.eth.get_transaction(tx_hash),
                "eth_getTransactionByHash",
            )
        except TransactionNotFound:
            return None
        if tx is None:
            return None
        return _plain_transaction(tx)

    async def close(self) -> None:
        """Close the provider's HTTP session, if any."""
        provider = self.web3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
