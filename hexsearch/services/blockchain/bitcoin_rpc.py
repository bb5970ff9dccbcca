"""
Bitcoin RPC client.

JSON-RPC against a bitcoind-compatible node over aiohttp with basic auth.
Blocks are fetched with getblock verbosity 3: decoded transactions whose
inputs carry the spent output (prevout), which is where sender addresses
come from.
"""

from typing import Any

import aiohttp
from loguru import logger

from hexsearch.config.constants import BITCOIN, RPC_TIMEOUT
from hexsearch.services.blockchain.rpc_client import ChainRpcClient, to_provider_error
from hexsearch.utils.exceptions import ProviderError

# bitcoind error codes that mean "not there", not "broken"
RPC_INVALID_PARAMETER = -8
RPC_INVALID_ADDRESS_OR_KEY = -5
NOT_FOUND_CODES = (RPC_INVALID_PARAMETER, RPC_INVALID_ADDRESS_OR_KEY)


class BitcoinRpcError(ProviderError):
    """JSON-RPC level error returned by the node."""

    def __init__(self, code: int | None, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code


class BitcoinRpcClient(ChainRpcClient):
    """Bitcoin Core JSON-RPC client."""

    chain = BITCOIN

    def __init__(
        self,
        rpc_url: str,
        user: str | None = None,
        password: str | None = None,
        timeout: float = RPC_TIMEOUT,
    ) -> None:
        """
        Initialize client.

        Args:
            rpc_url: Node RPC endpoint
            user: RPC user (basic auth)
            password: RPC password (basic auth)
            timeout: Per-call timeout in seconds
        """
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._auth = aiohttp.BasicAuth(user, password or "") if user else None
        self._session: aiohttp.ClientSession | None = None
        self._request_id = 0

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(auth=self._auth)
        return self._session

    async def _rpc_call(self, method: str, params: list) -> Any:
        """
        Make JSON-RPC call.

        Args:
            method: RPC method name
            params: RPC parameters

        Returns:
            Result field of the response

        Raises:
            RateLimitError: If the node throttles the request
            BitcoinRpcError: If the node returns an RPC error
            ProviderError: On transport failures
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "1.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            session = await self._get_session()
            async with session.post(
                self.rpc_url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"},
            ) as response:
                if response.status == 429:
                    raise to_provider_error(
                        ProviderError("Too Many Requests"), self.chain, method, status=429
                    )
                # bitcoind answers RPC errors with HTTP 500 and a JSON body
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    text = await response.text()
                    raise to_provider_error(
                        ProviderError(f"HTTP {response.status}: {text[:200]}"),
                        self.chain,
                        method,
                        status=response.status,
                    )
        except ProviderError:
            raise
        except (aiohttp.ClientError, TimeoutError) as e:
            raise to_provider_error(e, self.chain, method) from e

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            code = error.get("code")
            message = error.get("message", "")
            if "too many requests" in message.lower() or "rate limit" in message.lower():
                raise to_provider_error(ProviderError(message), self.chain, method)
            raise BitcoinRpcError(code, message)
        return data.get("result")

    async def get_latest_block_number(self) -> int:
        """Current chain height."""
        return int(await self._rpc_call("getblockcount", []))

    async def get_block(
        self, number: int, include_transactions: bool = True
    ) -> dict[str, Any] | None:
        """
        Fetch block by height.

        Returns:
            Decoded block dict or None if the height is beyond the tip
        """
        try:
            block_hash = await self._rpc_call("getblockhash", [number])
            # 3 adds vin[].prevout; 2 has no input addresses
            verbosity = 3 if include_transactions else 1
            return await self._rpc_call("getblock", [block_hash, verbosity])
        except BitcoinRpcError as e:
            if e.code in NOT_FOUND_CODES:
                logger.debug(f"[Bitcoin] Block {number} not found: {e}")
                return None
            raise

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """Fetch decoded transaction by txid."""
        try:
            return await self._rpc_call("getrawtransaction", [tx_hash, True])
        except BitcoinRpcError as e:
            if e.code in NOT_FOUND_CODES:
                return None
            raise

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
