"""
Chain RPC clients.

One client per chain family, all exposing the ChainRpcClient interface.
"""

from hexsearch.services.blockchain.bitcoin_rpc import BitcoinRpcClient
from hexsearch.services.blockchain.ethereum_rpc import EthereumRpcClient
from hexsearch.services.blockchain.rpc_client import ChainRpcClient, create_rpc_client

__all__ = [
    "BitcoinRpcClient",
    "ChainRpcClient",
    "EthereumRpcClient",
    "create_rpc_client",
]
