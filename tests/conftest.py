"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings() at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENABLED_CHAINS", "ethereum")
os.environ.setdefault("LOG_FILE", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import AsyncMock, MagicMock

from hexsearch.config.settings import Settings


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for caching tests."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def test_settings():
    """Settings independent of the developer's .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        log_file=None,
        poller_base_delay=0.5,
        poller_max_delay=2.0,
        poller_delay_multiplier=2.0,
    )


@pytest.fixture
def sample_eth_block():
    """Raw Ethereum block as returned by EthereumRpcClient.get_block."""
    return {
        "number": 100,
        "hash": "0x" + "ab" * 32,
        "parentHash": "0x" + "cd" * 32,
        "timestamp": 1_700_000_000,
        "miner": "0xAAA",
        "transactions": [
            {
                "hash": "0x" + "11" * 32,
                "blockNumber": 100,
                "from": "0xBBB",
                "to": "0xCCC",
                "value": "1000",
            }
        ],
    }


@pytest.fixture
def sample_btc_block():
    """Raw Bitcoin block (getblock verbosity 3, inputs carry prevout)."""
    return {
        "height": 800000,
        "hash": "00000000000000000002a7c4c1e48d76c5a37902165a270156b7a8d72728a054",
        "previousblockhash": "00000000000000000001ff1b2c3d4e5f60718293a4b5c6d7e8f9a0b1c2d3e4f5",
        "time": 1_690_000_000,
        "tx": [
            {
                "txid": "c0ffee" + "00" * 29,
                "vin": [{"coinbase": "03a0350c", "sequence": 4294967295}],
                "vout": [
                    {
                        "value": 6.25,
                        "scriptPubKey": {"address": "bc1QMinerAddress0000000000000000000"},
                    }
                ],
            },
            {
                "txid": "beef" + "00" * 30,
                "vin": [
                    {
                        "txid": "aa" * 32,
                        "vout": 0,
                        "prevout": {"scriptPubKey": {"address": "1SenderAddr111111111111111111"}},
                    }
                ],
                "vout": [
                    {"value": 0.5, "scriptPubKey": {"address": "3ReceiverAddr3333333333333333"}},
                    {"value": 0.25, "scriptPubKey": {"address": "1SenderAddr111111111111111111"}},
                    {"value": 0, "scriptPubKey": {"type": "nulldata"}},
                ],
            },
        ],
    }
