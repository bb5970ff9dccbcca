"""
Integration tests for single-chain SearchService.
"""

from datetime import UTC, datetime

import pytest
import pytest_asyncio

from hexsearch.models import Block, ChainAddress, ChainTransaction
from hexsearch.services.search_service import SearchOptions

pytestmark = pytest.mark.integration

SHARED_HASH = "ab" * 32
TX_HASH = "11abcd22" + "00" * 28


def ts(day: int) -> datetime:
    return datetime(2024, 1, day, tzinfo=UTC)


@pytest_asyncio.fixture
async def chain_rows(session_factory):
    """A block, two transactions and two addresses on ethereum, one address on bitcoin."""
    async with session_factory() as session:
        session.add_all(
            [
                Block(
                    blockchain="ethereum",
                    hash=SHARED_HASH,
                    number=100,
                    parent_hash="cd" * 32,
                    timestamp=ts(5),
                ),
                ChainTransaction(
                    blockchain="ethereum",
                    hash=SHARED_HASH,
                    block_number=100,
                    from_address="bbbb",
                    to_address="cccc",
                    value="1000",
                    timestamp=ts(5),
                ),
                ChainTransaction(
                    blockchain="ethereum",
                    hash=TX_HASH,
                    block_number=90,
                    from_address="11abcd22",
                    to_address=None,
                    value="0",
                    timestamp=ts(3),
                ),
                ChainAddress(
                    blockchain="ethereum",
                    address="11abcd22",
                    created_at=ts(1),
                    updated_at=ts(4),
                ),
                ChainAddress(
                    blockchain="ethereum",
                    address="abcd",
                    created_at=ts(1),
                    updated_at=ts(2),
                ),
                ChainAddress(
                    blockchain="bitcoin",
                    address="abcd",
                    created_at=ts(1),
                    updated_at=ts(1),
                ),
            ]
        )
        await session.commit()


class TestExactVersusSubstring:
    """Test the match mode selection."""

    @pytest.mark.asyncio
    async def test_exact_requires_equality(self, search_service, chain_rows):
        hits = await search_service.search(
            "abcd", SearchOptions(exact=True, blockchain="ethereum")
        )

        assert [(h["type"], h["hash"]) for h in hits] == [("Address", "abcd")]

    @pytest.mark.asyncio
    async def test_single_pattern_defaults_to_exact(self, search_service, chain_rows):
        hits = await search_service.search("11ABCD", SearchOptions())

        assert hits == []

    @pytest.mark.asyncio
    async def test_substring_when_not_exact(self, search_service, chain_rows):
        hits = await search_service.search(
            "abcd", SearchOptions(exact=False, blockchain="ethereum")
        )

        assert {h["hash"] for h in hits} == {"11abcd22", "abcd", TX_HASH}

    @pytest.mark.asyncio
    async def test_prefix_ignored(self, search_service, chain_rows):
        hits = await search_service.search(f"0x{TX_HASH.upper()}")

        assert [h["hash"] for h in hits] == [TX_HASH]
        assert hits[0]["type"] == "Transaction"


class TestMultiPattern:
    """Test AND semantics over several patterns."""

    @pytest.mark.asyncio
    async def test_all_patterns_required(self, search_service, chain_rows):
        hits = await search_service.search("abcd 11")

        assert {h["hash"] for h in hits} == {"11abcd22", TX_HASH}

    @pytest.mark.asyncio
    async def test_results_newest_first(self, search_service, chain_rows):
        hits = await search_service.search("abcd 11")

        assert [h["type"] for h in hits] == ["Address", "Transaction"]
        assert hits[0]["timestamp"] == ts(4).isoformat()

    @pytest.mark.asyncio
    async def test_type_filter(self, search_service, chain_rows):
        hits = await search_service.search("abcd 11", SearchOptions(type="transaction"))

        assert [h["type"] for h in hits] == ["Transaction"]

    @pytest.mark.asyncio
    async def test_pagination(self, search_service, chain_rows):
        full = await search_service.search("ab cd", SearchOptions(limit=10))
        page = await search_service.search("ab cd", SearchOptions(limit=2, offset=1))

        assert page == full[1:3]


class TestDetails:
    """Test single hash resolution."""

    @pytest.mark.asyncio
    async def test_block_probed_first(self, search_service, chain_rows):
        details = await search_service.get_details(f"0x{SHARED_HASH}")

        assert details["type"] == "Block"
        assert details["number"] == 100
        assert details["parentHash"] == "cd" * 32

    @pytest.mark.asyncio
    async def test_explicit_type(self, search_service, chain_rows):
        details = await search_service.get_details(SHARED_HASH, "transaction")

        assert details["type"] == "Transaction"
        assert details["from"] == "bbbb"
        assert details["value"] == "1000"

    @pytest.mark.asyncio
    async def test_address_details(self, search_service, chain_rows):
        details = await search_service.get_details("11abcd22")

        assert details == {
            "type": "Address",
            "blockchain": "ethereum",
            "hash": "11abcd22",
            "address": "11abcd22",
            "createdAt": ts(1).isoformat(),
            "updatedAt": ts(4).isoformat(),
        }

    @pytest.mark.asyncio
    async def test_not_found_is_not_cached(self, search_service, fake_redis, chain_rows):
        assert await search_service.get_details("ffff") is None
        assert fake_redis.data == {}

    @pytest.mark.asyncio
    async def test_found_is_cached(self, search_service, session_factory, chain_rows):
        first = await search_service.get_details(SHARED_HASH)
        calls = session_factory.calls

        assert await search_service.get_details(SHARED_HASH) == first
        assert session_factory.calls == calls
