"""Tests for single-chain result shaping and merge order."""

from datetime import UTC, datetime

from hexsearch.models import Block, ChainAddress, ChainTransaction
from hexsearch.services.search_service import merge_results

SAME_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def tx(hash_value: str, when: datetime = SAME_TIME) -> ChainTransaction:
    return ChainTransaction(
        blockchain="ethereum",
        hash=hash_value,
        block_number=1,
        from_address="aa",
        to_address="bb",
        value="0",
        timestamp=when,
    )


class TestMergeResults:
    """Test ordering and pagination of merged per-table rows."""

    def test_ids_carry_full_hash(self):
        """Hashes sharing a long prefix still get distinct ids."""
        first = tx("abcdef0123" + "00" * 27)
        second = tx("abcdef0123" + "ff" * 27)

        hits = merge_results([[second, first]], offset=0, limit=10)

        assert len({h["id"] for h in hits}) == 2
        assert [h["hash"] for h in hits] == [first.hash, second.hash]

    def test_newest_first_across_tables(self):
        block = Block(
            blockchain="ethereum", hash="cc", number=2, parent_hash=None,
            timestamp=datetime(2024, 1, 3, tzinfo=UTC),
        )
        address = ChainAddress(
            blockchain="ethereum", address="dd",
            created_at=SAME_TIME, updated_at=datetime(2024, 1, 2, tzinfo=UTC),
        )

        hits = merge_results([[block], [tx("ee")], [address]], offset=0, limit=10)

        assert [h["type"] for h in hits] == ["Block", "Address", "Transaction"]
        assert hits[2]["id"] == "ethereum-tx-ee"

    def test_pagination_after_merge(self):
        rows = [tx(f"{i:02x}") for i in range(5)]

        page = merge_results([rows], offset=1, limit=2)

        assert [h["hash"] for h in page] == ["01", "02"]
