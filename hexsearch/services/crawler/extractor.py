"""
Transaction extractors.

Turn a raw block (as returned by the chain's RPC client) into the
addresses it touches and its (hash, from, to) transaction triples.
One extractor per chain family; everything downstream is chain-agnostic.
All addresses and hashes leave this module lowercase.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from hexsearch.config.constants import BITCOIN, ETHEREUM
from hexsearch.utils.hex import normalize_address


@dataclass(frozen=True)
class ExtractedTransaction:
    """Normalized transaction."""

    tx_hash: str
    from_address: str | None
    to_address: str | None
    value: str | None = None
    # Every address touched (multi-input / multi-output chains)
    addresses: tuple[str, ...] = ()


@dataclass
class ExtractedBlock:
    """Normalized block with its transactions and touched addresses."""

    chain: str
    number: int
    block_hash: str
    parent_hash: str | None
    timestamp: datetime
    fee_recipient: str | None = None
    addresses: list[str] = field(default_factory=list)
    transactions: list[ExtractedTransaction] = field(default_factory=list)

    @property
    def triples(self) -> list[tuple[str, str | None, str | None]]:
        """(tx_hash, from, to) for every transaction."""
        return [(tx.tx_hash, tx.from_address, tx.to_address) for tx in self.transactions]


def _unique(values: list[str | None]) -> list[str]:
    """Drop empties and duplicates, keep first-seen order."""
    return list(dict.fromkeys(v for v in values if v))


def _timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    return datetime.fromtimestamp(int(value), tz=UTC)


class ChainExtractor(ABC):
    """Extracts addresses and transactions from a raw block."""

    chain: str

    @abstractmethod
    def extract(self, raw_block: dict[str, Any]) -> ExtractedBlock:
        """
        Extract a raw block.

        Args:
            raw_block: Block dict from the chain's RPC client

        Returns:
            Normalized block
        """


class EthereumExtractor(ChainExtractor):
    """EVM blocks: fee recipient plus each transaction's sender and receiver."""

    chain = ETHEREUM

    def extract(self, raw_block: dict[str, Any]) -> ExtractedBlock:
        transactions = []
        miner = normalize_address(raw_block.get("miner"))
        touched: list[str | None] = [miner]

        for tx in raw_block.get("transactions", []):
            if not isinstance(tx, dict):
                # Hash-only listing carries no addresses
                continue
            sender = normalize_address(tx.get("from"))
            # None for contract creation
            receiver = normalize_address(tx.get("to"))
            value = tx.get("value")
            transactions.append(
                ExtractedTransaction(
                    tx_hash=normalize_address(tx["hash"]),
                    from_address=sender,
                    to_address=receiver,
                    value=str(value) if value is not None else None,
                    addresses=tuple(_unique([sender, receiver])),
                )
            )
            touched.extend([sender, receiver])

        return ExtractedBlock(
            chain=self.chain,
            number=int(raw_block["number"]),
            block_hash=normalize_address(raw_block["hash"]),
            parent_hash=normalize_address(raw_block.get("parentHash")),
            timestamp=_timestamp(raw_block["timestamp"]),
            fee_recipient=miner,
            addresses=_unique(touched),
            transactions=transactions,
        )


class BitcoinExtractor(ChainExtractor):
    """
    UTXO blocks.

    Coinbase inputs have no address. Input addresses are only known when
    the node includes prevout data; output addresses come from scriptPubKey.
    """

    chain = BITCOIN

    @staticmethod
    def _script_addresses(script: dict[str, Any] | None) -> list[str | None]:
        if not script:
            return []
        if script.get("address"):
            return [normalize_address(script["address"])]
        return [normalize_address(a) for a in script.get("addresses", [])]

    def _input_addresses(self, vin: dict[str, Any]) -> list[str | None]:
        if "coinbase" in vin:
            return []
        if vin.get("address"):
            return [normalize_address(vin["address"])]
        prevout = vin.get("prevout") or {}
        return self._script_addresses(prevout.get("scriptPubKey"))

    def extract(self, raw_block: dict[str, Any]) -> ExtractedBlock:
        transactions = []
        touched: list[str | None] = []

        for tx in raw_block.get("tx", []):
            if not isinstance(tx, dict):
                continue
            inputs = _unique(
                [a for vin in tx.get("vin", []) for a in self._input_addresses(vin)]
            )
            outputs = _unique(
                [
                    a
                    for vout in tx.get("vout", [])
                    for a in (
                        [normalize_address(vout["address"])]
                        if vout.get("address")
                        else self._script_addresses(vout.get("scriptPubKey"))
                    )
                ]
            )
            total = sum(
                (Decimal(str(vout.get("value", 0))) for vout in tx.get("vout", [])),
                Decimal(0),
            )
            transactions.append(
                ExtractedTransaction(
                    tx_hash=normalize_address(tx.get("txid") or tx.get("hash")),
                    from_address=inputs[0] if inputs else None,
                    to_address=outputs[0] if outputs else None,
                    value=str(total),
                    addresses=tuple(_unique(inputs + outputs)),
                )
            )
            touched.extend(inputs)
            touched.extend(outputs)

        return ExtractedBlock(
            chain=self.chain,
            number=int(raw_block.get("height", raw_block.get("number", 0))),
            block_hash=normalize_address(raw_block["hash"]),
            parent_hash=normalize_address(raw_block.get("previousblockhash")),
            timestamp=_timestamp(raw_block.get("time", raw_block.get("timestamp"))),
            addresses=_unique(touched),
            transactions=transactions,
        )


_EXTRACTORS: dict[str, type[ChainExtractor]] = {
    ETHEREUM: EthereumExtractor,
    BITCOIN: BitcoinExtractor,
}


def get_extractor(chain: str) -> ChainExtractor:
    """
    Extractor for a chain family.

    Raises:
        ValueError: If the chain is not supported
    """
    try:
        return _EXTRACTORS[chain]()
    except KeyError:
        raise ValueError(f"No extractor for chain: {chain}") from None
