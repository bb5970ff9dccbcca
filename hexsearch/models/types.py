"""
Standard type definitions for database models.

Provides consistent column types across the index and chain-data models.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp.

    Backends without native timezone support (SQLite) return naive values;
    they are re-attached to UTC on load so comparisons and JSON output stay
    consistent across stores.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


# Chain identifier (ethereum, bitcoin, ...)
ChainType = String(32)

# Addresses: 42 chars for EVM, up to 90 for bech32 / taproot
AddressType = String(128)

# Block and transaction hashes (with or without 0x prefix)
HashType = String(80)

# Raw native value (wei / satoshi as decimal string)
ValueType = String(100)
