"""
Hex string helpers.
"""

import re

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def normalize_hex(value: str | None) -> str:
    """
    Normalize a hex string: drop the 0x prefix and lowercase.

    Args:
        value: Hex string (with or without 0x)

    Returns:
        Normalized string, empty for empty input
    """
    if not value:
        return ""
    if value[:2].lower() == "0x":
        value = value[2:]
    return value.lower()


def is_valid_hex(value: str | None) -> bool:
    """Check that value is a non-empty hex string (0x prefix optional)."""
    if not value:
        return False
    if value[:2].lower() == "0x":
        value = value[2:]
    return bool(_HEX_RE.match(value))


def normalize_address(value: str | None) -> str | None:
    """
    Case-normalize an address, keeping its native format.

    Used for the global index, where 0x-prefixed EVM addresses and
    base58 / bech32 bitcoin addresses are stored as-is but lowercase.
    """
    if not value:
        return None
    return value.strip().lower()
