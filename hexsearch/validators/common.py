"""
Common validators for search query parameters.

Each validator returns a tuple of (is_valid, parsed_value, error_message).
Missing optional parameters are valid and parse to their default.
"""

import re

from hexsearch.config.constants import (
    DETAIL_PROBE_ORDER,
    SEARCH_DEFAULT_LIMIT,
    SEARCH_DEFAULT_OFFSET,
    SEARCH_MAX_LIMIT,
    SEARCH_MIN_LIMIT,
)
from hexsearch.utils.hex import is_valid_hex, normalize_hex

_FRAGMENT_SPLIT_RE = re.compile(r"[,\s]+")
_CHAIN_RE = re.compile(r"^[a-z0-9_-]{1,32}$")


def validate_limit(value: str | None) -> tuple[bool, int | None, str | None]:
    """
    Validate result limit.

    Examples:
        >>> validate_limit("20")
        (True, 20, None)
        >>> validate_limit("0")
        (False, None, "Limit must be a number between 1 and 100")
    """
    error = f"Limit must be a number between {SEARCH_MIN_LIMIT} and {SEARCH_MAX_LIMIT}"
    if value is None or value == "":
        return True, SEARCH_DEFAULT_LIMIT, None
    try:
        limit = int(value.strip())
    except ValueError:
        return False, None, error
    if limit < SEARCH_MIN_LIMIT or limit > SEARCH_MAX_LIMIT:
        return False, None, error
    return True, limit, None


def validate_offset(value: str | None) -> tuple[bool, int | None, str | None]:
    """
    Validate result offset.

    Examples:
        >>> validate_offset("5")
        (True, 5, None)
        >>> validate_offset("-1")
        (False, None, "Offset must be a non-negative number")
    """
    error = "Offset must be a non-negative number"
    if value is None or value == "":
        return True, SEARCH_DEFAULT_OFFSET, None
    try:
        offset = int(value.strip())
    except ValueError:
        return False, None, error
    if offset < 0:
        return False, None, error
    return True, offset, None


def validate_query(value: str | None) -> tuple[bool, str | None, str | None]:
    """Validate a required free-text search query."""
    if not value or not value.strip():
        return False, None, "Search query is required"
    return True, value.strip(), None


def validate_hex(value: str | None) -> tuple[bool, str | None, str | None]:
    """
    Validate a hex hash and normalize it (lowercase, no 0x).

    Examples:
        >>> validate_hex("0xABCD")
        (True, "abcd", None)
        >>> validate_hex("xyz")
        (False, None, "Valid hexadecimal hash is required")
    """
    if not is_valid_hex(value):
        return False, None, "Valid hexadecimal hash is required"
    return True, normalize_hex(value), None


def validate_fragments(value: str | None) -> tuple[bool, list[str] | None, str | None]:
    """
    Validate a comma or whitespace separated fragment list.

    Examples:
        >>> validate_fragments("06E3, 13d0")
        (True, ["06e3", "13d0"], None)
    """
    if not value or not value.strip():
        return False, None, "Address fragments are required (comma or space separated)"
    fragments = [f.lower() for f in _FRAGMENT_SPLIT_RE.split(value) if f]
    if not fragments:
        return False, None, "At least one address fragment is required"
    return True, fragments, None


def validate_chain(value: str | None) -> tuple[bool, str | None, str | None]:
    """Validate an optional single chain identifier."""
    if value is None or value == "":
        return True, None, None
    chain = value.strip().lower()
    if not _CHAIN_RE.match(chain):
        return False, None, f"Invalid blockchain: {value}"
    return True, chain, None


def validate_chains(value: str | None) -> tuple[bool, tuple[str, ...] | None, str | None]:
    """
    Validate an optional comma separated chain list.

    Examples:
        >>> validate_chains("ethereum,bitcoin")
        (True, ("ethereum", "bitcoin"), None)
        >>> validate_chains(None)
        (True, None, None)
    """
    if value is None or value == "":
        return True, None, None
    chains = []
    for part in value.split(","):
        if not part.strip():
            continue
        is_valid, chain, error = validate_chain(part)
        if not is_valid:
            return False, None, error
        chains.append(chain)
    if not chains:
        return True, None, None
    return True, tuple(dict.fromkeys(chains)), None


def validate_entity_type(value: str | None) -> tuple[bool, str | None, str | None]:
    """Validate an optional entity type (block, transaction, address)."""
    if value is None or value == "":
        return True, None, None
    entity_type = value.strip().lower()
    if entity_type not in DETAIL_PROBE_ORDER:
        return False, None, f"Type must be one of: {', '.join(DETAIL_PROBE_ORDER)}"
    return True, entity_type, None


def validate_exact_flag(value: str | None) -> tuple[bool, bool | None, str | None]:
    """
    Validate the exact match flag.

    Missing means "decide from the pattern count" (None).
    """
    if value is None or value == "":
        return True, None, None
    flag = value.strip().lower()
    if flag in ("true", "1", "yes"):
        return True, True, None
    if flag in ("false", "0", "no"):
        return True, False, None
    return False, None, "Exact must be true or false"
