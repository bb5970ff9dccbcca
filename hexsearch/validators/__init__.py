"""
Query parameter validators.

Each validator returns a tuple of (is_valid, parsed_value, error_message).
"""

from hexsearch.validators.common import (
    validate_chain,
    validate_chains,
    validate_entity_type,
    validate_exact_flag,
    validate_fragments,
    validate_hex,
    validate_limit,
    validate_offset,
    validate_query,
)

__all__ = [
    "validate_chain",
    "validate_chains",
    "validate_entity_type",
    "validate_exact_flag",
    "validate_fragments",
    "validate_hex",
    "validate_limit",
    "validate_offset",
    "validate_query",
]
