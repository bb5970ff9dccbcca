"""
Application constants.

Centralized constants for the application.
"""

# ========================================================================
# CHAIN IDENTIFIERS
# ========================================================================

ETHEREUM = "ethereum"
BITCOIN = "bitcoin"

SUPPORTED_CHAIN_FAMILIES = (ETHEREUM, BITCOIN)

# ========================================================================
# ENTITY KINDS
# ========================================================================

ENTITY_BLOCK = "Block"
ENTITY_TRANSACTION = "Transaction"
ENTITY_ADDRESS = "Address"

# Detail lookup probe order when no type is given
DETAIL_PROBE_ORDER = ("block", "transaction", "address")

# ========================================================================
# QUERY LIMITS
# ========================================================================

SEARCH_MIN_LIMIT = 1
SEARCH_MAX_LIMIT = 100
SEARCH_DEFAULT_LIMIT = 10
SEARCH_DEFAULT_OFFSET = 0

# ========================================================================
# CACHE KEYS
# ========================================================================

CACHE_PREFIX_SEARCH = "search"
CACHE_PREFIX_DETAILS = "details"
CACHE_PREFIX_CROSS_CHAIN = "cross-chain"

# ========================================================================
# POLLER DEFAULTS
# ========================================================================

POLLER_BASE_DELAY = 0.5  # Minimum spacing between RPC requests (seconds)
POLLER_MAX_DELAY = 2.0  # Backoff ceiling (seconds)
POLLER_DELAY_MULTIPLIER = 2.0  # Applied on every throttling error
POLLER_MAX_RATE_LIMIT_RETRIES = 5  # Per block, before it is skipped

# Substrings that identify a provider throttling response
RATE_LIMIT_MARKERS = ("too many requests", "rate limit", "429")

# RPC operation timeouts (in seconds)
RPC_TIMEOUT = 30.0
QUERY_TIMEOUT = 15.0
