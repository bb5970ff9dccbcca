"""
Exception types.

Defines categorized exception types for proper error handling.
"""

from sqlalchemy.exc import SQLAlchemyError


class HexSearchError(Exception):
    """Base exception for all hexsearch errors."""
    pass


class ValidationError(HexSearchError):
    """Raised for invalid query parameters. Never reaches the store."""
    pass


class ProviderError(HexSearchError):
    """Raised when a chain RPC provider call fails."""
    pass


class RateLimitError(ProviderError):
    """Raised when a chain RPC provider signals request throttling."""
    pass


class StoreError(HexSearchError):
    """Raised when an index store read or write fails."""
    pass


class QueryTimeoutError(HexSearchError):
    """Raised when a request's store queries exceed their deadline."""
    pass


# Exception categories based on handling strategy

# Poller backs off and retries
TRANSIENT_PROVIDER_ERRORS = (
    RateLimitError,
)

# Logged by the poller, block skipped
MUST_LOG = (
    ProviderError,
    StoreError,
    SQLAlchemyError,
)


def is_rate_limited(exc: BaseException) -> bool:
    """
    Check if exception signals provider throttling.

    Args:
        exc: Exception to check

    Returns:
        True if the poller should back off
    """
    return isinstance(exc, TRANSIENT_PROVIDER_ERRORS)


def must_log(exc: BaseException) -> bool:
    """
    Check if exception must be logged and the pipeline continued.

    Args:
        exc: Exception to check

    Returns:
        True if exception is a recoverable ingestion failure
    """
    return isinstance(exc, MUST_LOG)
