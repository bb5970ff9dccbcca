"""
Timeout helpers.

Bounds RPC calls and per-request store fan-out with asyncio deadlines.
"""

import asyncio
from typing import Any

from loguru import logger

from hexsearch.config.constants import QUERY_TIMEOUT
from hexsearch.utils.exceptions import HexSearchError, QueryTimeoutError


async def with_timeout(
    coro: Any,
    timeout: float = QUERY_TIMEOUT,
    operation_name: str = "query",
    error_cls: type[HexSearchError] = QueryTimeoutError,
) -> Any:
    """
    Execute async coroutine with timeout.

    On expiry the coroutine is cancelled, which cancels any sibling
    queries it is gathering. Other requests are unaffected.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds
        operation_name: Operation name for logging
        error_cls: Exception raised on expiry

    Returns:
        Result of the coroutine

    Raises:
        error_cls: If operation times out
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError as e:
        error_msg = f"{operation_name} timed out after {timeout}s"
        logger.error(error_msg)
        raise error_cls(error_msg) from e
