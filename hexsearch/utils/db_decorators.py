"""
Store error decorators.

Translate SQLAlchemy failures raised inside service methods into
StoreError so callers only need to know about hexsearch exceptions.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from hexsearch.utils.exceptions import StoreError


T = TypeVar("T")


def wraps_store_errors(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that re-raises SQLAlchemy errors as StoreError.

    Usage:
        @wraps_store_errors
        async def find_something(self, ...):
            async with self.session_factory() as session:
                ...

    Rollback is left to the session context manager of the wrapped
    function. The original exception is chained for debugging.

    Args:
        func: Async function to wrap

    Returns:
        Wrapped function
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"[Store] {func.__name__} failed: {type(e).__name__}: {e}")
            raise StoreError(f"{func.__name__} failed: {e}") from e

    return wrapper
