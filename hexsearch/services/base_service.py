"""
Session-bound services.

A service wraps one AsyncSession for the duration of a unit of work.
Methods marked @transaction commit that unit on return and roll it back
on any exception.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseService:
    """Holds the session and a logger bound to the concrete service name."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(service=type(self).__name__)


def transaction(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Run a service method as one store transaction.

    Nested calls to other services sharing the same session join the
    transaction; only the decorated method commits.

    Example:
        class BlockWriter(BaseService):
            @transaction
            async def write_block(self, block):
                ...
    """

    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                f"{func.__name__} rolled back: {type(e).__name__}: {e}"
            )
            raise
        await self.session.commit()
        return result

    return wrapper
