"""
Base repository.

Shared plumbing for the index repositories: the model/session pair,
row counting, and the dialect-specific INSERT used by every idempotent
write (ON CONFLICT DO NOTHING / DO UPDATE).
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from hexsearch.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)

# Dialects whose insert() construct supports on_conflict_* clauses
_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class BaseRepository(Generic[ModelType]):
    """
    Base repository bound to one model and one session.

    Repositories never commit; the owning service decides the
    transaction boundary.

    Example:
        class BlockRepository(ChainEntityRepository[Block]):
            def __init__(self, session: AsyncSession):
                super().__init__(Block, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def count(self, **filters: Any) -> int:
        """
        Count rows, optionally restricted by column equality.

        Args:
            **filters: Column filters, e.g. blockchain="ethereum"

        Returns:
            Number of matching rows
        """
        stmt = select(func.count()).select_from(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    def _insert(self):
        """
        INSERT construct for the session's dialect.

        Raises:
            NotImplementedError: If the dialect has no upsert support
        """
        dialect = self.session.bind.dialect.name
        try:
            return _UPSERT_DIALECTS[dialect](self.model)
        except KeyError:
            raise NotImplementedError(f"Upserts not supported for dialect {dialect}") from None

    async def insert_ignore(self, items: list[dict[str, Any]]) -> None:
        """
        Bulk insert, skipping rows whose primary key already exists.

        Args:
            items: Column dicts, one per row
        """
        if not items:
            return
        stmt = self._insert().values(items).on_conflict_do_nothing()
        await self.session.execute(stmt)
