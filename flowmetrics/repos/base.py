from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from flowmetrics.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic repository with async read and delete helpers."""

    def __init__(self, session: AsyncSession, model: type[ModelType]):
        self.session = session
        self.model = model

    async def get_all(
        self,
        *,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[ModelType]:
        """Get all records in insertion order, optionally paginated."""
        stmt = select(self.model).order_by(self.model.id).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_where(self, *criteria: Any, auto_commit: bool = True) -> int:
        """Delete records matching the given criteria (all records if none). Returns count deleted."""
        stmt = delete(self.model).where(*criteria)
        result = await self.session.execute(stmt)
        if auto_commit:
            await self.session.commit()
        return result.rowcount  # type: ignore
