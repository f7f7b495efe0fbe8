from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowmetrics.models.output_row import OutputRow
from flowmetrics.repos.base import BaseRepository


class OutputRowRepo(BaseRepository[OutputRow]):
    def __init__(self, session: AsyncSession, table_name: str):
        super().__init__(session, OutputRow)
        self.table_name = table_name

    async def clear_from(self, start_row: int, *, auto_commit: bool = True) -> int:
        """Delete every row at or after ``start_row``."""
        return await self.delete_where(
            OutputRow.table_name == self.table_name,
            OutputRow.row_index >= start_row,
            auto_commit=auto_commit,
        )

    async def write_rows(
        self,
        start_row: int,
        rows: list[list],
        *,
        auto_commit: bool = True,
    ) -> int:
        """Write ``rows`` at positions ``start_row, start_row + 1, ...``, replacing existing rows."""
        await self.clear_from(start_row, auto_commit=False)
        for offset, cells in enumerate(rows):
            self.session.add(
                OutputRow(table_name=self.table_name, row_index=start_row + offset, cells=list(cells))
            )
        if auto_commit:
            await self.session.commit()
        return len(rows)

    async def read_rows(self) -> list[list]:
        stmt = (
            select(OutputRow)
            .where(OutputRow.table_name == self.table_name)
            .order_by(OutputRow.row_index)
        )
        result = await self.session.execute(stmt)
        return [row.cells for row in result.scalars().all()]
