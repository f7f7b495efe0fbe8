from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowmetrics.core.exceptions.domain import PersistenceFailure
from flowmetrics.repos.output_row import OutputRowRepo
from flowmetrics.repos.stored_issue import StoredIssueRepo
from flowmetrics.schemas.issue_record import IssueRecord


class DatabaseRecordStore:
    """Issue records in SQLite, upserted by issue key so replayed pages don't duplicate."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append_rows(self, records: list[IssueRecord]) -> None:
        try:
            async with self._session_factory() as session:
                await StoredIssueRepo(session).upsert_many(records)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to store {len(records)} issue records: {e}") from e

    async def read_all(self) -> list[IssueRecord]:
        try:
            async with self._session_factory() as session:
                return await StoredIssueRepo(session).read_records()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to read issue records: {e}") from e

    async def clear(self) -> None:
        try:
            async with self._session_factory() as session:
                await StoredIssueRepo(session).delete_where()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to clear issue records: {e}") from e


class DatabaseRowSink:
    """One named output table stored as rows of JSON cells."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], table_name: str):
        self._session_factory = session_factory
        self.table_name = table_name

    async def write_rows(self, start_row: int, rows: list[list]) -> None:
        try:
            async with self._session_factory() as session:
                await OutputRowRepo(session, self.table_name).write_rows(start_row, rows)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to write {self.table_name} rows: {e}") from e

    async def read_all(self) -> list[list]:
        try:
            async with self._session_factory() as session:
                return await OutputRowRepo(session, self.table_name).read_rows()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to read {self.table_name} rows: {e}") from e


class MemoryRecordStore:
    def __init__(self):
        self._records: dict[str, IssueRecord] = {}

    async def append_rows(self, records: list[IssueRecord]) -> None:
        for record in records:
            self._records[record.key] = record

    async def read_all(self) -> list[IssueRecord]:
        return list(self._records.values())

    async def clear(self) -> None:
        self._records.clear()


class MemoryRowSink:
    def __init__(self):
        self.rows: list[list] = []

    async def write_rows(self, start_row: int, rows: list[list]) -> None:
        del self.rows[start_row:]
        self.rows.extend(list(r) for r in rows)

    async def read_all(self) -> list[list]:
        return [list(r) for r in self.rows]
