from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowmetrics.models.stored_issue import StoredIssue
from flowmetrics.repos.base import BaseRepository
from flowmetrics.schemas.issue_record import IssueRecord


class StoredIssueRepo(BaseRepository[StoredIssue]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, StoredIssue)

    async def get_by_keys(self, keys: list[str]) -> dict[str, StoredIssue]:
        stmt = select(StoredIssue).where(StoredIssue.issue_key.in_(keys))
        result = await self.session.execute(stmt)
        return {row.issue_key: row for row in result.scalars().all()}

    async def upsert_many(self, records: list[IssueRecord], *, auto_commit: bool = True) -> int:
        """Insert or replace records by issue key. A replayed page keeps its original position."""
        existing = await self.get_by_keys([r.key for r in records])
        for record in records:
            payload = record.model_dump(mode="json")
            stored = existing.get(record.key)
            if stored:
                stored.payload = payload
            else:
                stored = StoredIssue(issue_key=record.key, payload=payload)
                self.session.add(stored)
                existing[record.key] = stored

        if auto_commit:
            await self.session.commit()
        return len(records)

    async def read_records(self) -> list[IssueRecord]:
        return [IssueRecord.model_validate(row.payload) for row in await self.get_all()]
