from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowmetrics.models.job_state import JobState
from flowmetrics.repos.base import BaseRepository


class JobStateRepo(BaseRepository[JobState]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, JobState)

    async def get_by_key(self, key: str) -> JobState | None:
        stmt = select(JobState).where(JobState.key == key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, key: str, value: str, *, auto_commit: bool = True) -> JobState:
        existing = await self.get_by_key(key)
        if existing:
            existing.value = value
        else:
            existing = JobState(key=key, value=value)
            self.session.add(existing)
        if auto_commit:
            await self.session.commit()
        return existing
