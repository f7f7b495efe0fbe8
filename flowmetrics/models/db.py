from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from flowmetrics.core.config import get_settings
from flowmetrics.models.base import Base


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return create_async_engine(
        settings.db_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that don't exist yet."""
    from flowmetrics.models.job_state import JobState  # noqa: F401
    from flowmetrics.models.output_row import OutputRow  # noqa: F401
    from flowmetrics.models.stored_issue import StoredIssue  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
