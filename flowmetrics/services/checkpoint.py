import redis.asyncio as aioredis
from loguru import logger
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flowmetrics.core.exceptions.domain import PersistenceFailure
from flowmetrics.repos.job_state import JobStateRepo


class RedisCheckpointStore:
    """Checkpoint values in Redis under ``flowmetrics:<key>``. No TTL."""

    def __init__(self, redis_url: str, namespace: str = "flowmetrics"):
        self._redis_url = redis_url
        self._namespace = namespace

    def _get_client(self) -> aioredis.Redis:
        """Create a fresh Redis client each time to avoid event loop issues."""
        return aioredis.from_url(
            self._redis_url,
            decode_responses=True,
        )

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> str | None:
        try:
            client = self._get_client()
            try:
                return await client.get(self._key(key))
            finally:
                await client.aclose()
        except RedisError as e:
            logger.error(f"Redis get failed (key={key}): {e}")
            raise PersistenceFailure(f"Failed to read checkpoint '{key}' from Redis") from e

    async def set(self, key: str, value: str) -> None:
        try:
            client = self._get_client()
            try:
                await client.set(self._key(key), value)
            finally:
                await client.aclose()
        except RedisError as e:
            logger.error(f"Redis set failed (key={key}): {e}")
            raise PersistenceFailure(f"Failed to write checkpoint '{key}' to Redis") from e


class DatabaseCheckpointStore:
    """Checkpoint values in the ``job_state`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                state = await JobStateRepo(session).get_by_key(key)
                return state.value if state else None
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to read checkpoint '{key}': {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            async with self._session_factory() as session:
                await JobStateRepo(session).upsert(key, value)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to write checkpoint '{key}': {e}") from e


class MemoryCheckpointStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value
