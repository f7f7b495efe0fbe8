"""Tests for the Redis checkpoint store, using an in-memory stand-in client."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from flowmetrics.core.exceptions.domain import PersistenceFailure
from flowmetrics.services.checkpoint import MemoryCheckpointStore, RedisCheckpointStore


class FakeRedis:
    def __init__(self, data: dict, fail: bool = False):
        self.data = data
        self.fail = fail
        self.closed = False

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("redis is down")
        return self.data.get(key)

    async def set(self, key, value):
        if self.fail:
            raise RedisConnectionError("redis is down")
        self.data[key] = value

    async def aclose(self):
        self.closed = True


@pytest.fixture
def redis_data():
    return {}


@pytest.fixture
def clients():
    return []


@pytest.fixture
def store(monkeypatch, redis_data, clients):
    store = RedisCheckpointStore("redis://localhost:6379/0")

    def fake_client():
        client = FakeRedis(redis_data)
        clients.append(client)
        return client

    monkeypatch.setattr(store, "_get_client", fake_client)
    return store


class TestRedisCheckpointStore:
    async def test_values_are_namespaced(self, store, redis_data):
        await store.set("jira_ingestion", "{}")

        assert redis_data == {"flowmetrics:jira_ingestion": "{}"}
        assert await store.get("jira_ingestion") == "{}"
        assert await store.get("missing") is None

    async def test_clients_are_closed(self, store, clients):
        await store.set("jira_ingestion", "{}")
        await store.get("jira_ingestion")

        assert len(clients) == 2
        assert all(c.closed for c in clients)

    async def test_redis_errors_become_persistence_failures(self, monkeypatch):
        store = RedisCheckpointStore("redis://localhost:6379/0")
        monkeypatch.setattr(store, "_get_client", lambda: FakeRedis({}, fail=True))

        with pytest.raises(PersistenceFailure):
            await store.get("jira_ingestion")
        with pytest.raises(PersistenceFailure):
            await store.set("jira_ingestion", "{}")


async def test_memory_store_starts_from_initial_values():
    store = MemoryCheckpointStore({"k": "v"})

    assert await store.get("k") == "v"
    await store.set("k", "w")
    assert store.values == {"k": "w"}
