"""Collaborator contracts consumed by the ingestion and cost attribution services."""

from typing import Protocol

from flowmetrics.schemas.issue_record import IssueRecord
from flowmetrics.schemas.jira.issue import JiraSearchResponse


class IssueSource(Protocol):
    async def search(self, query: str, offset: int, page_size: int) -> JiraSearchResponse:
        """One page of the tracked universe; ``page_size=0`` returns only the total."""
        ...


class CheckpointStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class RecordStore(Protocol):
    async def append_rows(self, records: list[IssueRecord]) -> None: ...

    async def read_all(self) -> list[IssueRecord]: ...

    async def clear(self) -> None: ...


class RowSink(Protocol):
    async def write_rows(self, start_row: int, rows: list[list]) -> None: ...

    async def read_all(self) -> list[list]: ...
