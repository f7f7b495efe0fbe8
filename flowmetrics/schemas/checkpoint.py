from datetime import datetime

from flowmetrics.core.constants import Stage
from flowmetrics.schemas.base import BaseSchema


class IngestionCheckpoint(BaseSchema):
    """Durable ingestion progress, stored as a single JSON document."""

    total_item_count: int = 0
    remaining_item_count: int = 0
    last_start_offset: int = 0
    working_set_last_row: int = 0
    changelog_last_row: int = 0
    stage: Stage = Stage.FETCHING
    last_write_at: datetime | None = None


class InvocationResult(BaseSchema):
    """Outcome of one ``IngestionController.run_once`` call."""

    stage_before: Stage
    stage_after: Stage
    drift_detected: bool = False
    items_fetched: int = 0
    rows_written: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
