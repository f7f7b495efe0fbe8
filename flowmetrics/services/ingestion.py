from datetime import datetime, timezone

from loguru import logger
from pydantic import ValidationError

from flowmetrics.core.constants import STAGE_ORDER, Stage
from flowmetrics.core.exceptions.base import AppException
from flowmetrics.core.exceptions.domain import PersistenceFailure
from flowmetrics.core.interfaces import CheckpointStore, IssueSource, RecordStore, RowSink
from flowmetrics.schemas.checkpoint import IngestionCheckpoint, InvocationResult
from flowmetrics.services.extraction import IssueExtractor
from flowmetrics.utils.rows import changelog_rows, flatten_record


class IngestionController:
    """Resumable, drift-detecting batch ingestion of a JQL result set.

    Every ``run_once`` call does one bounded unit of work for the current stage
    and persists its progress, so the job survives being invoked by a
    scheduler that may stop calling at any point:

    FETCHING → WRITING_WORKING_SET → WRITING_CHANGELOG → DONE

    When the total number of issues matching the query changes between calls,
    the job starts over from FETCHING with zeroed offsets.
    """

    def __init__(
        self,
        source: IssueSource,
        checkpoints: CheckpointStore,
        records: RecordStore,
        working_set: RowSink,
        changelog: RowSink,
        extractor: IssueExtractor,
        query: str,
        *,
        page_size: int = 100,
        batch_budget: int = 5000,
        write_batch_size: int = 2500,
        checkpoint_key: str = "jira_ingestion",
    ):
        self.source = source
        self.checkpoints = checkpoints
        self.records = records
        self.working_set = working_set
        self.changelog = changelog
        self.extractor = extractor
        self.query = query
        self.page_size = page_size
        self.batch_budget = batch_budget
        self.write_batch_size = write_batch_size
        self.checkpoint_key = checkpoint_key

    # ─── Checkpoint ───────────────────────────────────────────────────

    async def status(self) -> IngestionCheckpoint:
        """Current checkpoint (a fresh one if none was stored yet)."""
        raw = await self.checkpoints.get(self.checkpoint_key)
        if not raw:
            return IngestionCheckpoint()
        try:
            return IngestionCheckpoint.model_validate_json(raw)
        except ValidationError as e:
            raise PersistenceFailure(f"Stored checkpoint is corrupt: {e}") from e

    async def _save(self, checkpoint: IngestionCheckpoint) -> None:
        await self.checkpoints.set(self.checkpoint_key, checkpoint.model_dump_json())

    @staticmethod
    def _advance(checkpoint: IngestionCheckpoint) -> None:
        index = STAGE_ORDER.index(checkpoint.stage)
        if index < len(STAGE_ORDER) - 1:
            checkpoint.stage = STAGE_ORDER[index + 1]
            logger.info(f"Ingestion advanced to stage {checkpoint.stage}")

    async def _probe_total(self) -> int:
        page = await self.source.search(self.query, 0, 0)
        return page.total

    async def reset(self, total: int | None = None) -> IngestionCheckpoint:
        """Start the job over: drop staged records, zero offsets, re-read the total."""
        logger.info("Resetting ingestion job...")
        if total is None:
            total = await self._probe_total()
        await self.records.clear()
        checkpoint = IngestionCheckpoint(
            total_item_count=total,
            remaining_item_count=total,
            stage=Stage.FETCHING,
        )
        await self._save(checkpoint)
        logger.info(f"The total number of items to grab is {total}")
        return checkpoint

    # ─── Invocation ───────────────────────────────────────────────────

    async def run_once(self) -> InvocationResult:
        """Perform one bounded unit of work. Errors are reported in the result, never raised."""
        try:
            checkpoint = await self.status()
        except AppException as e:
            logger.error(f"Cannot load checkpoint: {e.message}")
            return InvocationResult(stage_before=Stage.FETCHING, stage_after=Stage.FETCHING, error=e.message)

        result = InvocationResult(stage_before=checkpoint.stage, stage_after=checkpoint.stage)

        try:
            total = await self._probe_total()
            if total != checkpoint.total_item_count:
                logger.warning(
                    f"Drift detected: query now matches {total} items, checkpoint has "
                    f"{checkpoint.total_item_count}"
                )
                checkpoint = await self.reset(total)
                result.drift_detected = True

            if checkpoint.stage == Stage.FETCHING:
                await self._fetch(checkpoint, result)
            elif checkpoint.stage == Stage.WRITING_WORKING_SET:
                result.rows_written = await self._write_working_set(checkpoint)
            elif checkpoint.stage == Stage.WRITING_CHANGELOG:
                result.rows_written = await self._write_changelog(checkpoint)
            else:
                logger.info("Ingestion job is done; nothing to do until the data set changes")

        except AppException as e:
            logger.error(f"Invocation stopped in stage {checkpoint.stage}: {e.message}")
            result.error = e.message

        result.stage_after = checkpoint.stage
        return result

    # ─── Stages ───────────────────────────────────────────────────────

    async def _fetch(self, checkpoint: IngestionCheckpoint, result: InvocationResult) -> None:
        """Fetch pages until the budget is spent; ``result.items_fetched`` counts committed pages."""
        logger.info(
            f"Fetching next {self.batch_budget} items, starting at item {checkpoint.last_start_offset}..."
        )

        while checkpoint.remaining_item_count > 0 and result.items_fetched < self.batch_budget:
            page = await self.source.search(self.query, checkpoint.last_start_offset, self.page_size)
            if not page.issues:
                logger.info("No more data returned from Jira")
                break

            records = [self.extractor.extract(issue) for issue in page.issues]
            await self.records.append_rows(records)

            checkpoint.last_start_offset += len(records)
            checkpoint.remaining_item_count = max(0, checkpoint.remaining_item_count - len(records))
            await self._save(checkpoint)
            result.items_fetched += len(records)

        if checkpoint.remaining_item_count > 0:
            logger.info(
                f"{result.items_fetched} items fetched. Remaining items to be grabbed: "
                f"{checkpoint.remaining_item_count} from {checkpoint.total_item_count}"
            )
            return

        logger.info("All Jira data fetched and stored successfully.")
        self._advance(checkpoint)
        await self._save(checkpoint)

    async def _write_batch(
        self,
        checkpoint: IngestionCheckpoint,
        sink: RowSink,
        rows: list[list[str]],
        offset_field: str,
        name: str,
        *,
        stamp_write_date: bool = False,
    ) -> int:
        start = getattr(checkpoint, offset_field)
        batch = rows[start : start + self.write_batch_size]
        end = start + len(batch)
        logger.info(f"Writing {name} rows {start} to {end} of {len(rows)}")

        await sink.write_rows(start, batch)

        if end < len(rows):
            setattr(checkpoint, offset_field, end)
            logger.info(f"Batch written. {len(rows) - end} {name} rows remaining.")
        else:
            setattr(checkpoint, offset_field, 0)
            logger.info(f"{name} data written successfully")
            if stamp_write_date:
                checkpoint.last_write_at = datetime.now(timezone.utc)
            self._advance(checkpoint)

        await self._save(checkpoint)
        return len(batch)

    async def _write_working_set(self, checkpoint: IngestionCheckpoint) -> int:
        records = await self.records.read_all()
        rows = [flatten_record(r) for r in records]
        return await self._write_batch(
            checkpoint,
            self.working_set,
            rows,
            "working_set_last_row",
            "working set",
            stamp_write_date=True,
        )

    async def _write_changelog(self, checkpoint: IngestionCheckpoint) -> int:
        records = await self.records.read_all()
        return await self._write_batch(
            checkpoint, self.changelog, changelog_rows(records), "changelog_last_row", "changelog"
        )
