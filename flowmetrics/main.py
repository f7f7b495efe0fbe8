import argparse
import asyncio
import sys

from loguru import logger

from flowmetrics.core.config import Settings, get_settings
from flowmetrics.core.constants import CheckpointBackend, OutputTable
from flowmetrics.core.exceptions.base import AppException
from flowmetrics.core.exceptions.domain import ConfigurationError
from flowmetrics.core.interfaces import CheckpointStore
from flowmetrics.core.logger import setup_logger
from flowmetrics.models.db import create_session_factory, get_engine, init_db
from flowmetrics.schemas.workflow import WorkflowConfig
from flowmetrics.services.checkpoint import DatabaseCheckpointStore, RedisCheckpointStore
from flowmetrics.services.cost_attributor import CostAttributor
from flowmetrics.services.directory import RateTable, SquadDirectory, UsernameDirectory
from flowmetrics.services.export import export_table
from flowmetrics.services.extraction import IssueExtractor
from flowmetrics.services.ingestion import IngestionController
from flowmetrics.services.jira_client import JiraClient
from flowmetrics.services.stores import DatabaseRecordStore, DatabaseRowSink
from flowmetrics.utils.categories import CategoryMap
from flowmetrics.utils.hierarchy import TypeLabels
from flowmetrics.utils.metrics import ElapsedHoursCalendar


async def _open_database(settings: Settings):
    settings.db_directory.mkdir(parents=True, exist_ok=True)
    engine = get_engine()
    await init_db(engine)
    return create_session_factory(engine)


def _checkpoint_store(settings: Settings, session_factory) -> CheckpointStore:
    if settings.checkpoint_backend == CheckpointBackend.REDIS:
        return RedisCheckpointStore(settings.redis_url)
    return DatabaseCheckpointStore(session_factory)


def build_controller(
    settings: Settings,
    workflow: WorkflowConfig,
    session_factory,
) -> tuple[IngestionController, JiraClient]:
    if not (settings.jira_url and settings.jira_email and settings.jira_api_token):
        raise ConfigurationError("JIRA_URL, JIRA_EMAIL and JIRA_API_TOKEN must be set")

    client = JiraClient(
        settings.jira_url,
        settings.jira_email,
        settings.jira_api_token,
        api_version=settings.jira_api_version,
        custom_fields=[settings.story_points_field, settings.tester_field, settings.designer_field],
        proxy_url=settings.proxy_url,
    )
    extractor = IssueExtractor(
        CategoryMap.from_entries(workflow.status_map),
        ElapsedHoursCalendar(),
        UsernameDirectory(workflow.user_dictionary),
        SquadDirectory(workflow.squads),
        story_points_field=settings.story_points_field,
        tester_field=settings.tester_field,
        designer_field=settings.designer_field,
    )
    controller = IngestionController(
        client,
        _checkpoint_store(settings, session_factory),
        DatabaseRecordStore(session_factory),
        DatabaseRowSink(session_factory, OutputTable.WORKING_SET),
        DatabaseRowSink(session_factory, OutputTable.CHANGELOG),
        extractor,
        workflow.jql,
        page_size=settings.page_size,
        batch_budget=settings.batch_budget,
        write_batch_size=settings.write_batch_size,
        checkpoint_key=settings.checkpoint_key,
    )
    return controller, client


async def _ingest(settings: Settings, command: str) -> int:
    workflow = WorkflowConfig.from_file(settings.workflow_config_path)
    session_factory = await _open_database(settings)
    controller, client = build_controller(settings, workflow, session_factory)

    try:
        if command == "reset":
            checkpoint = await controller.reset()
            logger.info(f"Checkpoint: {checkpoint.model_dump_json()}")
            return 0
        if command == "status":
            checkpoint = await controller.status()
            print(checkpoint.model_dump_json(indent=2))
            return 0

        result = await controller.run_once()
        logger.info(f"Invocation result: {result.model_dump_json()}")
        return 0 if result.ok else 1
    finally:
        await client.close()


async def _costs(settings: Settings) -> int:
    workflow = WorkflowConfig.from_file(settings.workflow_config_path)
    session_factory = await _open_database(settings)
    attributor = CostAttributor(
        RateTable(workflow.income_weights, settings.hourly_rate_divisor),
        TypeLabels(workflow.level_aliases, workflow.item_type_aliases),
    )
    await attributor.write(
        DatabaseRowSink(session_factory, OutputTable.WORKING_SET),
        DatabaseRowSink(session_factory, OutputTable.OP_COST),
    )
    return 0


async def _export(settings: Settings, table: OutputTable, output: str) -> int:
    session_factory = await _open_database(settings)
    count = await export_table(table, DatabaseRowSink(session_factory, table), output)
    logger.info(f"Exported {count} {table} rows to {output}")
    return 0


async def _dispatch(settings: Settings, args: argparse.Namespace) -> int:
    try:
        if args.command in ("run", "reset", "status"):
            return await _ingest(settings, args.command)
        if args.command == "costs":
            return await _costs(settings)
        return await _export(settings, OutputTable(args.table), args.output)
    finally:
        await get_engine().dispose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="flowmetrics",
        description="Resumable Jira ingestion and process metrics (run it from a scheduler).",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Perform one bounded unit of ingestion work")
    sub.add_parser("reset", help="Restart the ingestion job from scratch")
    sub.add_parser("status", help="Print the current checkpoint")
    sub.add_parser("costs", help="Rebuild the operational cost table from the working set")

    export = sub.add_parser("export", help="Export an output table to CSV")
    export.add_argument("table", choices=[t.value for t in OutputTable])
    export.add_argument("output", help="Destination CSV path")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logger(debug=settings.debug, log_file=settings.log_file)

    try:
        return asyncio.run(_dispatch(settings, args))
    except AppException as e:
        logger.error(e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
