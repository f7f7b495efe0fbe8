from collections.abc import Iterable, Sequence

from flowmetrics.core.constants import DURATION_CATEGORIES, TOOL_NAME, WORKING_SET_COLUMNS
from flowmetrics.schemas.issue_record import IssueRecord
from flowmetrics.utils.dates import format_timestamp


def format_number(value: float | int | None) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        value = round(value, 2)
        if value.is_integer():
            return str(int(value))
    return str(value)


def parse_number(value: str | None) -> float | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def flatten_record(record: IssueRecord) -> list[str]:
    """Render a record as the 33-column working-set row (empty string for absent values)."""
    metrics = record.metrics
    row = [
        record.project_key or "",
        record.issue_type or "",
        record.squad or "",
        record.key,
        format_number(record.story_points),
        ", ".join(record.labels),
        ", ".join(record.components),
        record.parent or "",
        record.parent_summary or "",
        record.priority or "",
        format_timestamp(record.created_at),
        format_timestamp(metrics.started_at),
        format_timestamp(metrics.done_at),
        format_number(metrics.reaction_time),
        format_number(metrics.cycle_time),
        format_number(metrics.lead_time),
        format_timestamp(metrics.restarted_at),
    ]
    row.extend(format_number(metrics.category_times.get(c)) for c in DURATION_CATEGORIES)
    row.extend(
        [
            record.assignee or "",
            record.tester or "",
            record.designer or "",
            format_number(record.original_estimate),
        ]
    )
    return row


def parse_working_set_row(values: Sequence[str]) -> dict[str, str]:
    """Map a stored working-set row back to column names; short rows are padded."""
    padded = list(values) + [""] * (len(WORKING_SET_COLUMNS) - len(values))
    return {column: (padded[i] or "") for i, column in enumerate(WORKING_SET_COLUMNS)}


def changelog_rows(records: Iterable[IssueRecord]) -> list[list[str]]:
    """One creation row per issue followed by one row per status transition."""
    rows: list[list[str]] = []
    for record in records:
        issue_id = f"{TOOL_NAME}-{record.key}"
        project = f"{record.project_key or ''} | {record.project_name or ''}"
        issue_type = record.issue_type or "item"
        squad = record.squad or ""

        rows.append(
            [
                issue_id,
                format_timestamp(record.created_at),
                TOOL_NAME,
                project,
                squad,
                record.reporter or "",
                f"{issue_type} created",
                f"item {record.key} created by {record.reporter or 'unknown'}",
            ]
        )
        for transition in record.transitions:
            rows.append(
                [
                    issue_id,
                    format_timestamp(transition.date),
                    TOOL_NAME,
                    project,
                    squad,
                    transition.user_name or "",
                    f"{issue_type} moved",
                    f"item {issue_id} moved to: {transition.to}",
                ]
            )
    return rows
