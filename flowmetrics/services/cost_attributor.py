from collections.abc import Sequence

from loguru import logger

from flowmetrics.core.constants import COST_ITEM_TYPES
from flowmetrics.core.interfaces import RowSink
from flowmetrics.schemas.hierarchy import HierarchyNode
from flowmetrics.services.directory import RateTable
from flowmetrics.utils.hierarchy import TypeLabels, resolve_ancestors
from flowmetrics.utils.rows import parse_number, parse_working_set_row


def build_hierarchy(rows: Sequence[dict[str, str]]) -> dict[str, HierarchyNode]:
    """Index working-set rows by key as parent-pointer nodes."""
    nodes: dict[str, HierarchyNode] = {}
    for row in rows:
        key = row["key"]
        if not key:
            continue
        nodes[key] = HierarchyNode(
            key=key,
            type_label=row["issue_type"],
            parent_key=row["parent"] or None,
        )
    return nodes


class CostAttributor:
    """Turns working-set rows into operational cost rows rolled up the issue hierarchy."""

    def __init__(self, rates: RateTable, labels: TypeLabels | None = None):
        self.rates = rates
        self.labels = labels or TypeLabels()

    def is_eligible(self, row: dict[str, str]) -> bool:
        """Tasks, subtasks and bugs with an assignee and either a cycle time or an estimate."""
        item_type = self.labels.item_type_of(row["issue_type"])
        if item_type not in COST_ITEM_TYPES:
            return False
        if not row["assignee"]:
            return False
        return bool(row["cycle_time"] or row["original_estimate"])

    def attribute(self, working_set: Sequence[Sequence[str]]) -> list[list]:
        rows = [parse_working_set_row(values) for values in working_set]
        nodes = build_hierarchy(rows)

        cost_rows: list[list] = []
        for row in rows:
            if not self.is_eligible(row):
                continue

            item_type = self.labels.item_type_of(row["issue_type"])
            ancestors = resolve_ancestors(nodes, row["key"], self.labels)
            estimate = parse_number(row["original_estimate"])
            cycle_time = parse_number(row["cycle_time"])

            epic = ancestors.epic if item_type in ("task", "bug") else None
            story = ancestors.story if item_type == "subtask" else None

            estimated_cost: float | str = ""
            actual_cost: float | str = ""
            hourly_rate = self.rates.hourly_rate(row["assignee"])
            if hourly_rate > 0:
                if estimate is not None:
                    estimated_cost = hourly_rate * estimate
                if cycle_time is not None:
                    actual_cost = hourly_rate * cycle_time

            cost_rows.append(
                [
                    ancestors.objective or "",
                    ancestors.key_result or "",
                    ancestors.initiative or "",
                    epic or "",
                    story or "",
                    row["key"],
                    row["squad"],
                    row["assignee"],
                    item_type,
                    item_type == "bug",
                    row["started"],
                    row["done"],
                    estimate if estimate is not None else "",
                    cycle_time if cycle_time is not None else "",
                    estimated_cost,
                    actual_cost,
                ]
            )

        return cost_rows

    async def write(self, working_set: RowSink, op_cost: RowSink) -> int:
        """Read the stored working set and replace the op cost table. Returns rows written."""
        cost_rows = self.attribute(await working_set.read_all())
        logger.info(f"Writing {len(cost_rows)} rows to operational cost table.")
        await op_cost.write_rows(0, cost_rows)
        return len(cost_rows)
