from enum import StrEnum


class FieldSizes:
    TINY = 20
    SHORT = 50
    MEDIUM = 255
    LONG = 500


class Stage(StrEnum):
    FETCHING = "fetching"
    WRITING_WORKING_SET = "writing_working_set"
    WRITING_CHANGELOG = "writing_changelog"
    DONE = "done"


STAGE_ORDER: tuple[Stage, ...] = (
    Stage.FETCHING,
    Stage.WRITING_WORKING_SET,
    Stage.WRITING_CHANGELOG,
    Stage.DONE,
)


class OutputTable(StrEnum):
    WORKING_SET = "working_set"
    CHANGELOG = "changelog"
    OP_COST = "op_cost"


class CheckpointBackend(StrEnum):
    DATABASE = "database"
    REDIS = "redis"


# ─── Workflow categories ──────────────────────────────────────────────

BACKLOG_CATEGORY = "backlog_time"
IN_PROGRESS_CATEGORY = "in_progress_time"
DONE_CATEGORY = "done_time"

DURATION_CATEGORIES: tuple[str, ...] = (
    "backlog_time",
    "ready_to_start_time",
    "in_progress_time",
    "code_review_time",
    "waiting_qa_time",
    "qa_time",
    "ready_to_staging_time",
    "regression_time",
    "ready_to_deploy_time",
    "ready_for_version_time",
    "distribute_process_time",
    "done_time",
)

# ─── Hierarchy levels & item types ────────────────────────────────────

# Keys are lowercase issue type names as they come from Jira
DEFAULT_LEVEL_ALIASES: dict[str, str] = {
    "epic": "epic",
    "épico": "epic",
    "story": "story",
    "história": "story",
    "historia": "story",
    "initiative": "initiative",
    "iniciativa": "initiative",
    "key result": "key_result",
    "key-result": "key_result",
    "resultado chave": "key_result",
    "objective": "objective",
    "objetivo": "objective",
}

DEFAULT_ITEM_TYPE_ALIASES: dict[str, str] = {
    "task": "task",
    "tarefa": "task",
    "subtask": "subtask",
    "sub-task": "subtask",
    "subtarefa": "subtask",
    "bug": "bug",
    "story": "story",
    "história": "story",
    "historia": "story",
}

COST_ITEM_TYPES: frozenset[str] = frozenset({"task", "subtask", "bug"})

# ─── Output layouts ───────────────────────────────────────────────────

WORKING_SET_COLUMNS: tuple[str, ...] = (
    "project_key",
    "issue_type",
    "squad",
    "key",
    "story_points",
    "labels",
    "components",
    "parent",
    "parent_summary",
    "priority",
    "created",
    "started",
    "done",
    "reaction_time",
    "cycle_time",
    "lead_time",
    "restarted",
    *DURATION_CATEGORIES,
    "assignee",
    "tester",
    "designer",
    "original_estimate",
)

CHANGELOG_COLUMNS: tuple[str, ...] = (
    "issue",
    "date",
    "tool",
    "project",
    "squad",
    "author",
    "action",
    "detail",
)

COST_COLUMNS: tuple[str, ...] = (
    "objective",
    "key_result",
    "initiative",
    "epic",
    "story",
    "key",
    "squad",
    "assignee",
    "item_type",
    "opex",
    "started",
    "done",
    "original_estimate",
    "cycle_time",
    "estimated_cost",
    "actual_cost",
)

OUTPUT_COLUMNS: dict[OutputTable, tuple[str, ...]] = {
    OutputTable.WORKING_SET: WORKING_SET_COLUMNS,
    OutputTable.CHANGELOG: CHANGELOG_COLUMNS,
    OutputTable.OP_COST: COST_COLUMNS,
}

TOOL_NAME = "jira"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
