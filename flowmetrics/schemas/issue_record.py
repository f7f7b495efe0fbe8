from datetime import datetime

from pydantic import Field

from flowmetrics.schemas.base import BaseSchema


class StatusEvent(BaseSchema):
    """A single status change extracted from an issue's changelog."""

    from_status: str | None = None
    to_status: str | None = None
    occurred_at: datetime
    from_name: str | None = None
    to_name: str | None = None
    author: str | None = None
    author_active: bool = True


class StatusInterval(BaseSchema):
    """Half-open range ``[started_at, ended_at)`` during which an issue held a category."""

    category: str
    started_at: datetime
    ended_at: datetime


class IssueMetrics(BaseSchema):
    category_times: dict[str, float] = Field(default_factory=dict)
    started_at: datetime | None = None
    done_at: datetime | None = None
    restarted_at: datetime | None = None
    reaction_time: float | None = None
    lead_time: float | None = None
    cycle_time: float | None = None


class Transition(BaseSchema):
    """Status transition as written to the changelog output."""

    to: str
    date: datetime
    user_name: str | None = None
    is_active_user: bool = True


class IssueRecord(BaseSchema):
    """Normalized per-issue record persisted between ingestion stages."""

    id: str | None = None
    key: str
    project_key: str | None = None
    project_name: str | None = None
    issue_type: str | None = None
    squad: str | None = None
    story_points: float | None = None
    labels: list[str] = Field(default_factory=list)
    components: list[str] = Field(default_factory=list)
    parent: str | None = None
    parent_summary: str | None = None
    priority: str | None = None
    created_at: datetime | None = None
    reporter: str | None = None
    assignee: str | None = None
    tester: str | None = None
    designer: str | None = None
    original_estimate: int | None = None  # hours, rounded up
    metrics: IssueMetrics = Field(default_factory=IssueMetrics)
    transitions: list[Transition] = Field(default_factory=list)
