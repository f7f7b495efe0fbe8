from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from flowmetrics.schemas.jira.changelog import JiraChangelog
from flowmetrics.schemas.jira.user import JiraUser


class JiraProject(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str
    id: str | None = None
    name: str | None = None


class JiraIssueType(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    id: str | None = None
    subtask: bool = False


class JiraPriority(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    id: str | None = None


class JiraComponent(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    id: str | None = None


# ─── Parent ───────────────────────────────────────────────────────────


class JiraParentFields(BaseModel):
    model_config = ConfigDict(extra="allow")

    summary: str | None = None
    issuetype: JiraIssueType | None = None


class JiraParent(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    key: str
    fields: JiraParentFields | None = None


# ─── Issue Fields & Issue ─────────────────────────────────────────────


class JiraIssueFields(BaseModel):
    """Issue fields requested by the ingestion search. Custom fields land in extras."""

    model_config = ConfigDict(extra="allow")

    project: JiraProject | None = None
    issuetype: JiraIssueType | None = None
    created: str | None = None
    labels: list[str] = []
    priority: JiraPriority | None = None
    reporter: JiraUser | None = None
    assignee: JiraUser | None = None
    components: list[JiraComponent] = []
    parent: JiraParent | None = None
    timeoriginalestimate: int | None = None


class JiraIssue(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    key: str
    fields: JiraIssueFields
    changelog: JiraChangelog | None = None

    def get_custom_field(self, field_id: str | None) -> object | None:
        """Get a raw custom field value (stored in extras via ``extra="allow"``)."""
        if not field_id:
            return None
        return getattr(self.fields, field_id, None)

    def get_story_points(self, story_points_field: str | None) -> float | None:
        value = self.get_custom_field(story_points_field)
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    def get_user_field(self, field_id: str | None) -> JiraUser | None:
        """Get a user-picker custom field (tester, designer) as a ``JiraUser``."""
        value = self.get_custom_field(field_id)
        if isinstance(value, dict):
            return JiraUser.model_validate(value)
        return None


class JiraSearchResponse(BaseModel):
    """One page of ``/search`` results; ``maxResults=0`` returns only ``total``."""

    model_config = ConfigDict(extra="allow")

    issues: list[JiraIssue] = []
    startAt: int = 0
    maxResults: int = 0
    total: int = 0
