from pydantic import BaseModel, ConfigDict, Field

from flowmetrics.schemas.jira.user import JiraUser


class JiraChangeItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    field: str
    fieldtype: str | None = None
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    fromString: str | None = None
    toString: str | None = None


class JiraChangelogEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    author: JiraUser | None = None
    created: str | None = None  # ISO datetime
    items: list[JiraChangeItem] = []

    def get_status_changes(self) -> list[JiraChangeItem]:
        """Filter changelog items to only status transitions."""
        return [item for item in self.items if item.field == "status"]


class JiraChangelog(BaseModel):
    """Changelog as embedded in a search result with ``expand=changelog``."""

    model_config = ConfigDict(extra="allow")

    histories: list[JiraChangelogEntry] = []
    maxResults: int = 0
    startAt: int = 0
    total: int = 0
