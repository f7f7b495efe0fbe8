from pydantic import BaseModel, ConfigDict


class JiraUser(BaseModel):
    """Jira user as embedded in issues and changelog entries (assignee, reporter, author)."""

    model_config = ConfigDict(extra="allow")

    accountId: str | None = None
    displayName: str | None = None
    emailAddress: str | None = None
    active: bool = True
