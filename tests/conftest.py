"""Shared fixtures for flowmetrics tests."""

from datetime import datetime, timedelta, timezone

import pytest

from flowmetrics.core.exceptions.domain import JiraConnectionError
from flowmetrics.schemas.jira.issue import JiraIssue, JiraSearchResponse
from flowmetrics.schemas.workflow import SquadMapping, StatusMapEntry
from flowmetrics.services.directory import SquadDirectory, UsernameDirectory
from flowmetrics.services.extraction import IssueExtractor
from flowmetrics.utils.categories import CategoryMap
from flowmetrics.utils.metrics import ElapsedHoursCalendar

BASE_TIME = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def at(hours: float) -> datetime:
    """Timestamp ``hours`` after the shared base time."""
    return BASE_TIME + timedelta(hours=hours)


def jira_ts(hours: float) -> str:
    """Same as ``at`` but formatted the way Jira returns timestamps."""
    return at(hours).strftime("%Y-%m-%dT%H:%M:%S.000+0000")


def history(entry_id: str, hours: float, from_id: str | None, to_id: str, to_name: str, author="Ana S."):
    return {
        "id": entry_id,
        "author": {"accountId": "a-1", "displayName": author, "active": True},
        "created": jira_ts(hours),
        "items": [
            {
                "field": "status",
                "fieldtype": "jira",
                "from": from_id,
                "fromString": None,
                "to": to_id,
                "toString": to_name,
            }
        ],
    }


def make_issue(key: str, *, project: str = "APP", issue_type: str = "Task", parent: str | None = None, histories=None):
    fields = {
        "project": {"id": "1", "key": project, "name": "Mobile App"},
        "issuetype": {"id": "10001", "name": issue_type},
        "created": jira_ts(0),
        "labels": [],
        "components": [],
        "assignee": {"accountId": "a-1", "displayName": "Ana S.", "active": True},
        "reporter": {"accountId": "b-1", "displayName": "Bruno", "active": True},
    }
    if parent:
        fields["parent"] = {"key": parent, "fields": {"summary": "Parent"}}
    return {
        "id": key.split("-")[-1],
        "key": key,
        "fields": fields,
        "changelog": {"histories": histories or []},
    }


@pytest.fixture
def status_map_entries():
    return [
        StatusMapEntry(status_id="10000", name="Backlog", category="backlog_time"),
        StatusMapEntry(status_id="3", name="In Progress", category="in_progress_time"),
        StatusMapEntry(status_id="10101", name="Code Review", category="code_review_time"),
        StatusMapEntry(status_id="10002", name="Done", category="done_time"),
        StatusMapEntry(status_id="1", name="Open", category=None),
    ]


@pytest.fixture
def category_map(status_map_entries):
    return CategoryMap.from_entries(status_map_entries)


@pytest.fixture
def users():
    return UsernameDirectory({"Ana S.": "Ana Silva", "bruno@example.com": "Bruno Costa"})


@pytest.fixture
def squads():
    return SquadDirectory([SquadMapping(project_key="APP", squad="Mobile")])


@pytest.fixture
def extractor(category_map, users, squads):
    return IssueExtractor(
        category_map,
        ElapsedHoursCalendar(),
        users,
        squads,
        story_points_field="customfield_10004",
        tester_field="customfield_10200",
        designer_field="customfield_11523",
    )


@pytest.fixture
def sample_issue_with_changelog():
    """Task that went Open → In Progress → Code Review → Done, with histories out of order."""
    issue = make_issue(
        "APP-7",
        parent="APP-1",
        histories=[
            history("103", 30, "10101", "10002", "Done"),
            history("101", 10, "1", "3", "In Progress"),
            history("102", 24, "3", "10101", "Code Review"),
        ],
    )
    issue["fields"].update(
        {
            "labels": ["checkout", "payments"],
            "components": [{"name": "api"}, {"name": "android"}],
            "priority": {"id": "2", "name": "High"},
            "reporter": {"accountId": "b-1", "displayName": "B. Costa", "emailAddress": "bruno@example.com"},
            "parent": {"key": "APP-1", "fields": {"summary": "Checkout\nrevamp"}},
            "timeoriginalestimate": 5400,
            "customfield_10004": 3,
            "customfield_10200": {"accountId": "t-1", "displayName": "Tess Tester", "active": False},
        }
    )
    return issue


class FakeIssueSource:
    """In-memory ``IssueSource`` paging over a list of raw Jira issues."""

    def __init__(self, issues: list[dict]):
        self.issues = list(issues)
        self.calls: list[tuple[int, int]] = []
        self.fail_at_offsets: set[int] = set()
        self.fail_probe = False

    async def search(self, query: str, offset: int, page_size: int) -> JiraSearchResponse:
        self.calls.append((offset, page_size))
        if page_size == 0:
            if self.fail_probe:
                raise JiraConnectionError("probe failed")
            return JiraSearchResponse(total=len(self.issues))
        if offset in self.fail_at_offsets:
            raise JiraConnectionError(f"page at {offset} failed")
        page = [JiraIssue.model_validate(i) for i in self.issues[offset : offset + page_size]]
        return JiraSearchResponse(issues=page, startAt=offset, maxResults=page_size, total=len(self.issues))


@pytest.fixture
def make_source():
    def _make(count: int) -> FakeIssueSource:
        return FakeIssueSource([make_issue(f"APP-{i}") for i in range(1, count + 1)])

    return _make
