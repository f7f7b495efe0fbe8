import math

from loguru import logger

from flowmetrics.core.exceptions.domain import MalformedHistoryEntry
from flowmetrics.schemas.issue_record import IssueRecord, StatusEvent, Transition
from flowmetrics.schemas.jira.issue import JiraIssue
from flowmetrics.services.directory import SquadDirectory, UsernameDirectory
from flowmetrics.utils.categories import CategoryMap
from flowmetrics.utils.dates import parse_jira_datetime
from flowmetrics.utils.metrics import Calendar, analyze_transitions, sort_events


class IssueExtractor:
    """Maps raw Jira search results into typed ``IssueRecord`` objects."""

    def __init__(
        self,
        category_map: CategoryMap,
        calendar: Calendar,
        users: UsernameDirectory,
        squads: SquadDirectory,
        *,
        story_points_field: str | None = None,
        tester_field: str | None = None,
        designer_field: str | None = None,
    ):
        self.category_map = category_map
        self.calendar = calendar
        self.users = users
        self.squads = squads
        self.story_points_field = story_points_field
        self.tester_field = tester_field
        self.designer_field = designer_field

    def status_events(self, issue: JiraIssue) -> list[StatusEvent]:
        """Extract status changes in source order, skipping entries with bad timestamps."""
        if issue.changelog is None:
            return []

        events: list[StatusEvent] = []
        for history in issue.changelog.histories:
            status_items = history.get_status_changes()
            if not status_items:
                continue
            try:
                occurred_at = parse_jira_datetime(history.created)
            except MalformedHistoryEntry as e:
                logger.warning(f"{issue.key}: skipping changelog entry {history.id}: {e.message}")
                continue

            author = self.users.canonical_name(history.author)
            for item in status_items:
                events.append(
                    StatusEvent(
                        from_status=item.from_,
                        to_status=item.to,
                        occurred_at=occurred_at,
                        from_name=item.fromString,
                        to_name=item.toString,
                        author=author,
                        author_active=history.author.active if history.author else True,
                    )
                )
        return events

    def transitions(self, events: list[StatusEvent]) -> list[Transition]:
        result: list[Transition] = []
        for event in sort_events(events):
            category = self.category_map.category_of(event.to_status)
            label = category.removesuffix("_time") if category else (event.to_name or "")
            result.append(
                Transition(
                    to=label,
                    date=event.occurred_at,
                    user_name=event.author,
                    is_active_user=event.author_active,
                )
            )
        return result

    def extract(self, issue: JiraIssue) -> IssueRecord:
        fields = issue.fields

        created_at = None
        try:
            created_at = parse_jira_datetime(fields.created)
        except MalformedHistoryEntry as e:
            logger.warning(f"{issue.key}: no usable creation date ({e.message})")

        events = self.status_events(issue)
        metrics = analyze_transitions(created_at, events, self.category_map.category_of, self.calendar)

        project_key = fields.project.key if fields.project else None
        parent_summary = None
        if fields.parent and fields.parent.fields and fields.parent.fields.summary:
            parent_summary = fields.parent.fields.summary.replace("\n", " ")

        original_estimate = None
        if fields.timeoriginalestimate:
            original_estimate = math.ceil(fields.timeoriginalestimate / 3600)

        return IssueRecord(
            id=issue.id,
            key=issue.key,
            project_key=project_key,
            project_name=fields.project.name if fields.project else None,
            issue_type=fields.issuetype.name if fields.issuetype else None,
            squad=self.squads.squad_for(project_key),
            story_points=issue.get_story_points(self.story_points_field),
            labels=list(fields.labels),
            components=[c.name for c in fields.components],
            parent=fields.parent.key if fields.parent else None,
            parent_summary=parent_summary,
            priority=fields.priority.name if fields.priority else None,
            created_at=created_at,
            reporter=self.users.canonical_name(fields.reporter),
            assignee=self.users.canonical_name(fields.assignee),
            tester=self.users.canonical_name(issue.get_user_field(self.tester_field)),
            designer=self.users.canonical_name(issue.get_user_field(self.designer_field)),
            original_estimate=original_estimate,
            metrics=metrics,
            transitions=self.transitions(events),
        )
