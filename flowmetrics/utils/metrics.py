from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Protocol

from flowmetrics.core.constants import BACKLOG_CATEGORY, DONE_CATEGORY, IN_PROGRESS_CATEGORY
from flowmetrics.schemas.issue_record import IssueMetrics, StatusEvent, StatusInterval

CategoryLookup = Callable[[str | None], str | None]


class Calendar(Protocol):
    def duration(self, start: datetime, end: datetime) -> float:
        """Elapsed (working) time between two instants; additive and monotonic."""
        ...


class ElapsedHoursCalendar:
    """Wall-clock hours between two instants. Stand-in for a business-hours calendar."""

    def duration(self, start: datetime, end: datetime) -> float:
        return (end - start).total_seconds() / 3600


def sort_events(events: Iterable[StatusEvent]) -> list[StatusEvent]:
    """Order events by timestamp. ``sorted`` is stable, so ties keep source order."""
    return sorted(events, key=lambda e: e.occurred_at)


def build_intervals(
    events: Iterable[StatusEvent],
    category_of: CategoryLookup,
) -> list[StatusInterval]:
    """Closed intervals for every categorized status; the current (open) status is excluded."""
    ordered = sort_events(events)
    intervals: list[StatusInterval] = []

    for current, following in zip(ordered, ordered[1:]):
        category = category_of(current.to_status)
        if category is None:
            continue
        intervals.append(
            StatusInterval(
                category=category,
                started_at=current.occurred_at,
                ended_at=following.occurred_at,
            )
        )

    return intervals


def first_transition_into(
    events: Sequence[StatusEvent],
    category: str,
    category_of: CategoryLookup,
) -> datetime | None:
    for event in events:
        if category_of(event.to_status) == category:
            return event.occurred_at
    return None


def restart_date(events: Sequence[StatusEvent], category_of: CategoryLookup) -> datetime | None:
    """Last return to the backlog, only if the issue entered the backlog more than once."""
    backlog_entries = [e for e in events if category_of(e.to_status) == BACKLOG_CATEGORY]
    if len(backlog_entries) > 1:
        return backlog_entries[-1].occurred_at
    return None


def _duration_between(
    calendar: Calendar,
    start: datetime | None,
    end: datetime | None,
) -> float | None:
    if start is None or end is None:
        return None
    return calendar.duration(start, end)


def analyze_transitions(
    created_at: datetime | None,
    events: Iterable[StatusEvent],
    category_of: CategoryLookup,
    calendar: Calendar,
) -> IssueMetrics:
    """Aggregate an issue's status events into category durations and milestones.

    Events may arrive unsorted. Each event's target status is held until the
    next event; the last status has no end and contributes no time. Milestones
    whose operands are missing stay ``None``. A history of fewer than two
    events yields empty metrics.
    """
    ordered = sort_events(events)
    if len(ordered) < 2:
        return IssueMetrics()

    category_times: dict[str, float] = {}
    for interval in build_intervals(ordered, category_of):
        spent = calendar.duration(interval.started_at, interval.ended_at)
        category_times[interval.category] = category_times.get(interval.category, 0) + spent

    started_at = first_transition_into(ordered, IN_PROGRESS_CATEGORY, category_of)
    done_at = first_transition_into(ordered, DONE_CATEGORY, category_of)

    return IssueMetrics(
        category_times=category_times,
        started_at=started_at,
        done_at=done_at,
        restarted_at=restart_date(ordered, category_of),
        reaction_time=_duration_between(calendar, created_at, started_at),
        lead_time=_duration_between(calendar, created_at, done_at),
        cycle_time=_duration_between(calendar, started_at, done_at),
    )
