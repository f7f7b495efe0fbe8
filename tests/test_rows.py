"""Tests for rendering records as output table rows."""

import pytest
from conftest import at

from flowmetrics.core.constants import CHANGELOG_COLUMNS, WORKING_SET_COLUMNS
from flowmetrics.schemas.issue_record import IssueMetrics, IssueRecord, Transition
from flowmetrics.schemas.jira.issue import JiraIssue
from flowmetrics.utils.rows import (
    changelog_rows,
    flatten_record,
    format_number,
    parse_number,
    parse_working_set_row,
)


@pytest.fixture
def record(extractor, sample_issue_with_changelog):
    return extractor.extract(JiraIssue.model_validate(sample_issue_with_changelog))


class TestNumbers:
    @pytest.mark.parametrize(
        "value, expected",
        [(None, ""), (3, "3"), (3.0, "3"), (2.456, "2.46"), (0.0, "0")],
    )
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    @pytest.mark.parametrize("value, expected", [("", None), (None, None), ("abc", None), ("1.5", 1.5)])
    def test_parse_number(self, value, expected):
        assert parse_number(value) == expected


class TestWorkingSet:
    def test_flatten_record(self, record):
        row = flatten_record(record)

        assert len(row) == len(WORKING_SET_COLUMNS)
        cells = dict(zip(WORKING_SET_COLUMNS, row))
        assert cells["project_key"] == "APP"
        assert cells["key"] == "APP-7"
        assert cells["story_points"] == "3"
        assert cells["labels"] == "checkout, payments"
        assert cells["components"] == "api, android"
        assert cells["created"] == "2024-01-01 09:00:00"
        assert cells["started"] == "2024-01-01 19:00:00"
        assert cells["done"] == "2024-01-02 15:00:00"
        assert cells["reaction_time"] == "10"
        assert cells["cycle_time"] == "20"
        assert cells["lead_time"] == "30"
        assert cells["restarted"] == ""
        assert cells["in_progress_time"] == "14"
        assert cells["code_review_time"] == "6"
        assert cells["backlog_time"] == ""
        assert cells["assignee"] == "Ana Silva"
        assert cells["original_estimate"] == "2"

    def test_parse_pads_short_rows(self):
        parsed = parse_working_set_row(["APP", "Task", "Mobile", "APP-1"])

        assert parsed["key"] == "APP-1"
        assert parsed["assignee"] == ""
        assert set(parsed) == set(WORKING_SET_COLUMNS)

    def test_parse_reads_back_flattened_row(self, record):
        parsed = parse_working_set_row(flatten_record(record))

        assert parsed["parent"] == "APP-1"
        assert parsed["cycle_time"] == "20"


class TestChangelog:
    def test_creation_row_then_one_row_per_transition(self, record):
        rows = changelog_rows([record])

        assert len(rows) == 1 + len(record.transitions)
        assert all(len(r) == len(CHANGELOG_COLUMNS) for r in rows)
        assert rows[0] == [
            "jira-APP-7",
            "2024-01-01 09:00:00",
            "jira",
            "APP | Mobile App",
            "Mobile",
            "Bruno Costa",
            "Task created",
            "item APP-7 created by Bruno Costa",
        ]
        assert rows[1][1] == "2024-01-01 19:00:00"
        assert rows[1][5] == "Ana Silva"
        assert rows[1][6] == "Task moved"
        assert rows[1][7] == "item jira-APP-7 moved to: in_progress"
        assert rows[-1][7] == "item jira-APP-7 moved to: done"

    def test_missing_values_render_empty(self):
        record = IssueRecord(
            key="X-1",
            metrics=IssueMetrics(),
            transitions=[Transition(to="done", date=at(1))],
        )

        rows = changelog_rows([record])

        assert rows[0][1] == ""
        assert rows[0][6] == "item created"
        assert rows[0][7] == "item X-1 created by unknown"
        assert rows[1][5] == ""
