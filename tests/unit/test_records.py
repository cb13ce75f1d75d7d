"""Unit tests for measurement normalization."""

from __future__ import annotations

import datetime as dt

from labmetrics.gitlab.models import Project, ProjectLookup
from labmetrics.gitlab.records import commit_measurement, merge_request_measurement
from tests.unit.gitlab_test_helpers import make_commit, make_merge_request


def _lookup() -> ProjectLookup:
    return ProjectLookup.from_projects(
        [Project(id=1, name="billing"), Project(id=2, name="web")]
    )


def test_merge_request_measurement_fields_and_tags() -> None:
    """Merge requests map onto the merge_requests measurement."""
    merge_request = make_merge_request(
        5,
        title="feature/ABC-123: add login",
        assignee={"name": "Grace Hopper", "username": "grace"},
    )

    measurement = merge_request_measurement(merge_request, _lookup())

    assert measurement.name == "merge_requests"
    assert measurement.timestamp == dt.datetime(2024, 3, 1, 10, 0, tzinfo=dt.UTC)
    assert measurement.fields == {
        "upvotes": 2,
        "downvotes": 1,
        "changes": "7",
        "updated_at": dt.datetime(2024, 3, 2, 8, 30, tzinfo=dt.UTC),
        "notes_count": 4,
        "wip": False,
    }
    assert measurement.tags == {
        "merge_status": "can_be_merged",
        "author": "Ada Lovelace",
        "username": "ada",
        "assignee": "Grace Hopper",
        "project": "billing",
        "source_project": "billing",
        "target_project": "billing",
        "state": "opened",
        "jira_ticket_id": "ABC-123",
        "merge_request_type": "FEATURE",
    }


def test_merge_request_with_unknown_project_still_emits_empty_tags() -> None:
    """Ids missing from the lookup produce empty project tags, not errors."""
    merge_request = make_merge_request(6, project_id=999)

    measurement = merge_request_measurement(merge_request, _lookup())

    assert measurement.tags["project"] == ""
    assert measurement.tags["source_project"] == ""
    assert measurement.tags["target_project"] == ""


def test_merge_request_without_assignee_or_ticket() -> None:
    """Missing assignee and unparseable titles yield empty tags."""
    merge_request = make_merge_request(8, title="Tidy up README", assignee=None)

    measurement = merge_request_measurement(merge_request, _lookup())

    assert measurement.tags["assignee"] == ""
    assert measurement.tags["jira_ticket_id"] == ""
    assert measurement.tags["merge_request_type"] == ""


def test_commit_measurement_fields_and_tags() -> None:
    """Commits map onto the commits measurement keyed by creation time."""
    commit = make_commit("0123456789abcdef", title="Fix null check")

    measurement = commit_measurement(commit)

    created = dt.datetime(2024, 3, 1, 8, 0, tzinfo=dt.UTC)
    assert measurement.name == "commits"
    assert measurement.timestamp == created
    assert measurement.fields["stats"] == {"additions": 3, "deletions": 1, "total": 4}
    assert measurement.fields["message"] == "Fix null check\n\nLonger description."
    assert measurement.fields["status"] is None
    assert measurement.fields["committed_at"] == created
    assert measurement.tags == {
        "ID": "0123456789abcdef",
        "title": "Fix null check",
        "author_name": "Ada Lovelace",
        "author_email": "ada@example.test",
        "committer_name": "Grace Hopper",
        "committer_email": "grace@example.test",
    }
