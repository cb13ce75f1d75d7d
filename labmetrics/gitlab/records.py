"""Normalize GitLab payloads into measurements."""

from __future__ import annotations

import typing as typ

import msgspec

from labmetrics.sink import Measurement

from .tickets import classify_type, ticket_id

if typ.TYPE_CHECKING:
    from .models import Commit, MergeRequest, ProjectLookup, UserRef

MERGE_REQUESTS_MEASUREMENT = "merge_requests"
COMMITS_MEASUREMENT = "commits"


def _user_name(user: UserRef | None) -> str:
    return user.name if user is not None else ""


def merge_request_measurement(
    merge_request: MergeRequest, projects: ProjectLookup
) -> Measurement:
    """Build the ``merge_requests`` measurement for one merge request.

    Project tags fall back to ``""`` for ids missing from ``projects``; the
    record is emitted regardless.
    """
    author = merge_request.author
    fields: dict[str, object] = {
        "upvotes": merge_request.upvotes,
        "downvotes": merge_request.downvotes,
        "changes": merge_request.changes_count,
        "updated_at": merge_request.updated_at,
        "notes_count": merge_request.user_notes_count,
        "wip": merge_request.is_wip,
    }
    tags = {
        "merge_status": merge_request.merge_status,
        "author": _user_name(author),
        "username": author.username if author is not None else "",
        "assignee": _user_name(merge_request.assignee),
        "project": projects.name_for(merge_request.project_id),
        "source_project": projects.name_for(merge_request.source_project_id),
        "target_project": projects.name_for(merge_request.target_project_id),
        "state": merge_request.state,
        "jira_ticket_id": ticket_id(merge_request.title),
        "merge_request_type": classify_type(merge_request.title),
    }
    return Measurement(
        name=MERGE_REQUESTS_MEASUREMENT,
        fields=fields,
        tags=tags,
        timestamp=merge_request.created_at,
    )


def commit_measurement(commit: Commit) -> Measurement:
    """Build the ``commits`` measurement for one commit."""
    stats = msgspec.structs.asdict(commit.stats) if commit.stats is not None else None
    fields: dict[str, object] = {
        "stats": stats,
        "message": commit.message,
        "status": commit.status,
        "committed_at": commit.committed_date,
    }
    tags = {
        "ID": commit.id,
        "title": commit.title,
        "author_name": commit.author_name,
        "author_email": commit.author_email,
        "committer_name": commit.committer_name,
        "committer_email": commit.committer_email,
    }
    return Measurement(
        name=COMMITS_MEASUREMENT,
        fields=fields,
        tags=tags,
        timestamp=commit.created_at,
    )
