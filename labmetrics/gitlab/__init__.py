"""GitLab client, pagination and normalization primitives."""

from __future__ import annotations

from .client import GitLabActivityClient, GitLabClient
from .config import GitLabCollectorConfig
from .errors import (
    GitLabAPIError,
    GitLabCollectionError,
    GitLabConfigError,
    GitLabResponseShapeError,
    RepositoryNotFoundError,
)
from .models import Commit, CommitStats, MergeRequest, Project, ProjectLookup, UserRef
from .observability import (
    CollectionEventLogger,
    CollectionEventType,
    ErrorCategory,
    categorize_error,
)
from .pagination import Page, PageCursor, PageWalker, collect_all
from .projects import ProjectResolver, ResolvedRepository, resolve_repositories
from .records import commit_measurement, merge_request_measurement
from .tickets import classify_type, extract_ticket_token, normalize_ticket_id, ticket_id

__all__ = [
    "CollectionEventLogger",
    "CollectionEventType",
    "Commit",
    "CommitStats",
    "ErrorCategory",
    "GitLabAPIError",
    "GitLabActivityClient",
    "GitLabClient",
    "GitLabCollectionError",
    "GitLabCollectorConfig",
    "GitLabConfigError",
    "GitLabResponseShapeError",
    "MergeRequest",
    "Page",
    "PageCursor",
    "PageWalker",
    "Project",
    "ProjectLookup",
    "ProjectResolver",
    "RepositoryNotFoundError",
    "ResolvedRepository",
    "UserRef",
    "categorize_error",
    "classify_type",
    "collect_all",
    "commit_measurement",
    "extract_ticket_token",
    "merge_request_measurement",
    "normalize_ticket_id",
    "resolve_repositories",
    "ticket_id",
]
