"""Project lookup construction and repository name resolution."""

from __future__ import annotations

import dataclasses
import typing as typ

from labmetrics.logging import get_logger, log_info

from .errors import RepositoryNotFoundError
from .models import ProjectLookup

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .client import GitLabActivityClient

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ResolvedRepository:
    """A configured repository name paired with its project id."""

    name: str
    project_id: int


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryResolution:
    """Outcome of resolving configured repository names."""

    resolved: tuple[ResolvedRepository, ...]
    missing: tuple[RepositoryNotFoundError, ...]


class ProjectResolver:
    """Fetch the project list once and build a :class:`ProjectLookup`."""

    def __init__(self, client: GitLabActivityClient) -> None:
        """Bind the resolver to a GitLab client."""
        self._client = client

    async def resolve(self) -> ProjectLookup:
        """Return a lookup of every visible project.

        Errors from the project listing propagate; the collector treats them
        as fatal because every merge request tag depends on the lookup.
        """
        projects = await self._client.list_projects()
        lookup = ProjectLookup.from_projects(projects)
        log_info(logger, "Resolved %d GitLab projects", len(lookup))
        return lookup


def resolve_repositories(
    lookup: ProjectLookup, names: cabc.Iterable[str]
) -> RepositoryResolution:
    """Split ``names`` into resolved repositories and lookup failures."""
    resolved: list[ResolvedRepository] = []
    missing: list[RepositoryNotFoundError] = []
    for name in names:
        project_id = lookup.id_for(name)
        if project_id is None:
            missing.append(RepositoryNotFoundError(name))
        else:
            resolved.append(ResolvedRepository(name=name, project_id=project_id))
    return RepositoryResolution(resolved=tuple(resolved), missing=tuple(missing))
