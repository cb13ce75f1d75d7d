"""Typed GitLab REST payloads and the project lookup built from them."""

from __future__ import annotations

import dataclasses
import datetime as dt  # noqa: TC003 - msgspec resolves annotations at runtime
import types
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class Project(msgspec.Struct, kw_only=True, frozen=True):
    """A project as returned by ``GET /projects``."""

    id: int
    name: str


class UserRef(msgspec.Struct, kw_only=True, frozen=True):
    """Embedded user reference on merge requests."""

    name: str = ""
    username: str = ""


class MergeRequest(msgspec.Struct, kw_only=True, frozen=True):
    """A merge request as returned by ``GET /merge_requests``.

    ``changes_count`` is a string because GitLab caps large diffs as
    ``"1000+"``. ``work_in_progress`` is deprecated upstream in favour of
    ``draft``; both are read.
    """

    id: int
    title: str = ""
    state: str = ""
    merge_status: str = ""
    upvotes: int = 0
    downvotes: int = 0
    changes_count: str | None = None
    user_notes_count: int = 0
    work_in_progress: bool = False
    draft: bool = False
    author: UserRef | None = None
    assignee: UserRef | None = None
    project_id: int | None = None
    source_project_id: int | None = None
    target_project_id: int | None = None
    created_at: dt.datetime
    updated_at: dt.datetime | None = None

    @property
    def is_wip(self) -> bool:
        """Return True when the merge request is marked draft or WIP."""
        return self.work_in_progress or self.draft


class CommitStats(msgspec.Struct, kw_only=True, frozen=True):
    """Line statistics returned when ``with_stats=true`` is requested."""

    additions: int = 0
    deletions: int = 0
    total: int = 0


class Commit(msgspec.Struct, kw_only=True, frozen=True):
    """A commit as returned by ``GET /projects/:id/repository/commits``."""

    id: str
    title: str = ""
    message: str = ""
    author_name: str = ""
    author_email: str = ""
    committer_name: str = ""
    committer_email: str = ""
    status: str | None = None
    stats: CommitStats | None = None
    created_at: dt.datetime
    committed_date: dt.datetime | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ProjectLookup:
    """Read-only project id to name mapping shared by every stream.

    Built once per collector start, before any stream is launched, and never
    mutated afterwards.
    """

    names: cabc.Mapping[int, str]

    @classmethod
    def from_projects(cls, projects: cabc.Iterable[Project]) -> ProjectLookup:
        """Build a lookup; a repeated id keeps the last name seen."""
        names: dict[int, str] = {}
        for project in projects:
            names[project.id] = project.name
        return cls(names=types.MappingProxyType(names))

    def name_for(self, project_id: int | None) -> str:
        """Return the project name, or ``""`` for unknown ids."""
        if project_id is None:
            return ""
        return self.names.get(project_id, "")

    def id_for(self, name: str) -> int | None:
        """Return the id of the first project named exactly ``name``."""
        for project_id, project_name in self.names.items():
            if project_name == name:
                return project_id
        return None

    def __len__(self) -> int:
        """Return the number of known projects."""
        return len(self.names)

    def __contains__(self, project_id: object) -> bool:
        """Return True when ``project_id`` is a known project id."""
        return project_id in self.names
