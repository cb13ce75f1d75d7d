"""GitLab REST client used by the collector streams."""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from labmetrics.logging import get_logger, log_debug

from .errors import GitLabAPIError, GitLabConfigError, GitLabResponseShapeError
from .models import Commit, MergeRequest, Project
from .pagination import Page, PageCursor, collect_all

if typ.TYPE_CHECKING:
    from .config import GitLabCollectorConfig

_HTTP_SUCCESS_MIN = 200
_HTTP_SUCCESS_MAX = 299

logger = get_logger(__name__)


class GitLabActivityClient(typ.Protocol):
    """Interface for fetching GitLab activity pages."""

    async def list_projects(self) -> list[Project]:
        """Return every project visible to the token."""
        ...

    async def list_merge_requests(self, cursor: PageCursor) -> Page[MergeRequest]:
        """Return one page of merge requests across all accessible projects."""
        ...

    async def list_commits(
        self, project_id: int, cursor: PageCursor
    ) -> Page[Commit]:
        """Return one page of commits for a project."""
        ...

    async def aclose(self) -> None:
        """Release any network resources."""
        ...


class GitLabClient:
    """httpx implementation of :class:`GitLabActivityClient`."""

    def __init__(
        self,
        config: GitLabCollectorConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client for ``config.api_base_url``.

        The bearer token is attached per request so an injected
        ``http_client`` is authenticated too.
        """
        if not config.token.strip():
            raise GitLabConfigError.empty_token()

        self._config = config
        self._base_url = config.api_base_url
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def list_projects(self) -> list[Project]:
        """Return all visible projects, walking every page."""
        params: dict[str, typ.Any] = {"simple": "true"}
        if self._config.membership_only:
            params["membership"] = "true"

        async def _fetch(cursor: PageCursor) -> Page[Project]:
            return await self._get_page("/projects", cursor, params, list[Project])

        return await collect_all(_fetch, per_page=self._config.per_page)

    async def list_merge_requests(self, cursor: PageCursor) -> Page[MergeRequest]:
        """Return one page of merge requests with ``scope=all``."""
        return await self._get_page(
            "/merge_requests", cursor, {"scope": "all"}, list[MergeRequest]
        )

    async def list_commits(self, project_id: int, cursor: PageCursor) -> Page[Commit]:
        """Return one page of commits, including line statistics."""
        return await self._get_page(
            f"/projects/{project_id}/repository/commits",
            cursor,
            {"with_stats": "true"},
            list[Commit],
        )

    async def _get_page[T](
        self,
        path: str,
        cursor: PageCursor,
        params: dict[str, typ.Any],
        item_type: type[list[T]],
    ) -> Page[T]:
        """GET one page of ``path`` and decode it as ``item_type``."""
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(
                url,
                params={**params, **cursor.as_params()},
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            raise GitLabAPIError.transport_error(url, exc) from exc

        if not _HTTP_SUCCESS_MIN <= response.status_code <= _HTTP_SUCCESS_MAX:
            raise GitLabAPIError.http_error(response.status_code, url)

        try:
            items = msgspec.json.decode(response.content, type=item_type)
        except msgspec.DecodeError as exc:
            raise GitLabResponseShapeError.undecodable(path, exc) from exc
        log_debug(
            logger,
            "GET %s page=%d per_page=%d items=%d",
            path,
            cursor.page,
            cursor.per_page,
            len(items),
        )
        return Page(items=items, status_code=response.status_code)
