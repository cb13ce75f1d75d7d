"""Page-number pagination over GitLab list endpoints.

GitLab list endpoints take ``per_page`` and ``page`` parameters. The walker
requests consecutive pages until one comes back with fewer items than were
asked for; it never relies on a total count or a "has more" flag. An exact
multiple of the page size therefore costs one extra, empty, request.
"""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import asyncio
    import collections.abc as cabc

DEFAULT_PER_PAGE = 100
FIRST_PAGE = 1


@dataclasses.dataclass(frozen=True, slots=True)
class PageCursor:
    """Page size and 1-based page number of one slice of a result set."""

    per_page: int
    page: int = FIRST_PAGE

    def __post_init__(self) -> None:
        """Reject page sizes that could never produce a short page."""
        if self.per_page < 1:
            msg = f"per_page must be positive, got: {self.per_page}"
            raise ValueError(msg)

    def next(self) -> PageCursor:
        """Return the cursor for the following page."""
        return dataclasses.replace(self, page=self.page + 1)

    def as_params(self) -> dict[str, int]:
        """Return the cursor as GitLab query parameters."""
        return {"per_page": self.per_page, "page": self.page}


@dataclasses.dataclass(frozen=True, slots=True)
class Page[T]:
    """Items of one page plus the HTTP status that delivered them."""

    items: list[T]
    status_code: int = 200


type PageFetcher[T] = cabc.Callable[[PageCursor], cabc.Awaitable[Page[T]]]


class PageWalker[T]:
    """Iterate every item of a paginated resource, page by page.

    ``stop`` is checked before each request, never during one, so a stop
    request lets the page already in flight finish and yield all of its items.
    Errors raised by ``fetch`` propagate to the consumer unchanged and end the
    walk.
    """

    def __init__(
        self,
        fetch: PageFetcher[T],
        *,
        per_page: int = DEFAULT_PER_PAGE,
        stop: asyncio.Event | None = None,
        first_page: int = FIRST_PAGE,
    ) -> None:
        """Bind the walker to a page fetcher and an optional stop signal."""
        self._fetch = fetch
        self._stop = stop
        self._start = PageCursor(per_page=per_page, page=first_page)
        self.pages_fetched = 0
        self.items_yielded = 0
        self.exhausted = False
        self.cancelled = False

    @property
    def per_page(self) -> int:
        """Return the page size requested from the API."""
        return self._start.per_page

    def __aiter__(self) -> cabc.AsyncIterator[T]:
        """Return an async iterator over all items."""
        return self._iter_items()

    async def _iter_items(self) -> cabc.AsyncIterator[T]:
        cursor = self._start
        while True:
            if self._stop is not None and self._stop.is_set():
                self.cancelled = True
                return

            page = await self._fetch(cursor)
            self.pages_fetched += 1
            for item in page.items:
                self.items_yielded += 1
                yield item

            if len(page.items) < cursor.per_page:
                self.exhausted = True
                return
            cursor = cursor.next()


async def collect_all[T](
    fetch: PageFetcher[T], *, per_page: int = DEFAULT_PER_PAGE
) -> list[T]:
    """Walk ``fetch`` to the last page and return every item in order."""
    return [item async for item in PageWalker(fetch, per_page=per_page)]
