"""Collection orchestrator.

``GitLabCollector`` owns one collection cycle: it validates configuration,
resolves the project list, then runs one merge-request stream and one commit
stream per configured repository as concurrent asyncio tasks. Streams write
straight to the metrics sink. ``stop()`` raises a shared stop signal that
every stream checks between pages, then waits for all of them to exit.

States move ``IDLE -> STARTING -> RUNNING -> STOPPING -> STOPPED``; a failed
start returns to ``IDLE`` without launching anything.

Example
-------
>>> async def collect(config, sink):
...     async with GitLabCollector(config, sink) as collector:
...         await collector.wait()

"""

from __future__ import annotations

import asyncio
import dataclasses
import datetime as dt
import enum
import functools
import typing as typ

from labmetrics.gitlab.client import GitLabClient
from labmetrics.gitlab.errors import GitLabCollectionError, GitLabConfigError
from labmetrics.gitlab.observability import CollectionEventLogger
from labmetrics.gitlab.pagination import PageWalker
from labmetrics.gitlab.projects import ProjectResolver, resolve_repositories
from labmetrics.gitlab.records import commit_measurement, merge_request_measurement
from labmetrics.logging import get_logger, log_exception, log_warning
from labmetrics.sink import emit_measurement

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import types

    from labmetrics.gitlab.client import GitLabActivityClient
    from labmetrics.gitlab.config import GitLabCollectorConfig
    from labmetrics.gitlab.models import ProjectLookup
    from labmetrics.gitlab.projects import ResolvedRepository
    from labmetrics.sink import Measurement, MetricsSink

    type ClientFactory = cabc.Callable[[GitLabCollectorConfig], GitLabActivityClient]

logger = get_logger(__name__)


class CollectorState(enum.StrEnum):
    """Lifecycle states of a collector."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class StreamOutcome(enum.StrEnum):
    """How a stream ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class StreamKind(enum.StrEnum):
    """Resource collected by a stream."""

    MERGE_REQUESTS = "merge_requests"
    COMMITS = "commits"


@dataclasses.dataclass(frozen=True, slots=True)
class StreamResult:
    """Summary of one stream within a collection cycle."""

    kind: StreamKind
    label: str
    outcome: StreamOutcome
    records_emitted: int = 0
    pages_fetched: int = 0
    error: BaseException | None = None


def _default_client_factory(config: GitLabCollectorConfig) -> GitLabActivityClient:
    return GitLabClient(config)


class GitLabCollector:
    """Run concurrent GitLab collection streams into a metrics sink."""

    def __init__(
        self,
        config: GitLabCollectorConfig,
        sink: MetricsSink,
        *,
        client_factory: ClientFactory | None = None,
        event_logger: CollectionEventLogger | None = None,
    ) -> None:
        """Create an idle collector; nothing touches the network until start."""
        self._config = config
        self._sink = sink
        self._client_factory = client_factory or _default_client_factory
        self._events = event_logger or CollectionEventLogger()
        self._state = CollectorState.IDLE
        self._client: GitLabActivityClient | None = None
        self._lookup: ProjectLookup | None = None
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[StreamResult]] = []
        self._drain: asyncio.Task[None] | None = None
        self._results: list[StreamResult] = []
        self._started_at: dt.datetime | None = None

    @property
    def state(self) -> CollectorState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def lookup(self) -> ProjectLookup | None:
        """Return the project lookup of the current cycle, if started."""
        return self._lookup

    @property
    def results(self) -> tuple[StreamResult, ...]:
        """Return summaries of streams that have finished so far."""
        return tuple(self._results)

    async def __aenter__(self) -> typ.Self:
        """Start the collector."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: types.TracebackType | None,
    ) -> None:
        """Stop the collector, draining in-flight pages."""
        await self.stop()

    async def start(self) -> None:
        """Resolve projects and launch every stream.

        Raises
        ------
        GitLabConfigError
            If the endpoint or token is invalid. No request is made.
        GitLabCollectionError
            If the project list cannot be fetched. No stream is launched.
        RuntimeError
            If the collector is already starting, running or stopping.

        """
        if self._state not in {CollectorState.IDLE, CollectorState.STOPPED}:
            msg = f"cannot start collector in state {self._state}"
            raise RuntimeError(msg)

        self._state = CollectorState.STARTING
        endpoint = self._config.endpoint
        try:
            self._config.validate()
        except GitLabConfigError as exc:
            self._state = CollectorState.IDLE
            self._events.log_collector_start_failed(endpoint, exc)
            raise

        client: GitLabActivityClient | None = None
        try:
            client = self._client_factory(self._config)
            lookup = await ProjectResolver(client).resolve()
        except BaseException as exc:
            if client is not None:
                await client.aclose()
            self._state = CollectorState.IDLE
            self._events.log_collector_start_failed(endpoint, exc)
            raise

        self._client = client
        self._lookup = lookup
        self._stop_event = asyncio.Event()
        self._results = []
        self._started_at = dt.datetime.now(dt.UTC)

        resolution = resolve_repositories(lookup, self._config.repos)
        for missing in resolution.missing:
            self._events.log_repository_unresolved(missing.name)
            self._sink.report_error(missing)

        self._tasks = [self._launch_merge_requests(client, lookup)]
        self._tasks.extend(
            self._launch_commits(client, repo) for repo in resolution.resolved
        )
        self._state = CollectorState.RUNNING
        self._events.log_collector_started(endpoint, len(self._tasks))

    async def wait(self) -> None:
        """Wait until every stream has finished on its own or been stopped."""
        if self._tasks:
            await asyncio.wait(self._tasks)

    async def stop(self) -> None:
        """Signal every stream to stop and wait for them to drain.

        Streams finish the page they are fetching, emit its records and exit.
        Streams still running after ``drain_timeout_s`` are cancelled. A
        ``stop()`` issued while another is draining waits for that drain.
        Calling ``stop()`` on an idle or stopped collector does nothing.
        """
        if self._state is CollectorState.STOPPING and self._drain is not None:
            await asyncio.shield(self._drain)
            return
        if self._state is not CollectorState.RUNNING:
            return

        self._state = CollectorState.STOPPING
        self._stop_event.set()
        self._drain = asyncio.create_task(
            self._drain_streams(), name="labmetrics:drain"
        )
        await asyncio.shield(self._drain)

    async def _drain_streams(self) -> None:
        """Join every stream, cancel stragglers, then release the client."""
        if self._tasks:
            _, pending = await asyncio.wait(
                self._tasks, timeout=self._config.drain_timeout_s
            )
            if pending:
                log_warning(
                    logger,
                    "Cancelling %d stream(s) still running after %.1fs",
                    len(pending),
                    self._config.drain_timeout_s,
                )
                for task in pending:
                    task.cancel()
                await asyncio.wait(pending)

        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._tasks = []
        self._drain = None
        self._state = CollectorState.STOPPED

        started_at = self._started_at or dt.datetime.now(dt.UTC)
        self._events.log_collector_stopped(
            dt.datetime.now(dt.UTC) - started_at,
            sum(result.records_emitted for result in self._results),
        )

    def _launch_merge_requests(
        self, client: GitLabActivityClient, lookup: ProjectLookup
    ) -> asyncio.Task[StreamResult]:
        walker = PageWalker(
            client.list_merge_requests,
            per_page=self._config.per_page,
            stop=self._stop_event,
        )
        return self._launch(
            StreamKind.MERGE_REQUESTS,
            "all",
            walker,
            functools.partial(merge_request_measurement, projects=lookup),
        )

    def _launch_commits(
        self, client: GitLabActivityClient, repo: ResolvedRepository
    ) -> asyncio.Task[StreamResult]:
        walker = PageWalker(
            functools.partial(client.list_commits, repo.project_id),
            per_page=self._config.per_page,
            stop=self._stop_event,
        )
        return self._launch(StreamKind.COMMITS, repo.name, walker, commit_measurement)

    def _launch[T](
        self,
        kind: StreamKind,
        label: str,
        walker: PageWalker[T],
        to_measurement: cabc.Callable[[T], Measurement],
    ) -> asyncio.Task[StreamResult]:
        return asyncio.create_task(
            self._run_stream(kind, label, walker, to_measurement),
            name=f"labmetrics:{kind}:{label}",
        )

    async def _run_stream[T](
        self,
        kind: StreamKind,
        label: str,
        walker: PageWalker[T],
        to_measurement: cabc.Callable[[T], Measurement],
    ) -> StreamResult:
        """Drain ``walker`` into the sink; any error ends only this stream."""
        self._events.log_stream_started(kind, label)
        records = 0
        try:
            async for item in walker:
                emit_measurement(self._sink, to_measurement(item))
                records += 1
        except Exception as exc:
            if not isinstance(exc, GitLabCollectionError):
                log_exception(logger, f"Stream {kind}:{label} crashed", exc)
            self._sink.report_error(exc)
            self._events.log_stream_failed(kind, label, records, exc)
            return self._record(
                StreamResult(
                    kind=kind,
                    label=label,
                    outcome=StreamOutcome.FAILED,
                    records_emitted=records,
                    pages_fetched=walker.pages_fetched,
                    error=exc,
                )
            )
        except asyncio.CancelledError:
            self._events.log_stream_cancelled(kind, label, records, walker.pages_fetched)
            self._record(
                StreamResult(
                    kind=kind,
                    label=label,
                    outcome=StreamOutcome.CANCELLED,
                    records_emitted=records,
                    pages_fetched=walker.pages_fetched,
                )
            )
            raise

        if walker.cancelled:
            outcome = StreamOutcome.CANCELLED
            self._events.log_stream_cancelled(kind, label, records, walker.pages_fetched)
        else:
            outcome = StreamOutcome.COMPLETED
            self._events.log_stream_completed(kind, label, records, walker.pages_fetched)
        return self._record(
            StreamResult(
                kind=kind,
                label=label,
                outcome=outcome,
                records_emitted=records,
                pages_fetched=walker.pages_fetched,
            )
        )

    def _record(self, result: StreamResult) -> StreamResult:
        self._results.append(result)
        return result
