"""Structured log events for collector and stream health.

Every event is a single log line of the form ``[event.type] key=value ...``
so log aggregators can parse throughput and failures without a metrics
backend of their own.
"""

from __future__ import annotations

import enum
import typing as typ

from labmetrics.logging import get_logger, log_error, log_info, log_warning

from .errors import (
    GitLabAPIError,
    GitLabConfigError,
    GitLabResponseShapeError,
    RepositoryNotFoundError,
)

if typ.TYPE_CHECKING:
    import datetime as dt

logger = get_logger(__name__)

# HTTP status code threshold for server errors (5xx)
_HTTP_SERVER_ERROR_THRESHOLD = 500


class CollectionEventType(enum.StrEnum):
    """Structured log event types."""

    COLLECTOR_STARTED = "collector.started"
    COLLECTOR_START_FAILED = "collector.start_failed"
    COLLECTOR_STOPPED = "collector.stopped"
    STREAM_STARTED = "collector.stream.started"
    STREAM_COMPLETED = "collector.stream.completed"
    STREAM_CANCELLED = "collector.stream.cancelled"
    STREAM_FAILED = "collector.stream.failed"
    REPOSITORY_UNRESOLVED = "collector.repository.unresolved"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    RESOLUTION = "resolution"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (GitLabResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (GitLabConfigError, ErrorCategory.CONFIGURATION),
    (RepositoryNotFoundError, ErrorCategory.RESOLUTION),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alert routing."""
    if isinstance(exc, GitLabAPIError):
        if exc.is_transport_failure:
            return ErrorCategory.TRANSIENT
        if (
            exc.status_code is not None
            and exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        ):
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class CollectionEventLogger:
    """Emit structured collector events through femtologging.

    INFO for lifecycle and successful streams, WARNING for cancelled streams
    and unresolved repositories, ERROR for failures.
    """

    def log_collector_started(self, endpoint: str, streams: int) -> None:
        """Log a successful start."""
        log_info(
            logger,
            "[%s] endpoint=%s streams=%d",
            CollectionEventType.COLLECTOR_STARTED,
            endpoint,
            streams,
        )

    def log_collector_start_failed(self, endpoint: str, error: BaseException) -> None:
        """Log a start that launched no streams."""
        log_error(
            logger,
            "[%s] endpoint=%s error_type=%s error_category=%s error_message=%s",
            CollectionEventType.COLLECTOR_START_FAILED,
            endpoint,
            type(error).__name__,
            categorize_error(error),
            error,
            exc_info=error,
        )

    def log_collector_stopped(self, duration: dt.timedelta, records: int) -> None:
        """Log the end of a collection cycle."""
        log_info(
            logger,
            "[%s] duration_seconds=%.3f records_emitted=%d",
            CollectionEventType.COLLECTOR_STOPPED,
            duration.total_seconds(),
            records,
        )

    def log_stream_started(self, kind: str, label: str) -> None:
        """Log a stream launch."""
        log_info(
            logger,
            "[%s] stream_kind=%s stream=%s",
            CollectionEventType.STREAM_STARTED,
            kind,
            label,
        )

    def log_stream_completed(
        self, kind: str, label: str, records: int, pages: int
    ) -> None:
        """Log a stream that reached its last page."""
        log_info(
            logger,
            "[%s] stream_kind=%s stream=%s records_emitted=%d pages_fetched=%d",
            CollectionEventType.STREAM_COMPLETED,
            kind,
            label,
            records,
            pages,
        )

    def log_stream_cancelled(
        self, kind: str, label: str, records: int, pages: int
    ) -> None:
        """Log a stream that observed the stop signal before its last page."""
        log_warning(
            logger,
            "[%s] stream_kind=%s stream=%s records_emitted=%d pages_fetched=%d",
            CollectionEventType.STREAM_CANCELLED,
            kind,
            label,
            records,
            pages,
        )

    def log_stream_failed(
        self, kind: str, label: str, records: int, error: BaseException
    ) -> None:
        """Log a stream aborted by a page error."""
        log_error(
            logger,
            "[%s] stream_kind=%s stream=%s records_emitted=%d "
            "error_type=%s error_category=%s error_message=%s",
            CollectionEventType.STREAM_FAILED,
            kind,
            label,
            records,
            type(error).__name__,
            categorize_error(error),
            error,
        )

    def log_repository_unresolved(self, name: str) -> None:
        """Log a configured repository that matched no project."""
        log_warning(
            logger,
            "[%s] repository=%s",
            CollectionEventType.REPOSITORY_UNRESOLVED,
            name,
        )
