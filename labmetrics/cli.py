"""Command-line entrypoint that streams GitLab measurements as JSON lines.

Configuration comes from ``LABMETRICS_*`` environment variables (see
:meth:`labmetrics.gitlab.config.GitLabCollectorConfig.from_env`); flags
override individual values. The token is only read from the environment.

Run with ``labmetrics --repo billing --repo web`` or ``python -m labmetrics``.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import os
import signal
import sys
import typing as typ

from labmetrics.collector import GitLabCollector
from labmetrics.gitlab.config import GitLabCollectorConfig
from labmetrics.gitlab.errors import GitLabCollectionError, GitLabConfigError
from labmetrics.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)
from labmetrics.sink import JsonLinesSink

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from labmetrics.collector import StreamResult
    from labmetrics.sink import MetricsSink

logger = get_logger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--endpoint",
        default=None,
        help="GitLab base URL (overrides LABMETRICS_GITLAB_ENDPOINT)",
    )
    parser.add_argument(
        "--repo",
        dest="repos",
        action="append",
        default=None,
        help="Repository name to collect commits for; repeatable",
    )
    parser.add_argument(
        "--per-page",
        type=int,
        default=None,
        help="Page size for list requests (overrides LABMETRICS_PER_PAGE)",
    )
    parser.add_argument(
        "--membership-only",
        action="store_true",
        default=None,
        help="Only list projects the token's user is a member of",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LABMETRICS_LOG_LEVEL", "INFO"),
        help="Log level (default from LABMETRICS_LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> GitLabCollectorConfig:
    """Load environment configuration and apply command-line overrides."""
    config = GitLabCollectorConfig.from_env()
    overrides: dict[str, object] = {}
    if args.endpoint:
        overrides["endpoint"] = args.endpoint
    if args.repos:
        overrides["repos"] = tuple(args.repos)
    if args.per_page is not None:
        if args.per_page < 1:
            msg = f"--per-page must be positive, got: {args.per_page}"
            raise ValueError(msg)
        overrides["per_page"] = args.per_page
    if args.membership_only:
        overrides["membership_only"] = True
    return dataclasses.replace(config, **overrides)


async def run_collector(
    config: GitLabCollectorConfig,
    sink: MetricsSink,
    *,
    stop_signals: cabc.Iterable[signal.Signals] = _STOP_SIGNALS,
) -> tuple[StreamResult, ...]:
    """Collect until every stream finishes or a stop signal arrives."""
    collector = GitLabCollector(config, sink)
    await collector.start()

    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    installed: list[signal.Signals] = []
    for sig in stop_signals:
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_requested.set)
            installed.append(sig)

    finished = asyncio.create_task(collector.wait())
    interrupted = asyncio.create_task(stop_requested.wait())
    try:
        await asyncio.wait(
            {finished, interrupted}, return_when=asyncio.FIRST_COMPLETED
        )
        if stop_requested.is_set():
            log_info(logger, "Stop requested; draining in-flight pages")
    finally:
        interrupted.cancel()
        await collector.stop()
        await finished
        for sig in installed:
            loop.remove_signal_handler(sig)
    return collector.results


def main(argv: list[str] | None = None) -> int:
    """Run one collection cycle and write measurements to stdout.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on configuration or startup failure.

    """
    args = _parse_args(argv)
    normalized_level, invalid_level = configure_logging(args.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            args.log_level,
            normalized_level,
        )

    try:
        config = build_config(args)
    except (GitLabConfigError, ValueError) as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        return 1

    sink = JsonLinesSink(sys.stdout)
    try:
        results = asyncio.run(run_collector(config, sink))
    except (GitLabConfigError, GitLabCollectionError) as exc:
        log_error(logger, "Collector failed to start: %s", exc)
        return 1

    log_info(
        logger,
        "Collection finished: streams=%d measurements=%d errors=%d",
        len(results),
        sink.measurements_written,
        sink.errors_written,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
