"""GitLab activity metrics collector.

Polls a GitLab-compatible API for merge requests and commits and hands the
normalized measurements to a metrics sink.
"""

from __future__ import annotations

from .collector import CollectorState, GitLabCollector, StreamOutcome, StreamResult
from .sink import JsonLinesSink, Measurement, MetricsSink

__all__ = [
    "CollectorState",
    "GitLabCollector",
    "JsonLinesSink",
    "Measurement",
    "MetricsSink",
    "StreamOutcome",
    "StreamResult",
]
