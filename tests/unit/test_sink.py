"""Unit tests for the JSON-lines metrics sink."""

from __future__ import annotations

import datetime as dt
import io

import msgspec

from labmetrics.gitlab.errors import RepositoryNotFoundError
from labmetrics.sink import JsonLinesSink, Measurement, MetricsSink, emit_measurement
from tests.unit.gitlab_test_helpers import RecordingSink


def _lines(buffer: io.StringIO) -> list[dict[str, object]]:
    return [msgspec.json.decode(line) for line in buffer.getvalue().splitlines()]


def test_json_lines_sink_satisfies_protocol() -> None:
    """The adapter and the test double both satisfy MetricsSink."""
    assert isinstance(JsonLinesSink(io.StringIO()), MetricsSink)
    assert isinstance(RecordingSink(), MetricsSink)


def test_emit_writes_one_line_per_measurement() -> None:
    """Each measurement becomes a JSON object on its own line."""
    buffer = io.StringIO()
    sink = JsonLinesSink(buffer)
    timestamp = dt.datetime(2024, 3, 1, 10, 0, tzinfo=dt.UTC)

    sink.emit("commits", {"stats": {"total": 4}, "status": None}, {"ID": "abc"}, timestamp)
    sink.emit("commits", {"stats": None}, {"ID": "def"}, timestamp)

    lines = _lines(buffer)
    assert len(lines) == 2
    assert lines[0] == {
        "measurement": "commits",
        "fields": {"stats": {"total": 4}, "status": None},
        "tags": {"ID": "abc"},
        "timestamp": "2024-03-01T10:00:00Z",
    }
    assert sink.measurements_written == 2
    assert sink.errors_written == 0


def test_report_error_writes_error_line() -> None:
    """Errors are written with their type and message."""
    buffer = io.StringIO()
    sink = JsonLinesSink(buffer)

    sink.report_error(RepositoryNotFoundError("web"))

    (line,) = _lines(buffer)
    assert line["error_type"] == "RepositoryNotFoundError"
    assert "web" in str(line["error"])
    assert "reported_at" in line
    assert sink.errors_written == 1


def test_exception_field_values_are_stringified() -> None:
    """Exception values inside fields are encoded as text."""
    buffer = io.StringIO()
    sink = JsonLinesSink(buffer)

    sink.emit(
        "debug",
        {"cause": ValueError("bad")},
        {},
        dt.datetime(2024, 1, 1, tzinfo=dt.UTC),
    )

    (line,) = _lines(buffer)
    assert line["fields"] == {"cause": "ValueError: bad"}


def test_emit_measurement_forwards_all_parts() -> None:
    """emit_measurement unpacks a Measurement onto sink.emit."""
    sink = RecordingSink()
    measurement = Measurement(
        name="merge_requests",
        fields={"upvotes": 1},
        tags={"state": "merged"},
        timestamp=dt.datetime(2024, 1, 1, tzinfo=dt.UTC),
    )

    emit_measurement(sink, measurement)

    assert sink.measurements == [measurement]
