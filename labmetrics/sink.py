"""Metrics sink port and a JSON-lines adapter.

The collector only ever calls :meth:`MetricsSink.emit` and
:meth:`MetricsSink.report_error`; how measurements are shipped is up to the
adapter. Streams run concurrently, so adapters must tolerate interleaved
calls.

Usage
-----
>>> import io
>>> sink = JsonLinesSink(io.StringIO())
>>> isinstance(sink, MetricsSink)
True

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import threading
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    import collections.abc as cabc


@dc.dataclass(frozen=True, slots=True)
class Measurement:
    """One timestamped, tagged measurement.

    Attributes
    ----------
    name
        Measurement name, e.g. ``merge_requests``.
    fields
        Measured values.
    tags
        String labels used for grouping downstream.
    timestamp
        Time axis of the record.

    """

    name: str
    fields: cabc.Mapping[str, object]
    tags: cabc.Mapping[str, str]
    timestamp: dt.datetime


@typ.runtime_checkable
class MetricsSink(typ.Protocol):
    """Accumulator that receives measurements and asynchronous errors."""

    def emit(
        self,
        measurement: str,
        fields: cabc.Mapping[str, object],
        tags: cabc.Mapping[str, str],
        timestamp: dt.datetime,
    ) -> None:
        """Accept one measurement."""
        ...

    def report_error(self, error: BaseException) -> None:
        """Accept an error raised while collecting."""
        ...


def emit_measurement(sink: MetricsSink, measurement: Measurement) -> None:
    """Forward a :class:`Measurement` to ``sink``."""
    sink.emit(
        measurement.name,
        measurement.fields,
        measurement.tags,
        measurement.timestamp,
    )


def _encode_extra(value: object) -> object:
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    msg = f"cannot encode {type(value).__name__}"
    raise NotImplementedError(msg)


class JsonLinesSink:
    """Write measurements and errors as JSON objects, one per line.

    Measurement lines look like ``{"measurement": ..., "fields": ...,
    "tags": ..., "timestamp": ...}``; error lines carry ``"error"`` and
    ``"error_type"`` keys instead.
    """

    def __init__(self, stream: typ.TextIO) -> None:
        """Write to ``stream``; the caller owns its lifetime."""
        self._stream = stream
        self._lock = threading.Lock()
        self._encoder = msgspec.json.Encoder(enc_hook=_encode_extra)
        self.measurements_written = 0
        self.errors_written = 0

    def emit(
        self,
        measurement: str,
        fields: cabc.Mapping[str, object],
        tags: cabc.Mapping[str, str],
        timestamp: dt.datetime,
    ) -> None:
        """Write one measurement line."""
        payload = {
            "measurement": measurement,
            "fields": dict(fields),
            "tags": dict(tags),
            "timestamp": timestamp,
        }
        self._write(payload)
        with self._lock:
            self.measurements_written += 1

    def report_error(self, error: BaseException) -> None:
        """Write one error line."""
        payload = {
            "error": str(error),
            "error_type": type(error).__name__,
            "reported_at": dt.datetime.now(dt.UTC),
        }
        self._write(payload)
        with self._lock:
            self.errors_written += 1

    def _write(self, payload: dict[str, object]) -> None:
        line = self._encoder.encode(payload).decode("utf-8")
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()
