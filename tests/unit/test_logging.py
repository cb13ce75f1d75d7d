"""Unit tests for femtologging integration helpers.

Run with:
    pytest tests/unit/test_logging.py
"""

from __future__ import annotations

import pytest

from labmetrics import logging as labmetrics_logging
from labmetrics.logging import (
    configure_logging,
    format_log_message,
    log_debug,
    log_exception,
    log_info,
    log_warning,
    normalize_log_level,
)
from tests.unit.gitlab_test_helpers import FakeLogger


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("debug", ("DEBUG", False)),
        (" warn ", ("WARN", False)),
        (None, ("INFO", True)),
        ("", ("INFO", True)),
        ("loud", ("INFO", True)),
    ],
)
def test_normalize_log_level(raw: str | None, expected: tuple[str, bool]) -> None:
    """Known levels are uppercased; anything else falls back to INFO."""
    assert normalize_log_level(raw) == expected


def test_configure_logging_passes_normalized_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """configure_logging hands the normalized level to femtologging."""
    captured: list[tuple[str, bool]] = []

    def _fake_basic_config(*, level: str, force: bool) -> None:
        captured.append((level, force))

    monkeypatch.setattr(labmetrics_logging, "basicConfig", _fake_basic_config)

    assert configure_logging("error", force=True) == ("ERROR", False)
    assert captured == [("ERROR", True)]


def test_format_log_message_without_args_keeps_percent_signs() -> None:
    """Templates without arguments are returned untouched."""
    assert format_log_message("100% done") == "100% done"
    assert format_log_message("%d pages", 3) == "3 pages"


def test_log_helpers_emit_levels_and_exc_info() -> None:
    """Each helper emits its own level and forwards exc_info."""
    logger = FakeLogger()
    exc = ValueError("boom")

    log_debug(logger, "page %d", 2)
    log_info(logger, "hello %s", "world")
    log_warning(logger, "careful: %s", "slow", exc_info=exc)
    log_exception(logger, "failed", exc)

    assert logger.calls == [
        ("DEBUG", "page 2", None),
        ("INFO", "hello world", None),
        ("WARNING", "careful: slow", exc),
        ("ERROR", "failed", exc),
    ]
