"""Unit tests for collector configuration loading and validation."""

from __future__ import annotations

import pytest

from labmetrics.gitlab.config import GitLabCollectorConfig
from labmetrics.gitlab.errors import GitLabConfigError

_ENV_VARS = (
    "LABMETRICS_GITLAB_ENDPOINT",
    "LABMETRICS_GITLAB_TOKEN",
    "LABMETRICS_GITLAB_REPOS",
    "LABMETRICS_PER_PAGE",
    "LABMETRICS_HTTP_TIMEOUT",
    "LABMETRICS_GITLAB_MEMBERSHIP_ONLY",
    "LABMETRICS_DRAIN_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove collector variables so host settings cannot leak in."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_from_env_applies_defaults(clean_env: pytest.MonkeyPatch) -> None:
    """Only a token is required; everything else has a default."""
    clean_env.setenv("LABMETRICS_GITLAB_TOKEN", " secret ")

    config = GitLabCollectorConfig.from_env()

    assert config.token == "secret"
    assert config.endpoint == "https://gitlab.com"
    assert config.repos == ()
    assert config.per_page == 100
    assert config.timeout_s == 20.0
    assert config.membership_only is False
    assert config.drain_timeout_s == 30.0


def test_from_env_reads_every_variable(clean_env: pytest.MonkeyPatch) -> None:
    """Each LABMETRICS_* variable maps onto its config field."""
    clean_env.setenv("LABMETRICS_GITLAB_TOKEN", "secret")
    clean_env.setenv("LABMETRICS_GITLAB_ENDPOINT", "https://git.internal.test")
    clean_env.setenv("LABMETRICS_GITLAB_REPOS", "billing, web,, ops ")
    clean_env.setenv("LABMETRICS_PER_PAGE", "50")
    clean_env.setenv("LABMETRICS_HTTP_TIMEOUT", "5.5")
    clean_env.setenv("LABMETRICS_GITLAB_MEMBERSHIP_ONLY", "Yes")
    clean_env.setenv("LABMETRICS_DRAIN_TIMEOUT", "2")

    config = GitLabCollectorConfig.from_env()

    assert config.endpoint == "https://git.internal.test"
    assert config.repos == ("billing", "web", "ops")
    assert config.per_page == 50
    assert config.timeout_s == 5.5
    assert config.membership_only is True
    assert config.drain_timeout_s == 2.0


def test_from_env_requires_token(clean_env: pytest.MonkeyPatch) -> None:
    """A missing token is a configuration error."""
    clean_env.setenv("LABMETRICS_GITLAB_TOKEN", "   ")

    with pytest.raises(GitLabConfigError, match="LABMETRICS_GITLAB_TOKEN"):
        GitLabCollectorConfig.from_env()


@pytest.mark.parametrize(
    ("name", "value", "match"),
    [
        ("LABMETRICS_PER_PAGE", "many", "must be an integer"),
        ("LABMETRICS_PER_PAGE", "0", "must be positive"),
        ("LABMETRICS_HTTP_TIMEOUT", "soon", "must be a number"),
        ("LABMETRICS_DRAIN_TIMEOUT", "-1", "must be positive"),
    ],
)
def test_from_env_rejects_bad_numbers(
    clean_env: pytest.MonkeyPatch, name: str, value: str, match: str
) -> None:
    """Malformed or non-positive numbers are rejected with the variable name."""
    clean_env.setenv("LABMETRICS_GITLAB_TOKEN", "secret")
    clean_env.setenv(name, value)

    with pytest.raises(ValueError, match=match) as exc:
        GitLabCollectorConfig.from_env()

    assert name in str(exc.value)


@pytest.mark.parametrize(
    ("endpoint", "expected"),
    [
        ("https://gitlab.com", "https://gitlab.com/api/v4"),
        ("https://gitlab.com/", "https://gitlab.com/api/v4"),
        ("https://git.example.test/gitlab", "https://git.example.test/gitlab/api/v4"),
        ("https://gitlab.com/api/v4", "https://gitlab.com/api/v4"),
        ("https://gitlab.com/api/v4/", "https://gitlab.com/api/v4"),
    ],
)
def test_api_base_url(endpoint: str, expected: str) -> None:
    """The API root is appended once and trailing slashes are dropped."""
    config = GitLabCollectorConfig(token="t", endpoint=endpoint)

    assert config.api_base_url == expected


def test_validate_accepts_http_and_https() -> None:
    """Absolute http(s) URLs with a host pass validation."""
    GitLabCollectorConfig(token="t", endpoint="https://gitlab.com").validate()
    GitLabCollectorConfig(token="t", endpoint="http://localhost:8080").validate()


@pytest.mark.parametrize(
    "endpoint",
    ["ftp://gitlab.example.test", "gitlab.example.test", "https://"],
)
def test_validate_rejects_malformed_endpoints(endpoint: str) -> None:
    """Endpoints without an http(s) scheme and host are rejected."""
    config = GitLabCollectorConfig(token="t", endpoint=endpoint)

    with pytest.raises(GitLabConfigError, match="invalid URL"):
        config.validate()


def test_validate_rejects_blank_token() -> None:
    """A whitespace-only token is rejected."""
    config = GitLabCollectorConfig(token=" ", endpoint="https://gitlab.com")

    with pytest.raises(GitLabConfigError, match="non-empty"):
        config.validate()
