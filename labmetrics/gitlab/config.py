"""Configuration for the GitLab collector.

Usage
-----
Build a configuration directly:

>>> config = GitLabCollectorConfig(endpoint="https://gitlab.com", token="t")
>>> config.api_base_url
'https://gitlab.com/api/v4'

Or load it from environment variables:

>>> import os
>>> os.environ["LABMETRICS_GITLAB_TOKEN"] = "t"
>>> os.environ["LABMETRICS_GITLAB_REPOS"] = "billing, web"
>>> GitLabCollectorConfig.from_env().repos
('billing', 'web')

"""

from __future__ import annotations

import dataclasses as dc
import os

import httpx

from .errors import GitLabConfigError

DEFAULT_ENDPOINT = "https://gitlab.com"
DEFAULT_PER_PAGE = 100
_API_PATH = "/api/v4"
_ALLOWED_SCHEMES = frozenset({"http", "https"})
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _split_repos(raw: str) -> tuple[str, ...]:
    return tuple(name.strip() for name in raw.split(",") if name.strip())


def _env_positive_int(env_var: str, default: int) -> int:
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < 1:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


def _env_positive_float(env_var: str, default: float) -> float:
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        msg = f"{env_var} must be a number, got: {raw!r}"
        raise ValueError(msg) from exc
    if value <= 0:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


@dc.dataclass(frozen=True, slots=True)
class GitLabCollectorConfig:
    """Settings for one collector instance.

    Attributes
    ----------
    endpoint
        Base URL of the GitLab instance. ``/api/v4`` is appended when the
        path does not already end with it.
    token
        Personal access token sent as a bearer credential (``api`` or
        ``read_api`` scope).
    repos
        Repository display names whose commits should be collected. Each is
        matched exactly against project names.
    per_page
        Page size requested from list endpoints.
    timeout_s
        HTTP timeout applied to every request.
    membership_only
        Restrict the project listing to projects the token's user belongs to.
    drain_timeout_s
        Upper bound on how long ``stop()`` waits for streams to finish their
        in-flight page before cancelling them.
    user_agent
        ``User-Agent`` header sent with every request.

    """

    token: str
    endpoint: str = DEFAULT_ENDPOINT
    repos: tuple[str, ...] = ()
    per_page: int = DEFAULT_PER_PAGE
    timeout_s: float = 20.0
    membership_only: bool = False
    drain_timeout_s: float = 30.0
    user_agent: str = "labmetrics/0.1"

    @property
    def api_base_url(self) -> str:
        """Return the REST API root derived from ``endpoint``."""
        base = self.endpoint.strip().rstrip("/")
        if base.endswith(_API_PATH):
            return base
        return f"{base}{_API_PATH}"

    def validate(self) -> None:
        """Check the endpoint and token before any network call.

        Raises
        ------
        GitLabConfigError
            If the endpoint is not an absolute http(s) URL or the token is
            blank.

        """
        endpoint = self.endpoint.strip()
        try:
            url = httpx.URL(endpoint)
        except httpx.InvalidURL as exc:
            raise GitLabConfigError.invalid_endpoint(endpoint, str(exc)) from exc
        if url.scheme not in _ALLOWED_SCHEMES:
            raise GitLabConfigError.invalid_endpoint(
                endpoint, "scheme must be http or https"
            )
        if not url.host:
            raise GitLabConfigError.invalid_endpoint(endpoint, "missing host")
        if not self.token.strip():
            raise GitLabConfigError.empty_token()

    @classmethod
    def from_env(cls) -> GitLabCollectorConfig:
        """Create configuration from ``LABMETRICS_*`` environment variables.

        Reads ``LABMETRICS_GITLAB_ENDPOINT``, ``LABMETRICS_GITLAB_TOKEN``,
        ``LABMETRICS_GITLAB_REPOS`` (comma separated),
        ``LABMETRICS_PER_PAGE``, ``LABMETRICS_HTTP_TIMEOUT``,
        ``LABMETRICS_GITLAB_MEMBERSHIP_ONLY`` and
        ``LABMETRICS_DRAIN_TIMEOUT``.

        Raises
        ------
        GitLabConfigError
            If no token is configured.
        ValueError
            If a numeric variable is malformed or not positive.

        """
        token = os.environ.get("LABMETRICS_GITLAB_TOKEN", "").strip()
        if not token:
            raise GitLabConfigError.missing_token()

        endpoint = (
            os.environ.get("LABMETRICS_GITLAB_ENDPOINT", "").strip()
            or DEFAULT_ENDPOINT
        )
        membership_raw = os.environ.get("LABMETRICS_GITLAB_MEMBERSHIP_ONLY", "")
        return cls(
            token=token,
            endpoint=endpoint,
            repos=_split_repos(os.environ.get("LABMETRICS_GITLAB_REPOS", "")),
            per_page=_env_positive_int("LABMETRICS_PER_PAGE", DEFAULT_PER_PAGE),
            timeout_s=_env_positive_float("LABMETRICS_HTTP_TIMEOUT", 20.0),
            membership_only=membership_raw.strip().lower() in _TRUTHY,
            drain_timeout_s=_env_positive_float("LABMETRICS_DRAIN_TIMEOUT", 30.0),
        )
