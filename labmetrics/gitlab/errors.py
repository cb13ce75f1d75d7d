"""GitLab collection errors."""

from __future__ import annotations


class GitLabCollectionError(RuntimeError):
    """Base class for failures while fetching data from GitLab."""


class GitLabAPIError(GitLabCollectionError):
    """Raised when GitLab returns an error response or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        """Initialise with a message, optional HTTP status code and URL."""
        self.status_code = status_code
        self.url = url
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, url: str) -> GitLabAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"GitLab API HTTP {status_code} for {url}",
            status_code=status_code,
            url=url,
        )

    @classmethod
    def transport_error(cls, url: str, cause: BaseException) -> GitLabAPIError:
        """Return an error for requests that never produced a response."""
        return cls(f"unable to perform HTTP GET on {url!r}: {cause}", url=url)

    @property
    def is_transport_failure(self) -> bool:
        """Return True when no HTTP status was received."""
        return self.status_code is None


class GitLabResponseShapeError(GitLabCollectionError):
    """Raised when a GitLab response body cannot be decoded as expected."""

    @classmethod
    def undecodable(cls, resource: str, detail: object) -> GitLabResponseShapeError:
        """Return an error for a body that does not match the expected shape."""
        return cls(f"GitLab {resource} response has unexpected shape: {detail}")


class GitLabConfigError(RuntimeError):
    """Raised when collector configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitLabConfigError:
        """Return an error when no GitLab token is configured."""
        return cls("LABMETRICS_GITLAB_TOKEN is required for the GitLab API")

    @classmethod
    def empty_token(cls) -> GitLabConfigError:
        """Return an error when the provided token is blank."""
        return cls("GitLab token must be non-empty")

    @classmethod
    def invalid_endpoint(cls, endpoint: str, reason: str) -> GitLabConfigError:
        """Return an error for an endpoint that is not a usable URL."""
        return cls(f'invalid URL "{endpoint}": {reason}')


class RepositoryNotFoundError(LookupError):
    """Raised when a configured repository name matches no visible project."""

    def __init__(self, name: str) -> None:
        """Record the repository name that failed to resolve."""
        self.name = name
        super().__init__(f"repository {name!r} does not match any visible project")
