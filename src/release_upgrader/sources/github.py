"""
GitHub release source for the release upgrader.

This module fetches releases through the GitHub REST API:
- GET /repos/{owner}/{name}/releases/latest
- GET /repos/{owner}/{name}/releases

Each release record is decoded into a Release whose artifact URL is the
auto-generated zipball, which wraps the tree in a single root directory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from release_upgrader.errors import UnavailableError
from release_upgrader.logging import get_logger
from release_upgrader.release import Release
from release_upgrader.sources.base import ReleaseSource

if TYPE_CHECKING:
    from release_upgrader.config import GitHubConfig

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_USER_AGENT = "release-upgrader"


class GitHubReleaseSource(ReleaseSource):
    """
    Release source backed by the GitHub releases API.

    Attributes:
        repository: Repository in "owner/name" form.
        per_page: Number of releases requested per listing.

    Example:
        >>> source = GitHubReleaseSource("acme/webapp")
        >>> source.get_latest_release().version
        'v2.0.3'
    """

    def __init__(
        self,
        repository: str,
        client: httpx.Client | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        token: str | None = None,
        timeout: float = 30.0,
        per_page: int = 30,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """
        Initialize the GitHub release source.

        Args:
            repository: Repository in "owner/name" form.
            client: Optional preconfigured HTTP client. When omitted a client
                is built from ``api_url``, ``token`` and ``timeout``.
            api_url: GitHub REST API base URL.
            token: Optional API token.
            timeout: Request timeout in seconds.
            per_page: Releases requested per listing.
            user_agent: User-Agent header.
        """
        self.repository = repository
        self.per_page = per_page

        if client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "User-Agent": user_agent,
            }
            if token:
                headers["Authorization"] = f"Bearer {token}"
            client = httpx.Client(base_url=api_url, headers=headers, timeout=timeout)
        self._client = client

    @classmethod
    def from_config(
        cls,
        repository: str,
        config: GitHubConfig,
        client: httpx.Client | None = None,
    ) -> GitHubReleaseSource:
        """
        Create a GitHubReleaseSource from configuration.

        Args:
            repository: Repository in "owner/name" form.
            config: GitHubConfig with API settings.
            client: Optional preconfigured HTTP client.

        Returns:
            Configured GitHubReleaseSource instance.
        """
        return cls(
            repository,
            client,
            api_url=config.api_url,
            token=config.token,
            timeout=config.timeout_seconds,
            per_page=config.per_page,
            user_agent=config.user_agent,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        Issue a GET request and decode the JSON body.

        Raises:
            UnavailableError: On transport errors, error statuses or an
                undecodable body.
        """
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "GitHub API returned an error status",
                extra={"path": path, "status_code": e.response.status_code},
            )
            raise UnavailableError(
                f"GitHub API request failed with status {e.response.status_code}",
                details={"path": path, "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "GitHub API request failed",
                extra={"path": path, "error": str(e)},
            )
            raise UnavailableError(
                f"GitHub API request failed: {e}",
                details={"path": path, "error": str(e)},
            ) from e
        except ValueError as e:
            raise UnavailableError(
                "GitHub API returned an invalid JSON body",
                details={"path": path, "error": str(e)},
            ) from e

    def _parse_release(self, record: Any) -> Release:
        """Decode a single release record."""
        if not isinstance(record, dict):
            raise UnavailableError(
                "Unexpected release record from GitHub API",
                details={"repository": self.repository, "record": repr(record)},
            )
        try:
            return Release.from_record(record)
        except KeyError as e:
            raise UnavailableError(
                f"Release record is missing field {e}",
                details={"repository": self.repository, "field": str(e)},
            ) from e
        except ValueError as e:
            raise UnavailableError(
                "Release record could not be decoded",
                details={"repository": self.repository, "error": str(e)},
            ) from e

    def get_latest_release(self) -> Release:
        data = self._get_json(f"/repos/{self.repository}/releases/latest")
        release = self._parse_release(data)
        logger.debug(
            "Fetched latest release",
            extra={"repository": self.repository, "version": release.version},
        )
        return release

    def get_all_releases(self) -> list[Release]:
        data = self._get_json(
            f"/repos/{self.repository}/releases",
            params={"per_page": self.per_page},
        )
        if not isinstance(data, list):
            raise UnavailableError(
                "Unexpected releases listing from GitHub API",
                details={"repository": self.repository},
            )
        releases = [self._parse_release(record) for record in data]
        logger.debug(
            "Fetched releases",
            extra={"repository": self.repository, "count": len(releases)},
        )
        return releases
