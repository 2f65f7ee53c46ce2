"""
Release sources for the release upgrader.

This package contains the ReleaseSource abstraction and the provider
implementations, plus a factory that picks one from configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from release_upgrader.config import GitHubConfig
from release_upgrader.errors import InvalidArgumentError
from release_upgrader.sources.base import ReleaseSource
from release_upgrader.sources.github import GitHubReleaseSource

if TYPE_CHECKING:
    import httpx

    from release_upgrader.config import UpgradeConfig

__all__ = [
    "ReleaseSource",
    "GitHubReleaseSource",
    "create_release_source",
]


def create_release_source(
    config: UpgradeConfig,
    github: GitHubConfig | None = None,
    client: httpx.Client | None = None,
) -> ReleaseSource:
    """
    Create the release source for the configured repository provider.

    Args:
        config: Upgrade settings naming the provider and repository.
        github: GitHub API settings (defaults are used when omitted).
        client: Optional preconfigured HTTP client.

    Returns:
        A ReleaseSource for the repository.

    Raises:
        InvalidArgumentError: If the provider is not supported or no
            repository is configured.
    """
    if not config.repository_identifier:
        raise InvalidArgumentError(
            "No repository identifier configured",
            details={"repository_provider": config.repository_provider},
        )

    if config.repository_provider == "github":
        return GitHubReleaseSource.from_config(
            config.repository_identifier,
            github or GitHubConfig(),
            client,
        )

    raise InvalidArgumentError(
        f"Unsupported repository provider: {config.repository_provider}",
        details={"repository_provider": config.repository_provider},
    )
