"""
Release source abstraction for the release upgrader.

This module defines the ReleaseSource abstract base class that every release
provider implements. Providers only need to know how to list releases and how
to fetch the latest one; exact-version and per-major lookups are derived from
the full listing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from release_upgrader.errors import ReleaseNotFoundError
from release_upgrader.release import Release
from release_upgrader.version import Version


class ReleaseSource(ABC):
    """
    Abstract base class for release sources.

    Release sources are responsible for:
    - Fetching published releases from a hosting provider
    - Decoding each upstream record into a Release

    Concrete implementations include:
    - GitHubReleaseSource: GitHub REST API releases

    The source abstraction separates "where releases come from" from the
    upgrade decision policy and the artifact pipeline.
    """

    @abstractmethod
    def get_latest_release(self) -> Release:
        """
        Get the release the provider marks as latest.

        Raises:
            UnavailableError: If the provider is unreachable.
        """

    @abstractmethod
    def get_all_releases(self) -> list[Release]:
        """
        Get all releases in the provider's order (usually newest first).

        Raises:
            UnavailableError: If the provider is unreachable.
        """

    def close(self) -> None:
        """Release any resources held by the source."""

    def get_release(self, version: Version) -> Release | None:
        """
        Find the release whose normalized version equals ``version``.

        Tags are normalized before comparison, so "v1.2" matches "1.2.0".

        Returns:
            The matching release, or None if there is none.

        Raises:
            InvalidVersionError: If a published tag is not a semantic version.
        """
        wanted = version.full_semver
        for release in self.get_all_releases():
            if Version.parse(release.version).full_semver == wanted:
                return release
        return None

    def get_release_by_major(self, major: int) -> Release:
        """
        Get the most recently published release within a major version.

        Releases with equal dates keep their listing order, and the later
        listed one wins.

        Raises:
            ReleaseNotFoundError: If no release has that major version.
            InvalidVersionError: If a published tag is not a semantic version.
        """
        candidates = [
            release
            for release in self.get_all_releases()
            if Version.parse(release.version).major == major
        ]
        if not candidates:
            raise ReleaseNotFoundError(
                f"No release found for major version {major}",
                details={"major": major},
            )

        candidates.sort(key=lambda release: release.date)
        return candidates[-1]
