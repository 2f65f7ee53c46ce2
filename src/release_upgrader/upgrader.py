"""
Upgrade orchestration for the release upgrader.

The Upgrader composes a release source, the UpdateChecker decision policy and
the ArtifactHandler into three workflows:
- upgrade_to: a specific version, gated on same-major unless forced
- upgrade_to_latest: whatever the source marks as latest, no major gate
- upgrade_safely: the newest release within the installed major version

Every workflow returns False when no action is taken. Errors from the
artifact pipeline are not caught here and reach the caller unchanged. An
upgrade that gets as far as downloading requires upgrade.project_directory.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from release_upgrader.artifacts import ArtifactHandler
from release_upgrader.checker import UpdateChecker
from release_upgrader.config import AppConfig, UpgradeConfig
from release_upgrader.errors import InvalidArgumentError, InvalidVersionError
from release_upgrader.logging import get_logger
from release_upgrader.release import Release
from release_upgrader.sources import ReleaseSource, create_release_source
from release_upgrader.version import Version

logger = get_logger(__name__)


class UpgradeCandidate(BaseModel):
    """
    A release newer than the installed version.

    Attributes:
        version: Version tag as published.
        is_secure: Whether the release shares the installed major version.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., description="Version tag as published")
    is_secure: bool = Field(..., description="Same major as the installed version")


class Upgrader:
    """
    Runs upgrade workflows for one installed version.

    Attributes:
        current_version: The installed version, fixed at construction.
        config: Project and upgrade settings.
    """

    def __init__(
        self,
        current_version: str | Version,
        config: UpgradeConfig,
        source: ReleaseSource,
        artifact_handler: ArtifactHandler | None = None,
        checker: UpdateChecker | None = None,
    ) -> None:
        """
        Initialize the Upgrader.

        Args:
            current_version: Installed version.
            config: Project and upgrade settings.
            source: Release source to query.
            artifact_handler: Download/install pipeline (default handler if None).
            checker: Decision policy (built from current_version if None).

        Raises:
            InvalidVersionError: If current_version is malformed.
        """
        if isinstance(current_version, Version):
            self.current_version = current_version
        else:
            self.current_version = Version.parse(current_version)
        self.config = config
        self._source = source
        self._artifact_handler = artifact_handler or ArtifactHandler()
        self._checker = checker or UpdateChecker(self.current_version)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        current_version: str | Version | None = None,
    ) -> Upgrader:
        """
        Create an Upgrader with the default collaborators for a configuration.

        Args:
            config: Application configuration.
            current_version: Installed version; falls back to
                ``config.upgrade.installed_version``.

        Returns:
            Configured Upgrader instance.

        Raises:
            InvalidVersionError: If no installed version is known or it is
                malformed.
            InvalidArgumentError: If the repository provider is unsupported.
        """
        version = current_version or config.upgrade.installed_version
        if version is None:
            raise InvalidVersionError(
                "No installed version configured",
                details={"hint": "Set upgrade.installed_version"},
            )

        source = create_release_source(config.upgrade, config.github)
        handler = ArtifactHandler(
            timeout=config.github.timeout_seconds,
            user_agent=config.github.user_agent,
        )
        return cls(version, config.upgrade, source, handler)

    @property
    def source(self) -> ReleaseSource:
        return self._source

    @property
    def checker(self) -> UpdateChecker:
        return self._checker

    def upgrade_to(self, version: str, force: bool = False) -> bool:
        """
        Upgrade to a specific published version.

        Args:
            version: Target version (e.g., "1.2.0" or "v1.2").
            force: Allow crossing a major version boundary.

        Returns:
            The install outcome, or False if the release does not exist, is
            not newer, or is a cross-major upgrade without ``force``.

        Raises:
            InvalidVersionError: If ``version`` is malformed.
        """
        release = self._source.get_release(Version.parse(version))
        if release is None or not self._checker.is_update_needed(release):
            logger.info(
                "No upgrade needed",
                extra={
                    "requested": version,
                    "current": self.current_version.full_semver,
                },
            )
            return False

        if not force and not self._checker.is_secure_to_upgrade(release):
            logger.warning(
                "Refusing cross-major upgrade without force",
                extra={
                    "requested": release.version,
                    "current": self.current_version.full_semver,
                },
            )
            return False

        return self._upgrade(release)

    def upgrade_to_latest(self) -> bool:
        """
        Upgrade to the latest published release, even across majors.

        Returns:
            The install outcome, or False if the latest release is not newer.
        """
        release = self._source.get_latest_release()
        if not self._checker.is_update_needed(release):
            logger.info(
                "Already at the latest release",
                extra={
                    "latest": release.version,
                    "current": self.current_version.full_semver,
                },
            )
            return False

        return self._upgrade(release)

    def upgrade_safely(self) -> bool:
        """
        Upgrade to the newest release within the installed major version.

        Returns:
            The install outcome, or False if that release is not newer.

        Raises:
            ReleaseNotFoundError: If the source has no release for the
                installed major version.
        """
        release = self._source.get_release_by_major(self.current_version.major)
        if not self._checker.is_update_needed(release):
            logger.info(
                "No newer release within major version",
                extra={
                    "major": self.current_version.major,
                    "candidate": release.version,
                },
            )
            return False

        return self._upgrade(release)

    def get_upgrade_candidates(self) -> dict[str, UpgradeCandidate]:
        """
        List every release newer than the installed version.

        Returns:
            Mapping from the published version string to its candidate entry.
        """
        candidates: dict[str, UpgradeCandidate] = {}
        for release in self._source.get_all_releases():
            if Version.parse(release.version).gt(self.current_version):
                candidates[release.version] = UpgradeCandidate(
                    version=release.version,
                    is_secure=self._checker.is_secure_to_upgrade(release),
                )
        return candidates

    def artifact_path(self, release: Release) -> Path:
        """Local path the release archive is downloaded to."""
        staging_dir = self.config.staging_dir or tempfile.gettempdir()
        return Path(staging_dir) / f"{release.version}.zip"

    def _upgrade(self, release: Release) -> bool:
        """Download the release archive and install it into the project."""
        if not self.config.project_directory:
            raise InvalidArgumentError(
                "No project directory configured",
                details={"hint": "Set upgrade.project_directory"},
            )

        artifact_path = self.artifact_path(release)

        logger.info(
            "Upgrading",
            extra={
                "from_version": self.current_version.full_semver,
                "to_version": release.version,
                "artifact_url": release.artifact_url,
                "artifact_path": str(artifact_path),
            },
        )

        if not self._artifact_handler.download(release.artifact_url, artifact_path):
            logger.error(
                "Artifact download did not complete",
                extra={"to_version": release.version},
            )
            return False

        installed = self._artifact_handler.install(
            artifact_path,
            self.config.project_directory,
            self.config.excluded_resources,
            self.config.has_root_directory,
        )

        logger.info(
            "Upgrade finished",
            extra={"to_version": release.version, "installed": installed},
        )
        return installed
