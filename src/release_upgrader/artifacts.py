"""
Artifact download and installation for the release upgrader.

This module implements the ArtifactHandler, which downloads a release archive
to a local path and installs it into the project directory.

Installation steps:
1. Verify the artifact was downloaded and the target directory exists
2. Remove excluded resources from the archive itself (before extraction), so
   excluded files never reach the target and local copies are never clobbered
3. Reopen the archive and extract it, optionally stripping the single
   top-level directory that release zipballs wrap their files in

The archive is opened twice on purpose: once to rewrite it without the
excluded entries (closed to persist the result), then again read-only to
extract it.
"""

from __future__ import annotations

import os
import tempfile
import zipfile
from collections.abc import Sequence
from pathlib import Path

import httpx

from release_upgrader.errors import (
    ArtifactNotDownloadableError,
    ArtifactNotInstallableError,
)
from release_upgrader.logging import get_logger
from release_upgrader.operations import atomic_write_bytes, copy_tree, ensure_directory

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "release-upgrader"
DEFAULT_TIMEOUT = 60.0


def _is_excluded(entry_name: str, excluded_resources: Sequence[str]) -> bool:
    """True if any excluded fragment occurs anywhere in the entry name."""
    return any(fragment in entry_name for fragment in excluded_resources)


class ArtifactHandler:
    """
    Downloads release archives and installs them into a target directory.

    The handler keeps no state between calls besides its HTTP client.

    Attributes:
        timeout: Request timeout in seconds.
        user_agent: User-Agent header sent with download requests.

    Example:
        >>> handler = ArtifactHandler()
        >>> handler.download("https://example.com/v1.2.0.zip", "/tmp/v1.2.0.zip")
        True
        >>> handler.install("/tmp/v1.2.0.zip", "/var/www/app", ["config/"])
        True
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """
        Initialize the ArtifactHandler.

        Args:
            client: Optional HTTP client. A short-lived client is created per
                download when omitted.
            timeout: Request timeout in seconds.
            user_agent: User-Agent header for download requests.
        """
        self._client = client
        self.timeout = timeout
        self.user_agent = user_agent

    # =========================================================================
    # Download
    # =========================================================================

    def download(self, artifact_url: str, destination_path: Path | str) -> bool:
        """
        Download an artifact to a local path.

        Args:
            artifact_url: URL of the release archive.
            destination_path: Where to save the archive. Missing parent
                directories are created.

        Returns:
            True if the artifact was written.

        Raises:
            ArtifactNotDownloadableError: If the transfer fails, the response
                is not successful, or the file cannot be written.
            DirectoryNotExistsError: If the parent directory cannot be created.
        """
        destination = Path(destination_path)
        content = self._fetch(artifact_url)

        ensure_directory(destination.parent)

        try:
            written = atomic_write_bytes(destination, content)
        except OSError as e:
            raise ArtifactNotDownloadableError(
                f"The artifact could not be saved to {destination}",
                details={"path": str(destination), "error": str(e)},
            ) from e

        logger.info(
            "Artifact downloaded",
            extra={"url": artifact_url, "path": str(destination), "bytes": written},
        )
        return written == len(content)

    def _fetch(self, artifact_url: str) -> bytes:
        """
        Retrieve the artifact bytes, following redirects.

        Raises:
            ArtifactNotDownloadableError: On transport errors or a
                non-success status.
        """
        headers = {"User-Agent": self.user_agent}

        try:
            if self._client is not None:
                response = self._client.get(
                    artifact_url, headers=headers, follow_redirects=True
                )
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(
                        artifact_url, headers=headers, follow_redirects=True
                    )
        except httpx.HTTPError as e:
            logger.warning(
                "Artifact request failed",
                extra={"url": artifact_url, "error": str(e)},
            )
            raise ArtifactNotDownloadableError(
                "The artifact could not be downloaded",
                details={"url": artifact_url, "error": str(e)},
            ) from e

        if not response.is_success:
            logger.warning(
                "Artifact request returned an error status",
                extra={"url": artifact_url, "status_code": response.status_code},
            )
            raise ArtifactNotDownloadableError(
                "The artifact could not be downloaded",
                details={"url": artifact_url, "status_code": response.status_code},
            )

        return response.content

    # =========================================================================
    # Install
    # =========================================================================

    def install(
        self,
        artifact_path: Path | str,
        target_directory: Path | str,
        excluded_resources: Sequence[str] = (),
        has_root_directory: bool = True,
    ) -> bool:
        """
        Install a downloaded archive into a target directory.

        Args:
            artifact_path: Path to the downloaded archive.
            target_directory: Directory to install into (created if missing).
            excluded_resources: Path fragments; any archive entry whose name
                contains one of them is not installed.
            has_root_directory: Whether the archive wraps its files in a
                single top-level directory that must be stripped.

        Returns:
            True once every step completed and the archive was closed.

        Raises:
            ArtifactNotInstallableError: If the artifact is missing, cannot be
                opened, fewer entries than requested could be excluded, or
                extraction fails.
            DirectoryNotExistsError: If the target directory cannot be created.
        """
        artifact = Path(artifact_path)
        target = Path(target_directory)

        self._assert_artifact_was_downloaded(artifact)
        ensure_directory(target)

        if excluded_resources:
            self._remove_excluded_entries(artifact, excluded_resources)

        installed = self._extract(artifact, target, has_root_directory)

        logger.info(
            "Artifact installed",
            extra={
                "artifact": str(artifact),
                "target": str(target),
                "excluded_resources": list(excluded_resources),
                "has_root_directory": has_root_directory,
            },
        )
        return installed

    def _assert_artifact_was_downloaded(self, artifact: Path) -> None:
        if not artifact.exists():
            raise ArtifactNotInstallableError(
                "The artifact must be downloaded before installing",
                details={"artifact": str(artifact)},
            )

    def _open_archive(self, artifact: Path) -> zipfile.ZipFile:
        """
        Open the archive for reading.

        Raises:
            ArtifactNotInstallableError: If the file is not a readable zip.
        """
        try:
            return zipfile.ZipFile(artifact)
        except (zipfile.BadZipFile, OSError) as e:
            raise ArtifactNotInstallableError(
                "The artifact could not be opened",
                details={"artifact": str(artifact), "error": str(e)},
            ) from e

    def _remove_excluded_entries(
        self,
        artifact: Path,
        excluded_resources: Sequence[str],
    ) -> int:
        """
        Delete every archive entry matching an excluded fragment.

        An entry matches when any fragment is a substring of its name. The
        surviving entries are written to a sibling file that atomically
        replaces the archive once both handles are closed.

        Returns:
            Number of entries removed.

        Raises:
            ArtifactNotInstallableError: If the archive cannot be rewritten or
                fewer entries were removed than exclusions requested.
        """
        rewritten_path = artifact.with_name(f"{artifact.name}.tmp")
        removed = 0

        with self._open_archive(artifact) as archive:
            try:
                with zipfile.ZipFile(rewritten_path, "w") as rewritten:
                    for info in archive.infolist():
                        if _is_excluded(info.filename, excluded_resources):
                            removed += 1
                            continue
                        rewritten.writestr(info, archive.read(info))
            except (zipfile.BadZipFile, OSError) as e:
                rewritten_path.unlink(missing_ok=True)
                raise ArtifactNotInstallableError(
                    "The artifact could not be rewritten without excluded resources",
                    details={"artifact": str(artifact), "error": str(e)},
                ) from e

        try:
            os.replace(rewritten_path, artifact)
        except OSError as e:
            rewritten_path.unlink(missing_ok=True)
            raise ArtifactNotInstallableError(
                "The artifact could not be rewritten without excluded resources",
                details={"artifact": str(artifact), "error": str(e)},
            ) from e

        logger.debug(
            "Removed excluded resources from artifact",
            extra={
                "artifact": str(artifact),
                "removed": removed,
                "requested": len(excluded_resources),
            },
        )

        if removed < len(excluded_resources):
            raise ArtifactNotInstallableError(
                "Some resources could not be deleted from the artifact",
                details={
                    "artifact": str(artifact),
                    "removed": removed,
                    "excluded_resources": list(excluded_resources),
                },
            )

        return removed

    def _extract(self, artifact: Path, target: Path, has_root_directory: bool) -> bool:
        """
        Extract the archive into the target directory.

        Raises:
            ArtifactNotInstallableError: If extraction or copying fails.
        """
        with self._open_archive(artifact) as archive:
            try:
                if not has_root_directory:
                    archive.extractall(target)
                    return True

                names = archive.namelist()
                if not names:
                    raise ArtifactNotInstallableError(
                        "The artifact is empty",
                        details={"artifact": str(artifact)},
                    )
                root_directory_name = names[0].split("/", 1)[0]

                with tempfile.TemporaryDirectory(prefix="zip_extract_") as temp_dir:
                    archive.extractall(temp_dir)
                    copy_tree(Path(temp_dir) / root_directory_name, target)
            except (zipfile.BadZipFile, OSError) as e:
                raise ArtifactNotInstallableError(
                    "The artifact could not be installed",
                    details={
                        "artifact": str(artifact),
                        "target": str(target),
                        "error": str(e),
                    },
                ) from e

        return True
