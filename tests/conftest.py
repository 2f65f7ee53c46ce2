"""
Pytest configuration and shared fixtures for the release upgrader tests.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from release_upgrader.release import Release
from release_upgrader.sources.base import ReleaseSource


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests "
        "(deselect with '-m \"not integration\"')",
    )


class InMemoryReleaseSource(ReleaseSource):
    """Release source serving a fixed list of releases."""

    def __init__(self, releases: list[Release], latest: Release | None = None) -> None:
        self.releases = releases
        self.latest = latest

    def get_latest_release(self) -> Release:
        if self.latest is not None:
            return self.latest
        return self.releases[0]

    def get_all_releases(self) -> list[Release]:
        return list(self.releases)


@pytest.fixture
def make_release() -> Callable[..., Release]:
    """Factory for Release objects with sensible defaults."""

    def _make(
        version: str,
        date: datetime | None = None,
        *,
        is_prerelease: bool = False,
        artifact_url: str | None = None,
    ) -> Release:
        return Release(
            version=version,
            date=date or datetime(2024, 1, 1, tzinfo=UTC),
            notes=f"Release notes for {version}",
            is_prerelease=is_prerelease,
            artifact_url=artifact_url or f"https://example.com/{version}.zip",
        )

    return _make


@pytest.fixture
def make_source() -> Callable[..., InMemoryReleaseSource]:
    """Factory for in-memory release sources."""

    def _make(
        releases: list[Release], latest: Release | None = None
    ) -> InMemoryReleaseSource:
        return InMemoryReleaseSource(releases, latest)

    return _make


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    """
    Factory building zip archives on disk.

    ``entries`` maps archive names to file contents; names ending with "/"
    become directory entries.
    """

    def _make(entries: dict[str, str], name: str = "artifact.zip") -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as archive:
            for entry_name, content in entries.items():
                if entry_name.endswith("/"):
                    archive.writestr(zipfile.ZipInfo(entry_name), "")
                else:
                    archive.writestr(entry_name, content)
        return path

    return _make


@pytest.fixture
def zipball_entries() -> dict[str, str]:
    """Entries of a GitHub-style zipball with a single root directory."""
    return {
        "acme-webapp-v1.1.0/": "",
        "acme-webapp-v1.1.0/README.md": "# webapp 1.1.0",
        "acme-webapp-v1.1.0/LICENSE": "MIT",
        "acme-webapp-v1.1.0/.github/": "",
        "acme-webapp-v1.1.0/.github/workflows/ci.yml": "on: push",
        "acme-webapp-v1.1.0/src/": "",
        "acme-webapp-v1.1.0/src/app.py": "VERSION = '1.1.0'",
        "acme-webapp-v1.1.0/src/lib/": "",
        "acme-webapp-v1.1.0/src/lib/util.py": "def util(): ...",
        "acme-webapp-v1.1.0/config/": "",
        "acme-webapp-v1.1.0/config/settings.yml": "debug: false",
    }


@pytest.fixture(autouse=True)
def _cleanup_loggers() -> Iterator[None]:
    """Reset the package logger after each test."""
    yield
    logger = logging.getLogger("release_upgrader")
    logger.handlers.clear()
    logger.propagate = True
