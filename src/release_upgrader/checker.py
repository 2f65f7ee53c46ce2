"""
Upgrade decision policy.

UpdateChecker compares a candidate Release against the installed version.
The classification predicates (major/minor/patch) are independent checks on
the candidate version, not a partition: "2.1.0" is a minor update and not a
major one, "0.0.0" is none of them.
"""

from __future__ import annotations

from release_upgrader.release import Release
from release_upgrader.version import Version


class UpdateChecker:
    """
    Decides whether and how safely a release can be installed.

    Every predicate parses the release version first and raises
    InvalidVersionError when it is malformed.

    Attributes:
        current_version: The installed version.
    """

    def __init__(self, current_version: str | Version) -> None:
        if isinstance(current_version, Version):
            self._current_version = current_version
        else:
            self._current_version = Version.parse(current_version)

    @property
    def current_version(self) -> Version:
        return self._current_version

    def is_update_needed(self, release: Release) -> bool:
        """True iff the release is newer than the installed version."""
        return Version.parse(release.version).gt(self._current_version)

    def is_secure_to_upgrade(self, release: Release) -> bool:
        """True iff the release shares the installed major version."""
        return Version.parse(release.version).major == self._current_version.major

    def is_major_update(self, release: Release) -> bool:
        """True for a clean major release such as 2.0.0."""
        candidate = Version.parse(release.version)
        return candidate.major > 0 and candidate.minor == 0 and candidate.patch == 0

    def is_minor_update(self, release: Release) -> bool:
        candidate = Version.parse(release.version)
        return candidate.minor > 0 and candidate.patch == 0

    def is_patch_update(self, release: Release) -> bool:
        return Version.parse(release.version).patch > 0
