"""
Semantic version parsing and ordering.

This module implements the Version value object used to decide whether a
release is newer than the installed project:
- Lenient parsing (optional "v" prefix, missing minor/patch default to 0)
- Total ordering with prerelease handling; build metadata is ignored
- Normalized rendering ("v1.2.3-rc.1+build.5")
"""

from __future__ import annotations

import re
from itertools import zip_longest
from typing import Any

from release_upgrader.errors import InvalidVersionError

# Accepts: 1, v1.2, 1.2.3, v2.0.0-beta.1, 1.0.0-alpha+build.123, 1.3+007
SEMVER_PATTERN = re.compile(
    r"v?(?P<major>\d+)"
    r"(?:\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?)?"
    r"(?:-(?P<pre_release>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+)?)?",
    re.ASCII,
)


def parse_semantic_version(version: str) -> dict[str, Any]:
    """
    Parse and validate a semantic version string.

    Args:
        version: Version string (e.g., "1.0.0", "v1.2", "1.2.3-beta.1").

    Returns:
        Dictionary with parsed version components:
        - major: Major version number
        - minor: Minor version number (0 when omitted)
        - patch: Patch version number (0 when omitted)
        - pre_release: Pre-release identifier (optional)
        - build: Build metadata (optional)

    Raises:
        InvalidVersionError: If version string is invalid.
    """
    if not version:
        raise InvalidVersionError(
            "Version string cannot be empty",
            details={"version": version},
        )

    match = SEMVER_PATTERN.fullmatch(version)
    if not match:
        raise InvalidVersionError(
            "Invalid semantic version string provided",
            details={
                "version": version,
                "format": "[v]MAJOR[.MINOR[.PATCH]][-PRERELEASE][+BUILD]",
                "examples": ["1.0.0", "v1.2", "2.0.0-beta.1"],
            },
        )

    return {
        "major": int(match.group("major")),
        "minor": int(match.group("minor") or 0),
        "patch": int(match.group("patch") or 0),
        "pre_release": match.group("pre_release"),
        "build": match.group("build"),
    }


def _compare_identifiers(left: str | None, right: str | None) -> int:
    """Compare two prerelease identifiers; a missing identifier sorts first."""
    if left == right:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1
    if left.isdigit() and right.isdigit():
        left_key: int | str = int(left)
        right_key: int | str = int(right)
    else:
        left_key, right_key = left, right
    if left_key == right_key:
        return 0
    return -1 if left_key < right_key else 1


class Version:
    """
    Immutable semantic version value.

    Versions compare by (major, minor, patch), then by prerelease: a version
    with a prerelease orders before the same version without one. Build
    metadata never participates in ordering or equality.

    Example:
        >>> Version("1.0.0-rc.1") < Version("v1.0.0")
        True
        >>> str(Version("2.1"))
        'v2.1.0'
    """

    __slots__ = ("_major", "_minor", "_patch", "_pre_release", "_build")

    def __init__(self, version: str = "0.1.0") -> None:
        parsed = parse_semantic_version(version)
        self._major: int = parsed["major"]
        self._minor: int = parsed["minor"]
        self._patch: int = parsed["patch"]
        self._pre_release: str | None = parsed["pre_release"]
        self._build: str | None = parsed["build"]

    @classmethod
    def parse(cls, version: str) -> Version:
        """Build a Version from a string, raising InvalidVersionError if malformed."""
        return cls(version)

    @property
    def major(self) -> int:
        return self._major

    @property
    def minor(self) -> int:
        return self._minor

    @property
    def patch(self) -> int:
        return self._patch

    @property
    def pre_release(self) -> str | None:
        return self._pre_release

    @property
    def build(self) -> str | None:
        return self._build

    @property
    def full_semver(self) -> str:
        """Normalized version string without prefix."""
        version = f"{self._major}.{self._minor}.{self._patch}"
        if self._pre_release is not None:
            version += f"-{self._pre_release}"
        if self._build is not None:
            version += f"+{self._build}"
        return version

    def prefixed(self, prefix: str = "v") -> str:
        """Return the normalized version string with a custom prefix."""
        return f"{prefix}{self.full_semver}"

    @staticmethod
    def compare(version1: Version, version2: Version) -> int:
        """
        Compare two versions.

        Returns:
            -1, 0 or 1 if version1 is less than, equal to or greater than
            version2 respectively.
        """
        base1 = (version1._major, version1._minor, version1._patch)
        base2 = (version2._major, version2._minor, version2._patch)
        if base1 != base2:
            return -1 if base1 < base2 else 1

        pre1 = version1._pre_release
        pre2 = version2._pre_release
        if pre1 is not None and pre2 is None:
            return -1
        if pre1 is None and pre2 is not None:
            return 1
        if pre1 is None or pre2 is None:
            return 0

        for left, right in zip_longest(pre1.split("."), pre2.split(".")):
            result = _compare_identifiers(left, right)
            if result != 0:
                return result
        return 0

    def gt(self, other: Version) -> bool:
        return self.compare(self, other) > 0

    def lt(self, other: Version) -> bool:
        return self.compare(self, other) < 0

    def eq(self, other: Version) -> bool:
        return self.compare(self, other) == 0

    def neq(self, other: Version) -> bool:
        return self.compare(self, other) != 0

    def gte(self, other: Version) -> bool:
        return self.compare(self, other) >= 0

    def lte(self, other: Version) -> bool:
        return self.compare(self, other) <= 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.eq(other)

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.neq(other)

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.lt(other)

    def __le__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.lte(other)

    def __gt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.gt(other)

    def __ge__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.gte(other)

    def __hash__(self) -> int:
        pre_release: tuple[int | str, ...] = ()
        if self._pre_release is not None:
            pre_release = tuple(
                int(part) if part.isdigit() else part
                for part in self._pre_release.split(".")
            )
        return hash((self._major, self._minor, self._patch, pre_release))

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_build"):
            raise AttributeError(f"{type(self).__name__} is immutable")
        super().__setattr__(name, value)

    def __str__(self) -> str:
        return self.prefixed()

    def __repr__(self) -> str:
        return f"Version({self.full_semver!r})"


def compare_versions(v1: str, v2: str) -> int:
    """
    Compare two semantic version strings.

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2

    Raises:
        InvalidVersionError: If either version is invalid.
    """
    return Version.compare(Version(v1), Version(v2))
