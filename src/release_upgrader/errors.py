"""
Error types for the release upgrader.

This module defines the UpgraderError base class and the subclasses raised by
the version parser, the release sources and the artifact pipeline. Callers
should catch UpgraderError (or a subclass) rather than inspecting messages.

"No action needed" outcomes (no newer release, cross-major upgrade without
force) are not errors; they are reported as a False return value.
"""

from __future__ import annotations

from typing import Any


class UpgraderError(Exception):
    """
    Base exception class for release upgrader errors.

    Attributes:
        error_code: Internal error code string (e.g., "invalid_version",
            "artifact_not_installable", "unavailable").
        message: Human-readable error message.
        details: Optional structured details (e.g., paths, URLs, versions).

    Example:
        >>> raise UpgraderError(
        ...     error_code="invalid_version",
        ...     message="Invalid semantic version string provided",
        ...     details={"version": "latest"},
        ... )
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize an UpgraderError.

        Args:
            error_code: Internal error code string identifying the error category.
            message: Human-readable error message.
            details: Optional dictionary with structured error details.
        """
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the error to a dictionary for serialization.

        Returns:
            Dictionary with error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidVersionError(UpgraderError):
    """
    Error raised when a string is not a valid semantic version.

    Malformed versions are never silently defaulted; this error always
    propagates to the caller.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InvalidVersionError."""
        super().__init__(
            error_code="invalid_version", message=message, details=details
        )


class InvalidArgumentError(UpgraderError):
    """
    Error raised when a value other than a version fails validation.

    Used for malformed artifact URLs and unsupported repository providers.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InvalidArgumentError."""
        super().__init__(
            error_code="invalid_argument", message=message, details=details
        )


class ArtifactNotDownloadableError(UpgraderError):
    """
    Error raised when an artifact cannot be fetched or saved locally.

    Covers transport failures, non-success HTTP statuses and local write
    failures during download.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an ArtifactNotDownloadableError."""
        super().__init__(
            error_code="artifact_not_downloadable", message=message, details=details
        )


class ArtifactNotInstallableError(UpgraderError):
    """
    Error raised when a downloaded artifact cannot be installed.

    Covers a missing artifact, an unopenable archive, an incomplete exclusion
    pass and extraction or copy failures.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an ArtifactNotInstallableError."""
        super().__init__(
            error_code="artifact_not_installable", message=message, details=details
        )


class DirectoryNotExistsError(UpgraderError):
    """Error raised when a required directory is missing and cannot be created."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a DirectoryNotExistsError."""
        super().__init__(
            error_code="directory_not_exists", message=message, details=details
        )


class ReleaseNotFoundError(UpgraderError):
    """Error raised when a release source has no release matching a query."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a ReleaseNotFoundError."""
        super().__init__(error_code="not_found", message=message, details=details)


class UnavailableError(UpgraderError):
    """
    Error raised when a release source cannot be reached or answers badly.

    This error maps to the "unavailable" error code and wraps transport
    failures, non-success statuses and undecodable payloads.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an UnavailableError."""
        super().__init__(error_code="unavailable", message=message, details=details)
