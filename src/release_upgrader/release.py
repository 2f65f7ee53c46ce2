"""
Release model for the release upgrader.

A Release describes one published release as decoded by a release source:
its version tag, publish date, notes, prerelease flag and the URL of the
downloadable archive.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from release_upgrader.errors import InvalidArgumentError

_URL_ADAPTER = TypeAdapter(AnyUrl)


class Release(BaseModel):
    """
    An immutable published release.

    Attributes:
        version: Version tag as published (e.g., "v1.2.0"); not normalized.
        date: Publish timestamp.
        notes: Release notes body.
        is_prerelease: Whether the release is flagged as a prerelease.
        artifact_url: Absolute URL of the release archive.
    """

    model_config = ConfigDict(frozen=True)

    version: str = Field(
        ...,
        description="Version tag as published",
    )
    date: datetime = Field(
        ...,
        description="Publish timestamp",
    )
    notes: str = Field(
        default="",
        description="Release notes body",
    )
    is_prerelease: bool = Field(
        default=False,
        description="Whether the release is a prerelease",
    )
    artifact_url: str = Field(
        ...,
        description="Absolute URL of the downloadable archive",
    )

    @field_validator("artifact_url")
    @classmethod
    def validate_artifact_url(cls, v: str) -> str:
        """Validate the artifact URL is absolute (scheme and host)."""
        try:
            url = _URL_ADAPTER.validate_python(v)
        except PydanticValidationError as e:
            raise InvalidArgumentError(
                "Invalid URL",
                details={"artifact_url": v, "error": str(e)},
            ) from e
        if not url.host:
            raise InvalidArgumentError(
                "Invalid URL",
                details={"artifact_url": v, "error": "URL has no host"},
            )
        return v

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Release:
        """
        Build a Release from an upstream release record.

        The record uses the GitHub releases API field names:
        tag_name, published_at (created_at for drafts), body, prerelease
        and zipball_url.

        Raises:
            KeyError: If a required field is missing.
            InvalidArgumentError: If the archive URL is invalid.
        """
        return cls(
            version=record["tag_name"],
            # drafts have no publish date yet
            date=record.get("published_at") or record["created_at"],
            notes=record.get("body") or "",
            is_prerelease=bool(record.get("prerelease", False)),
            artifact_url=record["zipball_url"],
        )
