"""
Configuration management for the release upgrader.

This module implements the AppConfig Pydantic model and configuration loading.

Configuration is loaded from multiple sources with layered precedence:
1. Built-in defaults (Pydantic model defaults)
2. YAML config file (/etc/release-upgrader/config.yml or an explicit path)
3. Environment variables (RELEASE_UPGRADER_* prefix, __ for nesting)
4. Explicit overrides (e.g. command-line arguments, highest precedence)
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from release_upgrader.version import parse_semantic_version

DEFAULT_CONFIG_PATH = Path("/etc/release-upgrader/config.yml")
DEFAULT_ENV_PREFIX = "RELEASE_UPGRADER_"

SUPPORTED_PROVIDERS = frozenset({"github"})

# owner/name, as used by GitHub-style hosting providers
REPOSITORY_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


# =============================================================================
# Upgrade Configuration
# =============================================================================


class UpgradeConfig(BaseModel):
    """Project and upgrade settings.

    Attributes:
        repository_provider: Release hosting provider (e.g. "github").
        repository_identifier: Repository in "owner/name" form.
        project_directory: Absolute path of the installed project.
        has_root_directory: Whether release archives wrap their files in a
            single top-level directory.
        excluded_resources: Path fragments that must not be overwritten.
        installed_version: Currently installed version.
        staging_dir: Where downloaded artifacts are stored.
    """

    repository_provider: str = Field(
        default="github",
        description="Release hosting provider",
    )
    repository_identifier: str = Field(
        default="",
        description="Repository identifier in 'owner/name' form",
    )
    project_directory: str = Field(
        default="",
        description="Absolute path to the project root directory",
    )
    has_root_directory: bool = Field(
        default=True,
        description="Whether the release archive has a single root directory",
    )
    excluded_resources: list[str] = Field(
        default_factory=list,
        description="Files or directories that must survive an upgrade",
    )
    installed_version: str | None = Field(
        default=None,
        description="Currently installed semantic version",
    )
    staging_dir: str | None = Field(
        default=None,
        description="Directory for downloaded artifacts (system temp dir if unset)",
    )

    @field_validator("repository_provider")
    @classmethod
    def validate_repository_provider(cls, v: str) -> str:
        """Validate and normalize the repository provider."""
        v_lower = v.lower()
        if v_lower not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Invalid repository provider: {v}. Must be one of: "
                f"{', '.join(sorted(SUPPORTED_PROVIDERS))}"
            )
        return v_lower

    @field_validator("repository_identifier")
    @classmethod
    def validate_repository_identifier(cls, v: str) -> str:
        """Validate the repository identifier when set."""
        if v and not REPOSITORY_IDENTIFIER_PATTERN.match(v):
            raise ValueError(
                f"Invalid repository identifier: {v}. Expected 'owner/name'"
            )
        return v

    @field_validator("project_directory")
    @classmethod
    def validate_project_directory(cls, v: str) -> str:
        """Validate that the project directory is absolute when set."""
        if v and not Path(v).is_absolute():
            raise ValueError(f"Project directory must be an absolute path: {v}")
        return v

    @field_validator("excluded_resources", mode="before")
    @classmethod
    def coerce_excluded_resources(cls, v: Any) -> Any:
        """Accept a single fragment where a list is expected."""
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("installed_version")
    @classmethod
    def validate_installed_version(cls, v: str | None) -> str | None:
        """Validate the installed version if present."""
        if v is not None:
            parse_semantic_version(v)
        return v


# =============================================================================
# GitHub Configuration
# =============================================================================


class GitHubConfig(BaseModel):
    """GitHub release source settings.

    Attributes:
        api_url: Base URL of the GitHub REST API.
        token: Optional API token for private repositories or rate limits.
        timeout_seconds: Request timeout.
        per_page: Number of releases requested per listing.
        user_agent: User-Agent header sent with every request.
    """

    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    token: str | None = Field(
        default=None,
        description="GitHub API token",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    per_page: int = Field(
        default=30,
        ge=1,
        le=100,
        description="Releases requested per listing",
    )
    user_agent: str = Field(
        default="release-upgrader",
        description="User-Agent header for API and artifact requests",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level.
        log_to_stdout: Whether to log to stdout.
        json_format: Whether to emit JSON log lines.
    """

    level: str = Field(
        default="info",
        description="Log level: debug, info, warning, error, critical",
    )
    log_to_stdout: bool = Field(
        default=True,
        description="Whether to log to stdout",
    )
    json_format: bool = Field(
        default=True,
        description="Whether to emit JSON formatted log lines",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"debug", "info", "warn", "warning", "error", "critical"}
        v_lower = v.lower()
        if v_lower not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: "
                f"{', '.join(sorted(valid_levels))}"
            )
        if v_lower == "warn":
            return "warning"
        return v_lower


# =============================================================================
# Main Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """
    Main application configuration model.

    Attributes:
        upgrade: Project and upgrade settings.
        github: GitHub release source settings.
        logging: Logging configuration.
    """

    upgrade: UpgradeConfig = Field(
        default_factory=UpgradeConfig,
        description="Project and upgrade settings",
    )
    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub release source settings",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: The base dictionary.
        override: The dictionary with values to override.

    Returns:
        A new dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable value to appropriate Python type.

    Args:
        value: String value from environment variable.

    Returns:
        Parsed value (bool, int, float, list, or string).
    """
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    # Comma-separated lists stay lists of strings (path fragments, versions)
    if "," in value:
        return [item.strip() for item in value.split(",") if item.strip()]

    return value


def _load_env_config(prefix: str = DEFAULT_ENV_PREFIX) -> dict[str, Any]:
    """
    Load configuration from environment variables.

    Environment variables are parsed with the following rules:
    - Prefix: RELEASE_UPGRADER_ (configurable)
    - Nested keys: Double underscore (__) separator
    - Example: RELEASE_UPGRADER_UPGRADE__PROJECT_DIRECTORY=/var/www/html

    Args:
        prefix: Environment variable prefix.

    Returns:
        Dictionary with configuration values.
    """
    result: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix) :].lower()
        parts = config_key.split("__")

        current = result
        for part in parts[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]

        # Versions like "1.0" must not be turned into floats
        if parts[-1] in ("installed_version", "token", "repository_identifier"):
            current[parts[-1]] = value
        else:
            current[parts[-1]] = _parse_env_value(value)

    return result


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Load configuration from all sources with layered precedence.

    Configuration is loaded from multiple sources in order:
    1. Built-in defaults (from AppConfig model)
    2. YAML config file (if specified or default exists)
    3. Environment variables (RELEASE_UPGRADER_* prefix)
    4. Explicit overrides

    Later sources override earlier ones.

    Args:
        config_path: Path to YAML configuration file. If None, uses the
            default path when it exists.
        env_prefix: Prefix for environment variables.
        overrides: Nested dictionary applied last (e.g. from CLI arguments).

    Returns:
        Fully configured AppConfig instance.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
        ValidationError: If configuration is invalid.

    Example:
        >>> config = load_config("/etc/release-upgrader/config.yml")
        >>> config.upgrade.repository_identifier
        'acme/webapp'
    """
    config_dict: dict[str, Any] = {}

    if config_path is None:
        if DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH
    elif isinstance(config_path, str):
        config_path = Path(config_path)

    if config_path is not None:
        config_dict = _deep_merge(config_dict, _load_yaml_config(config_path))

    config_dict = _deep_merge(config_dict, _load_env_config(env_prefix))

    if overrides:
        config_dict = _deep_merge(config_dict, overrides)

    return AppConfig(**config_dict)
