"""
Tests for the configuration module.

This test module validates:
- Default configuration values
- Field validation
- YAML loading
- Environment variable parsing
- Layered precedence (defaults < YAML < env < overrides)
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest import mock

import pytest
import yaml
from pydantic import ValidationError

from release_upgrader import config as config_module
from release_upgrader.config import (
    AppConfig,
    GitHubConfig,
    LoggingConfig,
    UpgradeConfig,
    _deep_merge,
    _load_env_config,
    _load_yaml_config,
    _parse_env_value,
    load_config,
)
from release_upgrader.errors import InvalidVersionError

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path: Path) -> Iterator[None]:
    """Hide the host's config file and RELEASE_UPGRADER_* variables."""
    clean_env = {
        k: v for k, v in os.environ.items() if not k.startswith("RELEASE_UPGRADER_")
    }
    with (
        mock.patch.dict(os.environ, clean_env, clear=True),
        mock.patch.object(
            config_module, "DEFAULT_CONFIG_PATH", tmp_path / "missing.yml"
        ),
    ):
        yield


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Create a temporary config file path for testing."""
    return tmp_path / "config.yml"


@pytest.fixture
def sample_yaml_config() -> dict[str, Any]:
    """Sample YAML configuration for testing."""
    return {
        "upgrade": {
            "repository_provider": "GitHub",
            "repository_identifier": "acme/webapp",
            "project_directory": "/var/www/webapp",
            "has_root_directory": True,
            "excluded_resources": [".env", "storage/"],
            "installed_version": "v1.0.0",
        },
        "github": {
            "timeout_seconds": 10,
            "per_page": 50,
        },
        "logging": {
            "level": "debug",
        },
    }


def _write_yaml(path: Path, data: dict[str, Any]) -> None:
    with open(path, "w") as f:
        yaml.dump(data, f)


# =============================================================================
# Tests for Default Configuration
# =============================================================================


class TestDefaultConfiguration:
    """Tests for default configuration values."""

    def test_app_config_defaults(self) -> None:
        """Test AppConfig has correct defaults."""
        config = AppConfig()

        assert config.upgrade.repository_provider == "github"
        assert config.upgrade.repository_identifier == ""
        assert config.upgrade.project_directory == ""
        assert config.upgrade.has_root_directory is True
        assert config.upgrade.excluded_resources == []
        assert config.upgrade.installed_version is None
        assert config.upgrade.staging_dir is None

    def test_github_config_defaults(self) -> None:
        """Test GitHubConfig defaults."""
        config = GitHubConfig()

        assert config.api_url == "https://api.github.com"
        assert config.token is None
        assert config.timeout_seconds == 30.0
        assert config.per_page == 30
        assert config.user_agent == "release-upgrader"

    def test_logging_config_defaults(self) -> None:
        """Test LoggingConfig defaults."""
        config = LoggingConfig()

        assert config.level == "info"
        assert config.log_to_stdout is True
        assert config.json_format is True


# =============================================================================
# Tests for Configuration Validation
# =============================================================================


class TestConfigurationValidation:
    """Tests for configuration field validation."""

    def test_repository_provider_normalized(self) -> None:
        """Test provider names are case-insensitive."""
        assert UpgradeConfig(repository_provider="GitHub").repository_provider == (
            "github"
        )

    def test_repository_provider_invalid(self) -> None:
        """Test unsupported providers are rejected."""
        with pytest.raises(ValidationError):
            UpgradeConfig(repository_provider="svn")

    @pytest.mark.parametrize("identifier", ["acme", "acme/web/app", "acme/ web"])
    def test_repository_identifier_invalid(self, identifier: str) -> None:
        """Test identifiers must be owner/name."""
        with pytest.raises(ValidationError):
            UpgradeConfig(repository_identifier=identifier)

    def test_project_directory_must_be_absolute(self) -> None:
        """Test relative project directories are rejected."""
        with pytest.raises(ValidationError):
            UpgradeConfig(project_directory="var/www")

    def test_excluded_resources_single_string(self) -> None:
        """Test a single fragment is accepted as a one-element list."""
        assert UpgradeConfig(excluded_resources=".env").excluded_resources == [".env"]

    def test_installed_version_invalid(self) -> None:
        """Test malformed installed versions raise InvalidVersionError."""
        with pytest.raises(InvalidVersionError):
            UpgradeConfig(installed_version="current")

    def test_installed_version_kept_verbatim(self) -> None:
        """Test the installed version is stored as given."""
        assert UpgradeConfig(installed_version="v1.2").installed_version == "v1.2"

    def test_log_level_validation_valid(self) -> None:
        """Test valid log levels are accepted and normalized."""
        assert LoggingConfig(level="DEBUG").level == "debug"
        assert LoggingConfig(level="warn").level == "warning"

    def test_log_level_validation_invalid(self) -> None:
        """Test invalid log level is rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="verbose")

    @pytest.mark.parametrize(
        ("field", "value"),
        [("timeout_seconds", 0), ("per_page", 0), ("per_page", 101)],
    )
    def test_github_config_bounds(self, field: str, value: int) -> None:
        """Test numeric GitHub settings are bounded."""
        with pytest.raises(ValidationError):
            GitHubConfig(**{field: value})


# =============================================================================
# Tests for YAML Configuration Loading
# =============================================================================


class TestYAMLConfigLoading:
    """Tests for YAML configuration loading."""

    def test_load_yaml_config_success(
        self, temp_config_file: Path, sample_yaml_config: dict[str, Any]
    ) -> None:
        """Test loading a valid YAML file."""
        _write_yaml(temp_config_file, sample_yaml_config)

        assert _load_yaml_config(temp_config_file) == sample_yaml_config

    def test_load_yaml_config_file_not_found(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            _load_yaml_config(tmp_path / "nonexistent.yml")

    def test_load_yaml_config_empty_file(self, temp_config_file: Path) -> None:
        """Test that an empty file yields an empty dict."""
        temp_config_file.write_text("")

        assert _load_yaml_config(temp_config_file) == {}

    def test_load_config_with_yaml_file(
        self, temp_config_file: Path, sample_yaml_config: dict[str, Any]
    ) -> None:
        """Test load_config with a YAML file."""
        _write_yaml(temp_config_file, sample_yaml_config)

        config = load_config(config_path=temp_config_file)

        assert config.upgrade.repository_provider == "github"
        assert config.upgrade.repository_identifier == "acme/webapp"
        assert config.upgrade.project_directory == "/var/www/webapp"
        assert config.upgrade.excluded_resources == [".env", "storage/"]
        assert config.upgrade.installed_version == "v1.0.0"
        assert config.github.timeout_seconds == 10
        assert config.github.per_page == 50
        assert config.logging.level == "debug"

    def test_load_config_accepts_string_path(
        self, temp_config_file: Path, sample_yaml_config: dict[str, Any]
    ) -> None:
        """Test that config_path may be a string."""
        _write_yaml(temp_config_file, sample_yaml_config)

        config = load_config(config_path=str(temp_config_file))

        assert config.upgrade.repository_identifier == "acme/webapp"

    def test_load_config_invalid_yaml(self, temp_config_file: Path) -> None:
        """Test that malformed YAML raises yaml.YAMLError."""
        temp_config_file.write_text("upgrade: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_config(config_path=temp_config_file)


# =============================================================================
# Tests for Environment Variable Loading
# =============================================================================


class TestEnvironmentVariableLoading:
    """Tests for environment variable configuration loading."""

    def test_parse_env_value_boolean(self) -> None:
        """Test parsing boolean values."""
        assert _parse_env_value("true") is True
        assert _parse_env_value("YES") is True
        assert _parse_env_value("off") is False

    def test_parse_env_value_numbers(self) -> None:
        """Test parsing integer and float values."""
        assert _parse_env_value("42") == 42
        assert _parse_env_value("2.5") == 2.5

    def test_parse_env_value_list(self) -> None:
        """Test comma-separated values become lists of strings."""
        assert _parse_env_value(".env, storage/ ,") == [".env", "storage/"]
        assert _parse_env_value("1,2") == ["1", "2"]

    def test_parse_env_value_string(self) -> None:
        """Test parsing string values."""
        assert _parse_env_value("/var/www/webapp") == "/var/www/webapp"

    def test_load_env_config_nested(self) -> None:
        """Test loading nested environment variables."""
        env_vars = {
            "RELEASE_UPGRADER_UPGRADE__PROJECT_DIRECTORY": "/var/www/webapp",
            "RELEASE_UPGRADER_UPGRADE__HAS_ROOT_DIRECTORY": "false",
            "RELEASE_UPGRADER_LOGGING__LEVEL": "debug",
        }

        with mock.patch.dict(os.environ, env_vars):
            config_dict = _load_env_config()

        assert config_dict == {
            "upgrade": {
                "project_directory": "/var/www/webapp",
                "has_root_directory": False,
            },
            "logging": {"level": "debug"},
        }

    def test_load_env_config_keeps_versions_as_strings(self) -> None:
        """Test that a version like 1.0 is not parsed as a float."""
        env_vars = {
            "RELEASE_UPGRADER_UPGRADE__INSTALLED_VERSION": "1.0",
            "RELEASE_UPGRADER_GITHUB__TOKEN": "12345",
        }

        with mock.patch.dict(os.environ, env_vars):
            config_dict = _load_env_config()

        assert config_dict["upgrade"]["installed_version"] == "1.0"
        assert config_dict["github"]["token"] == "12345"

    def test_load_env_config_custom_prefix(self) -> None:
        """Test that only variables with the given prefix are read."""
        env_vars = {
            "WEBAPP_UPGRADE__INSTALLED_VERSION": "2.0.0",
            "RELEASE_UPGRADER_UPGRADE__INSTALLED_VERSION": "1.0.0",
        }

        with mock.patch.dict(os.environ, env_vars):
            config_dict = _load_env_config("WEBAPP_")

        assert config_dict == {"upgrade": {"installed_version": "2.0.0"}}


# =============================================================================
# Tests for Configuration Precedence
# =============================================================================


class TestConfigurationPrecedence:
    """Tests for layered configuration precedence."""

    def test_defaults_only(self) -> None:
        """Test loading with no file, env or overrides."""
        config = load_config()

        assert config == AppConfig()

    def test_explicit_missing_file_raises(self, tmp_path: Path) -> None:
        """Test that an explicit path must exist."""
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yml")

    def test_default_path_used_when_present(
        self, temp_config_file: Path, sample_yaml_config: dict[str, Any]
    ) -> None:
        """Test the default config path is read when it exists."""
        _write_yaml(temp_config_file, sample_yaml_config)

        with mock.patch.object(config_module, "DEFAULT_CONFIG_PATH", temp_config_file):
            config = load_config()

        assert config.upgrade.repository_identifier == "acme/webapp"

    def test_env_overrides_yaml(
        self, temp_config_file: Path, sample_yaml_config: dict[str, Any]
    ) -> None:
        """Test environment variables override YAML values."""
        _write_yaml(temp_config_file, sample_yaml_config)
        env_vars = {
            "RELEASE_UPGRADER_UPGRADE__INSTALLED_VERSION": "1.5.0",
            "RELEASE_UPGRADER_UPGRADE__EXCLUDED_RESOURCES": ".env",
        }

        with mock.patch.dict(os.environ, env_vars):
            config = load_config(config_path=temp_config_file)

        assert config.upgrade.installed_version == "1.5.0"
        assert config.upgrade.excluded_resources == [".env"]
        # untouched keys still come from YAML
        assert config.upgrade.project_directory == "/var/www/webapp"

    def test_overrides_win(
        self, temp_config_file: Path, sample_yaml_config: dict[str, Any]
    ) -> None:
        """Test explicit overrides beat env and YAML."""
        _write_yaml(temp_config_file, sample_yaml_config)
        env_vars = {"RELEASE_UPGRADER_LOGGING__LEVEL": "error"}

        with mock.patch.dict(os.environ, env_vars):
            config = load_config(
                config_path=temp_config_file,
                overrides={
                    "upgrade": {"installed_version": "1.9.0"},
                    "logging": {"level": "warning"},
                },
            )

        assert config.upgrade.installed_version == "1.9.0"
        assert config.logging.level == "warning"
        assert config.github.per_page == 50


# =============================================================================
# Tests for Deep Merge
# =============================================================================


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_deep_merge_nested(self) -> None:
        """Test merging nested dictionaries."""
        base = {"upgrade": {"a": 1, "b": 2}, "x": 1}
        override = {"upgrade": {"b": 3}, "y": 2}

        assert _deep_merge(base, override) == {
            "upgrade": {"a": 1, "b": 3},
            "x": 1,
            "y": 2,
        }

    def test_deep_merge_does_not_modify_original(self) -> None:
        """Test that merging does not mutate the inputs."""
        base = {"upgrade": {"a": 1}}
        _deep_merge(base, {"upgrade": {"a": 2}})

        assert base == {"upgrade": {"a": 1}}
