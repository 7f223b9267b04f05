"""Configuration schema for composerify.

Configuration is loaded from .composerify.yml in the working directory.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .executor import DEFAULT_TIMEOUT_SECONDS
from .telemetry import DEFAULT_TELEMETRY_PATH

CONFIG_FILE_NAME = ".composerify.yml"


class GitConfig(BaseModel):
    """Remote and branch roles."""

    model_config = ConfigDict(validate_assignment=True)

    remote: str = "origin"
    primary_branch: str = "master"
    backup_branch: str = "master-bckp"
    target_branch: str = "composerify"
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    @field_validator("remote", "primary_branch", "backup_branch", "target_branch")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("branch and remote names must not be empty")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v

    @model_validator(mode="after")
    def validate_roles(self) -> GitConfig:
        if self.backup_branch == self.primary_branch:
            raise ValueError("backup_branch must differ from primary_branch")
        return self


class ComposerConfig(BaseModel):
    """How detected projects become Composer requirements."""

    model_config = ConfigDict(validate_assignment=True)

    vendor: str = "drupal"
    constraint_prefix: str = "^"

    def package_name(self, project: str) -> str:
        return f"{self.vendor}/{project}"

    def constraint(self, version: str) -> str:
        return f"{self.constraint_prefix}{version}"


class UpstreamConfig(BaseModel):
    """Platform upstream identities."""

    model_config = ConfigDict(validate_assignment=True)

    drops8: str = "drupal8"
    composer: str = "empty"


class PlatformConfig(BaseModel):
    """Hosting platform API client configuration."""

    model_config = ConfigDict(validate_assignment=True)

    base_url: str = "https://terminus.pantheon.io/api"
    machine_token: str | None = None
    timeout_seconds: int = 30
    local_copies_dir: str = "~/pantheon-local-copies"
    dashboard_url: str = "https://dashboard.pantheon.io"
    workflow_poll_seconds: float = 3.0
    workflow_timeout_seconds: int = 600

    @property
    def local_copies_path(self) -> Path:
        return Path(self.local_copies_dir).expanduser()


class TelemetryConfig(BaseModel):
    """Telemetry and logging configuration."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = True
    log_path: str = DEFAULT_TELEMETRY_PATH

    @property
    def path(self) -> Path:
        return Path(self.log_path).expanduser()


class ConversionConfig(BaseModel):
    """Complete composerify configuration."""

    git: GitConfig = Field(default_factory=GitConfig)
    composer: ComposerConfig = Field(default_factory=ComposerConfig)
    upstreams: UpstreamConfig = Field(default_factory=UpstreamConfig)
    platform: PlatformConfig = Field(default_factory=PlatformConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @classmethod
    def load_from_file(cls, config_path: Path | str) -> ConversionConfig:
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f)

        return cls(**(data or {}))

    @classmethod
    def load_from_dir(cls, directory: Path | str) -> ConversionConfig:
        """Load configuration from a directory's .composerify.yml, or defaults."""
        config_path = Path(directory) / CONFIG_FILE_NAME

        if not config_path.exists():
            return cls()

        return cls.load_from_file(config_path)

    def apply_env_overrides(self) -> None:
        """Apply environment variable overrides to configuration."""
        # Git overrides (a set-but-empty value is rejected by the validators)
        if (remote := os.getenv("COMPOSERIFY_GIT_REMOTE")) is not None:
            self.git.remote = remote
        if (branch := os.getenv("COMPOSERIFY_TARGET_BRANCH")) is not None:
            self.git.target_branch = branch
        if (timeout := os.getenv("COMPOSERIFY_GIT_TIMEOUT_SECONDS")) is not None:
            # Coerced and range-checked by GitConfig.
            self.git.timeout_seconds = timeout  # type: ignore[assignment]

        # Composer overrides
        if vendor := os.getenv("COMPOSERIFY_COMPOSER_VENDOR"):
            self.composer.vendor = vendor

        # Platform overrides
        if token := os.getenv("COMPOSERIFY_MACHINE_TOKEN"):
            self.platform.machine_token = token
        if url := os.getenv("COMPOSERIFY_API_BASE_URL"):
            self.platform.base_url = url
        if local_dir := os.getenv("COMPOSERIFY_LOCAL_COPIES_DIR"):
            self.platform.local_copies_dir = local_dir

        # Telemetry overrides
        if log_path := os.getenv("COMPOSERIFY_TELEMETRY_PATH"):
            self.telemetry.log_path = log_path
        if os.getenv("COMPOSERIFY_TELEMETRY_DISABLED") == "1":
            self.telemetry.enabled = False


def load_config(directory: Path | str) -> ConversionConfig:
    """
    Load configuration for a working directory.

    Args:
        directory: Directory that may contain .composerify.yml

    Returns:
        Loaded and validated configuration
    """
    config = ConversionConfig.load_from_dir(directory)
    config.apply_env_overrides()
    return config
