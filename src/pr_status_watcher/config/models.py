"""Pydantic configuration models for the PR status watcher.

The configuration hierarchy follows this structure:
- Config: Root configuration
- SystemConfig: Logging
- GitHubConfig: API endpoint, token and transport limits
- PollingConfig: Refresh interval and search limits
- StorageConfig: Where user settings are kept

Environment variables are substituted using the format ${VAR_NAME} with
optional defaults: ${VAR_NAME:default_value}
"""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_REFRESH_INTERVAL_SECONDS = 60
DEFAULT_SETTINGS_PATH = "~/.config/pr-status-watcher/settings.yaml"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ``${VAR}`` and ``${VAR:default}`` in strings.

    Raises:
        ValueError: If a variable without default is not set
    """
    if isinstance(value, str):

        def replacer(match: re.Match[str]) -> str:
            var_name, default_value = match.group(1), match.group(2)
            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ValueError(f"Required environment variable '{var_name}' not found")

        return _ENV_VAR_PATTERN.sub(replacer, value)
    if isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    return value


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def substitute_environment(cls, values: Any) -> Any:
        """Substitute environment variables in string values."""
        if not isinstance(values, dict):
            return values
        return {key: substitute_env_vars(value) for key, value in values.items()}


class SystemConfig(BaseConfigModel):
    """Core system configuration settings."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="System-wide logging level"
    )


class GitHubConfig(BaseConfigModel):
    """GitHub API access settings."""

    base_url: str = Field(
        default="https://api.github.com", description="GitHub API base URL"
    )
    token: str | None = Field(
        default=None,
        description="API token; GITHUB_TOKEN or GH_TOKEN is used when unset",
    )
    timeout: int = Field(default=30, ge=1, description="Request timeout in seconds")
    max_retries: int = Field(
        default=2, ge=0, description="Retries for transient request failures"
    )
    user_agent: str = Field(
        default="PR-Status-Watcher/1.0", description="User-Agent header value"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the API base URL."""
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid GitHub API URL: {v}")
        return v.rstrip("/")

    @field_validator("token")
    @classmethod
    def empty_token_is_unset(cls, v: str | None) -> str | None:
        return v or None


class PollingConfig(BaseConfigModel):
    """Refresh cycle settings."""

    interval_seconds: int = Field(
        default=DEFAULT_REFRESH_INTERVAL_SECONDS,
        ge=1,
        description="Default refresh interval, used until the user picks one",
    )
    page_size: int = Field(
        default=100, ge=1, le=100, description="Pull requests per search page"
    )
    max_pages: int = Field(default=10, ge=1, description="Page cap per search")
    max_pull_requests: int = Field(
        default=1000, ge=1, description="Pull request cap per search"
    )


class StorageConfig(BaseConfigModel):
    """User settings storage."""

    settings_path: str = Field(
        default=DEFAULT_SETTINGS_PATH, description="YAML file holding user settings"
    )

    @property
    def resolved_settings_path(self) -> Path:
        return Path(self.settings_path).expanduser()


class Config(BaseConfigModel):
    """Root configuration model."""

    system: SystemConfig = Field(default_factory=SystemConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
