"""Configuration management for the PR status watcher."""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader
from .models import (
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    Config,
    GitHubConfig,
    LogLevel,
    PollingConfig,
    StorageConfig,
    SystemConfig,
)
from .settings_store import YamlSettingsStore

__all__ = [
    "DEFAULT_REFRESH_INTERVAL_SECONDS",
    "Config",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationValidationError",
    "GitHubConfig",
    "LogLevel",
    "PollingConfig",
    "StorageConfig",
    "SystemConfig",
    "YamlSettingsStore",
]
