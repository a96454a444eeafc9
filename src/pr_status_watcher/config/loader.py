"""Configuration loading.

Values come from, in increasing precedence:
1. Model defaults
2. A YAML file (``--config``, ``PR_WATCHER_CONFIG`` or a standard location)
3. ``${VAR}`` references inside that file, resolved from the environment
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationFileError, ConfigurationValidationError
from .models import Config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PR_WATCHER_CONFIG"
DEFAULT_CONFIG_FILENAME = "config.yaml"


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationFileError(
            f"Failed to parse YAML configuration: {e}", file_path=str(path)
        ) from e
    except OSError as e:
        raise ConfigurationFileError(
            f"Failed to read configuration file: {e}", file_path=str(path)
        ) from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigurationFileError(
            "Configuration file must contain a mapping", file_path=str(path)
        )
    return document


class ConfigurationLoader:
    """Builds a validated ``Config`` and remembers where it came from."""

    def __init__(self) -> None:
        self._config: Config | None = None
        self._config_file_path: Path | None = None

    @property
    def config(self) -> Config | None:
        """Most recently loaded configuration."""
        return self._config

    @property
    def config_file_path(self) -> Path | None:
        """File the current configuration was read from, if any."""
        return self._config_file_path

    def load_from_file(self, config_path: str | Path) -> Config:
        """Read and validate a YAML configuration file.

        Raises:
            ConfigurationFileError: If the file is missing, unreadable or not
                a YAML mapping
            ConfigurationValidationError: If a value is invalid
        """
        path = Path(config_path).expanduser()
        if not path.exists():
            raise ConfigurationFileError(
                f"Configuration file not found: {path}", file_path=str(path)
            )
        if not path.is_file():
            raise ConfigurationFileError(
                f"Configuration path is not a file: {path}", file_path=str(path)
            )

        config = self.load_from_dict(_read_yaml_mapping(path))
        self._config_file_path = path.resolve()
        logger.info(f"Configuration loaded from {self._config_file_path}")
        return config

    def load_from_dict(self, config_data: dict[str, Any]) -> Config:
        """Validate configuration data.

        Raises:
            ConfigurationValidationError: If a value is invalid or a required
                environment variable is unset
        """
        try:
            config = Config.model_validate(config_data)
        except ValidationError as e:
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}", validation_errors=e.errors()
            ) from e
        except ValueError as e:
            raise ConfigurationValidationError(f"Configuration validation failed: {e}") from e

        self._config = config
        return config

    def load_default(self) -> Config:
        """Load the configuration the watcher runs with when none is given.

        A file named by ``PR_WATCHER_CONFIG`` must exist. Without it the
        standard locations are searched, and with no file at all every
        setting keeps its default.
        """
        explicit = os.getenv(CONFIG_ENV_VAR)
        if explicit:
            return self.load_from_file(explicit)

        found = self.find_config_file()
        if found is None:
            logger.debug("No configuration file found, using defaults")
            return self.load_from_dict({})
        return self.load_from_file(found)

    def find_config_file(self, filename: str = DEFAULT_CONFIG_FILENAME) -> Path | None:
        """First existing file among ``./<filename>`` and
        ``~/.config/pr-status-watcher/<filename>``."""
        candidates = (
            Path.cwd() / filename,
            Path.home() / ".config" / "pr-status-watcher" / filename,
        )
        return next((path for path in candidates if path.is_file()), None)
