"""YAML file persistence for user settings.

The file holds two top-level keys::

    filter_settings:
      hide_drafts: true
      required_check_names: [build]
    refresh_interval: 120

Settings written by older versions may lack fields or carry keys that no
longer exist; both load cleanly.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..interfaces import SettingsStore
from ..models import FilterSettings
from .exceptions import ConfigurationFileError
from .models import DEFAULT_REFRESH_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

FILTER_SETTINGS_KEY = "filter_settings"
REFRESH_INTERVAL_KEY = "refresh_interval"


class YamlSettingsStore(SettingsStore):
    """Settings store backed by a single YAML file."""

    def __init__(
        self,
        path: str | Path,
        default_refresh_interval: int = DEFAULT_REFRESH_INTERVAL_SECONDS,
    ):
        """Initialize the store.

        Args:
            path: Settings file; created on first save
            default_refresh_interval: Interval returned when none is stored
        """
        self.path = Path(path).expanduser()
        self.default_refresh_interval = default_refresh_interval

    def load_filter_settings(self) -> FilterSettings:
        """Load filter settings, falling back to defaults on any problem."""
        raw = self._read().get(FILTER_SETTINGS_KEY)
        if raw is None:
            return FilterSettings()
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed filter settings in {self.path}")
            return FilterSettings()

        try:
            return FilterSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                f"Ignoring invalid filter settings in {self.path}: "
                f"{e.error_count()} errors"
            )
            return FilterSettings()

    def save_filter_settings(self, settings: FilterSettings) -> None:
        """Persist filter settings.

        Raises:
            ConfigurationFileError: If the file cannot be written
        """
        self._update(FILTER_SETTINGS_KEY, settings.model_dump(mode="json"))

    def load_refresh_interval(self) -> int:
        """Load the refresh interval in seconds; non-positive values fall back."""
        value = self._read().get(REFRESH_INTERVAL_KEY)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            if value is not None:
                logger.warning(f"Ignoring invalid refresh interval {value!r} in {self.path}")
            return self.default_refresh_interval
        return value

    def save_refresh_interval(self, seconds: int) -> None:
        """Persist the refresh interval.

        Raises:
            ValueError: If the interval is not positive
            ConfigurationFileError: If the file cannot be written
        """
        if seconds <= 0:
            raise ValueError("Refresh interval must be positive")
        self._update(REFRESH_INTERVAL_KEY, seconds)

    def _read(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Cannot read settings from {self.path}: {e}")
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {self.path}: not a mapping")
            return {}
        return data

    def _update(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to write settings: {e}", file_path=str(self.path)
            ) from e
        logger.debug(f"Saved {key} to {self.path}")
