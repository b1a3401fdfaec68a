# devfiles/settings/config.py

import json
from pathlib import Path
from typing import Any, Dict, Optional

from ..utils.exceptions import (
    ConfigValidationError,
    StorageCorruptedError,
    StorageReadError,
)
from ..utils.logger import get_logger
from ..utils.platform import get_config_directory


class AppConstants:
    """Application metadata and identification constants."""

    APP_VERSION = "0.4.0"


class ConfigPaths:
    """Configuration paths, resolved under the user's config directory."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.logger = get_logger("devfiles.config.paths")
        self.CONFIG_DIR = Path(config_dir) if config_dir else get_config_directory()
        self.DEVICES_FILE = self.CONFIG_DIR / "devices.json"
        self.SETTINGS_FILE = self.CONFIG_DIR / "settings.json"
        self.LOG_DIR = self.CONFIG_DIR / "logs"


class DefaultSettings:
    """Default application settings."""

    @staticmethod
    def get_defaults() -> Dict[str, Any]:
        return {
            # Directory opened when a device is first browsed
            "default_directory": "/media/developer",
            # Seconds allowed for the SSH handshake; transfers themselves never time out
            "connect_timeout": 10,
            "staging_dir_name": "devmgr",
            "log_to_file": False,
            "console_log_level": "ERROR",
        }


_SETTING_TYPES = {
    "default_directory": str,
    "connect_timeout": (int, float),
    "staging_dir_name": str,
    "log_to_file": bool,
    "console_log_level": str,
}

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _validate_setting(key: str, value: Any) -> None:
    expected = _SETTING_TYPES.get(key)
    if expected is None:
        return
    # bool is an int subclass, reject it for numeric settings
    if isinstance(value, bool) and expected is not bool:
        raise ConfigValidationError(key, value, "expected a number")
    if not isinstance(value, expected):
        raise ConfigValidationError(key, value, "unexpected value type")
    if key == "default_directory" and not value.startswith("/"):
        raise ConfigValidationError(key, value, "must be an absolute remote path")
    if key == "connect_timeout" and value <= 0:
        raise ConfigValidationError(key, value, "must be positive")
    if key == "console_log_level" and value.upper() not in _LOG_LEVELS:
        raise ConfigValidationError(key, value, "unknown log level")
    if key == "staging_dir_name" and (not value or "/" in value or "\\" in value):
        raise ConfigValidationError(key, value, "must be a plain directory name")


def load_settings(paths: Optional[ConfigPaths] = None) -> Dict[str, Any]:
    """Load ``settings.json`` merged over the defaults.

    A missing file yields the defaults. Unknown keys are kept but ignored by
    devfiles itself.
    """
    logger = get_logger("devfiles.config")
    paths = paths or ConfigPaths()
    settings = DefaultSettings.get_defaults()

    if not paths.SETTINGS_FILE.exists():
        logger.debug(f"No settings file at {paths.SETTINGS_FILE}, using defaults")
        return settings

    try:
        with open(paths.SETTINGS_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise StorageCorruptedError(str(paths.SETTINGS_FILE), str(e)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise StorageReadError(str(paths.SETTINGS_FILE), str(e)) from e

    if not isinstance(data, dict):
        raise StorageCorruptedError(
            str(paths.SETTINGS_FILE), "Root data is not a dictionary"
        )

    for key, value in data.items():
        _validate_setting(key, value)
        settings[key] = value
    logger.debug(f"Loaded {len(data)} settings from {paths.SETTINGS_FILE}")
    return settings
