# devfiles/utils/platform.py

import os
import shutil
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from typing import Optional, Union

from .exceptions import ConfigError
from .logger import get_logger


class PlatformInfo:
    """Information about the host the operator runs devfiles on."""

    def __init__(self):
        self.logger = get_logger("devfiles.platform")
        self.home_dir = Path.home()
        self.config_dir = self._get_config_directory()
        self.ssh_dir = self.home_dir / ".ssh"
        self.temp_dir = Path(tempfile.gettempdir())

    def _get_config_directory(self) -> Path:
        if override := os.environ.get("DEVFILES_CONFIG_DIR"):
            return Path(override)
        if xdg_config := os.environ.get("XDG_CONFIG_HOME"):
            return Path(xdg_config) / "devfiles"
        return self.home_dir / ".config" / "devfiles"

    def default_open_command(self) -> Optional[str]:
        """Name of the command that hands a file to the desktop's default handler."""
        if sys.platform == "darwin":
            return shutil.which("open")
        return shutil.which("xdg-open")


_platform_info: Optional[PlatformInfo] = None


def get_platform_info() -> PlatformInfo:
    """Get the global platform information instance."""
    global _platform_info
    if _platform_info is None:
        _platform_info = PlatformInfo()
    return _platform_info


def reset_platform_info() -> None:
    """Drop the cached instance so environment overrides are re-read."""
    global _platform_info
    _platform_info = None


def get_config_directory() -> Path:
    return get_platform_info().config_dir


def get_ssh_directory() -> Path:
    return get_platform_info().ssh_dir


def ensure_directory_exists(directory: Union[str, Path], mode: int = 0o755) -> bool:
    """Ensure directory exists, creating it if necessary."""
    directory_path = Path(directory).expanduser()
    if directory_path.exists():
        if not directory_path.is_dir():
            raise ConfigError(f"Path exists but is not a directory: {directory_path}")
        return True
    try:
        directory_path.mkdir(parents=True, exist_ok=True)
        directory_path.chmod(mode)
        return True
    except OSError as e:
        get_logger("devfiles.platform.directory").error(
            f"Failed to ensure directory exists: {directory}: {e}"
        )
        raise ConfigError(f"Failed to create directory: {directory}") from e


def get_staging_directory(name: str = "devmgr") -> Path:
    """Writable temporary directory that holds files downloaded for viewing."""
    staging = get_platform_info().temp_dir / name
    ensure_directory_exists(staging, mode=0o700)
    return staging


def unique_staging_path(filename: str, name: str = "devmgr") -> Path:
    """A fresh local path for one downloaded file, ``<epoch-ms>_<filename>``."""
    staging = get_staging_directory(name)
    candidate = staging / f"{int(time.time() * 1000)}_{filename}"
    counter = 1
    while candidate.exists():
        candidate = staging / f"{int(time.time() * 1000)}_{counter}_{filename}"
        counter += 1
    return candidate


def open_with_default_handler(path: Union[str, Path]) -> bool:
    """Ask the host to open ``path`` with its default application."""
    logger = get_logger("devfiles.platform.open")
    path = str(path)
    if sys.platform == "win32":
        os.startfile(path)  # type: ignore[attr-defined]
        return True

    command = get_platform_info().default_open_command()
    if not command:
        logger.warning(f"No default handler available to open {path}")
        return False
    try:
        subprocess.Popen(
            [command, path],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        return True
    except OSError as e:
        logger.error(f"Failed to launch default handler for {path}: {e}")
        return False
