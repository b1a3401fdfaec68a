# devfiles/utils/logger.py
"""
Logging for devfiles.

Every module asks :func:`get_logger` for a named logger. All of them share one
:class:`LoggerSettings`; changing it (console level, file logging) rebuilds
the handlers of every logger handed out so far. The log directory is only
created once file logging is switched on.
"""

import logging
import logging.handlers
import os
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(threadName)s | %(message)s"


class LoggerSettings:
    """Mutable logging configuration shared by all devfiles loggers."""

    def __init__(self):
        self.console_level = logging.ERROR
        self.log_to_file = False
        self.file_level = logging.DEBUG
        self.max_bytes = 10 * 1024 * 1024
        self.backup_count = 5
        self._log_dir: Optional[Path] = None

    @property
    def log_dir(self) -> Path:
        if self._log_dir is None:
            from .platform import get_config_directory

            self._log_dir = get_config_directory() / "logs"
        return self._log_dir

    @log_dir.setter
    def log_dir(self, value: Path):
        self._log_dir = Path(value)


class ColoredFormatter(logging.Formatter):
    """Colors the level name on terminals; plain text otherwise."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__(CONSOLE_FORMAT, datefmt="%H:%M:%S")
        self.use_color = use_color

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(record.levelno)
        if self.use_color and color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is at emit time."""

    def __init__(self, level: int):
        super().__init__()
        self.setLevel(level)

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


class ThreadSafeLogger:
    """A named logger whose handlers are rebuilt under a lock on reconfiguration."""

    def __init__(self, name: str, settings: LoggerSettings):
        self.name = name
        self.settings = settings
        self._logger = logging.getLogger(name)
        self._logger.propagate = False
        self._logger.setLevel(logging.DEBUG)
        self._lock = threading.Lock()
        self.configure()

    def _build_handlers(self) -> List[logging.Handler]:
        console = _StderrHandler(self.settings.console_level)
        console.setFormatter(ColoredFormatter(use_color=sys.stderr.isatty()))
        handlers: List[logging.Handler] = [console]
        if not self.settings.log_to_file:
            return handlers

        log_dir = self.settings.log_dir
        log_dir.mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(FILE_FORMAT)
        for filename, level in (
            ("devfiles.log", self.settings.file_level),
            ("devfiles_errors.log", logging.ERROR),
        ):
            handler = logging.handlers.RotatingFileHandler(
                log_dir / filename,
                maxBytes=self.settings.max_bytes,
                backupCount=self.settings.backup_count,
                encoding="utf-8",
            )
            handler.setLevel(level)
            handler.setFormatter(file_formatter)
            handlers.append(handler)
        return handlers

    def configure(self) -> None:
        with self._lock:
            for handler in list(self._logger.handlers):
                self._logger.removeHandler(handler)
                handler.close()
            for handler in self._build_handlers():
                self._logger.addHandler(handler)

    def debug(self, message: str, **kwargs):
        self._logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._logger.warning(message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        self._logger.error(message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs):
        self._logger.exception(message, **kwargs)


class LoggerManager:
    """Process-wide registry of devfiles loggers."""

    _instance: Optional["LoggerManager"] = None
    _lock = threading.RLock()
    settings: LoggerSettings
    _loggers: Dict[str, ThreadSafeLogger]

    def __new__(cls) -> "LoggerManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance.settings = LoggerSettings()
                instance._loggers = {}
                # paramiko reports every channel open/close at INFO
                logging.getLogger("paramiko").setLevel(logging.WARNING)
                cls._instance = instance
        return cls._instance

    def get_logger(self, name: str) -> ThreadSafeLogger:
        with self._lock:
            logger = self._loggers.get(name)
            if logger is None:
                logger = self._loggers[name] = ThreadSafeLogger(name, self.settings)
            return logger

    def _reconfigure(self) -> None:
        for logger in list(self._loggers.values()):
            logger.configure()

    def set_console_level(self, level: int) -> None:
        with self._lock:
            self.settings.console_level = level
            self._reconfigure()

    def set_log_to_file_enabled(self, enabled: bool) -> None:
        with self._lock:
            if self.settings.log_to_file == enabled:
                return
            self.settings.log_to_file = enabled
            self._reconfigure()

    def set_log_directory(self, path: Path) -> None:
        with self._lock:
            self.settings.log_dir = path
            if self.settings.log_to_file:
                self._reconfigure()


_manager = LoggerManager()


def get_logger(name: str = "devfiles") -> ThreadSafeLogger:
    return _manager.get_logger(name)


def set_console_log_level(level_name: str) -> None:
    """Set the console threshold from a level name such as ``"INFO"``."""
    level = LEVELS.get(level_name.upper())
    if level is None:
        get_logger("devfiles.logger").error(f"Unknown log level: {level_name}")
        return
    _manager.set_console_level(level)


def set_log_to_file_enabled(enabled: bool) -> None:
    _manager.set_log_to_file_enabled(enabled)


def set_log_directory(path: Path) -> None:
    """Write log files under ``path`` from now on."""
    _manager.set_log_directory(path)


def enable_debug_mode() -> None:
    _manager.set_console_level(logging.DEBUG)
    os.environ["DEVFILES_DEBUG"] = "1"


def log_transfer_event(event_type: str, device_name: str, path: str, details: str = ""):
    """Record a download, upload or removal against ``device_name``."""
    message = f"[{device_name}] {event_type} {path}"
    if details:
        message += f" ({details})"
    get_logger("devfiles.transfers").info(message)


def log_error_with_context(error: Exception, context: str, logger_name: Optional[str] = None):
    get_logger(logger_name or "devfiles").error(f"{context}: {error}", exc_info=True)
