# devfiles/utils/exceptions.py

from enum import Enum
from typing import Any, Dict, Optional

from .translation_utils import _


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""

    DEVICE = "device"
    SESSION = "session"
    NETWORK = "network"
    FILESYSTEM = "filesystem"
    PERMISSION = "permission"
    TRANSFER = "transfer"
    STORAGE = "storage"
    CONFIG = "config"
    SYSTEM = "system"


class DevfilesError(Exception):
    """Base exception class for all devfiles errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.details = details or {}
        self.user_message = user_message or self._generate_user_message()

    def _generate_user_message(self) -> str:
        """Generate a user-friendly message based on the category."""
        category_messages = {
            ErrorCategory.DEVICE: _("The device is not available"),
            ErrorCategory.SESSION: _("A file session error occurred"),
            ErrorCategory.NETWORK: _("A network error occurred"),
            ErrorCategory.FILESYSTEM: _("A remote filesystem error occurred"),
            ErrorCategory.PERMISSION: _("A permission error occurred"),
            ErrorCategory.TRANSFER: _("A file transfer error occurred"),
            ErrorCategory.STORAGE: _("A data storage error occurred"),
            ErrorCategory.CONFIG: _("A configuration error occurred"),
            ErrorCategory.SYSTEM: _("A system error occurred"),
        }
        return category_messages.get(self.category, _("An unexpected error occurred"))

    def __str__(self) -> str:
        return f"[{self.category.value.upper()}:{self.severity.value.upper()}] {self.message}"


class RemoteFileError(DevfilesError):
    """Base class for failures of an operation on one remote path.

    ``user_message`` carries the underlying reason verbatim so prompts can
    show it next to a contextual title.
    """

    def __init__(self, path: str, reason: str, operation: str = "access", **kwargs):
        message = _("Failed to {} '{}': {}").format(operation, path, reason)
        kwargs.setdefault("category", ErrorCategory.FILESYSTEM)
        kwargs.setdefault("details", {"path": path, "operation": operation, "reason": reason})
        kwargs.setdefault("user_message", reason)
        super().__init__(message, **kwargs)
        self.path = path
        self.operation = operation
        self.reason = reason


class TransportConnectionError(RemoteFileError):
    """Raised when the connection to the device drops or cannot be used."""

    def __init__(self, path: str, reason: str, operation: str = "access", **kwargs):
        kwargs.setdefault("category", ErrorCategory.NETWORK)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(path, reason, operation, **kwargs)


class RemoteNotFoundError(RemoteFileError):
    """Raised when a remote path vanished or never existed."""


class RemotePermissionError(RemoteFileError):
    """Raised when the device denies access to a path."""

    def __init__(self, path: str, reason: str, operation: str = "access", **kwargs):
        kwargs.setdefault("category", ErrorCategory.PERMISSION)
        super().__init__(path, reason, operation, **kwargs)


class TransferError(RemoteFileError):
    """Raised on an I/O failure while streaming bytes at either end."""

    def __init__(self, path: str, reason: str, operation: str = "transfer", **kwargs):
        kwargs.setdefault("category", ErrorCategory.TRANSFER)
        super().__init__(path, reason, operation, **kwargs)


class QuotaError(TransferError):
    """Raised when the device rejects a write because it ran out of space."""

    def __init__(self, path: str, reason: str, operation: str = "upload", **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(path, reason, operation, **kwargs)


class DeviceUnavailableError(DevfilesError):
    """Raised when no file session can be obtained for a device."""

    def __init__(self, device_name: str, reason: str, **kwargs):
        message = _("Device '{}' is not available: {}").format(device_name, reason)
        kwargs.setdefault("category", ErrorCategory.DEVICE)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("details", {"device": device_name, "reason": reason})
        kwargs.setdefault("user_message", reason)
        super().__init__(message, **kwargs)
        self.device_name = device_name
        self.reason = reason


class InvalidStateError(DevfilesError):
    """Raised when an operation is issued on a session that was already ended."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.SESSION)
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL)
        super().__init__(message, **kwargs)


class StorageError(DevfilesError):
    """Base class for storage-related errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.STORAGE)
        super().__init__(message, **kwargs)


class StorageReadError(StorageError):
    """Raised when reading from storage fails."""

    def __init__(self, file_path: str, reason: str, **kwargs):
        message = _("Failed to read from '{}': {}").format(file_path, reason)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("details", {"file_path": file_path, "reason": reason})
        kwargs.setdefault("user_message", _("Could not load saved data"))
        super().__init__(message, **kwargs)


class StorageCorruptedError(StorageError):
    """Raised when storage data is corrupted."""

    def __init__(self, file_path: str, details: str = "", **kwargs):
        message = _("Storage file '{}' is corrupted").format(file_path)
        if details:
            message += _(": {}").format(details)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault(
            "details", {"file_path": file_path, "corruption_details": details}
        )
        kwargs.setdefault("user_message", _("Saved data appears to be corrupted"))
        super().__init__(message, **kwargs)


class ConfigError(DevfilesError):
    """Base class for configuration-related errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.CONFIG)
        super().__init__(message, **kwargs)


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    def __init__(self, config_key: str, value: Any, reason: str, **kwargs):
        message = _("Invalid configuration for '{}' (value: {}): {}").format(
            config_key, value, reason
        )
        kwargs.setdefault(
            "details", {"config_key": config_key, "value": value, "reason": reason}
        )
        kwargs.setdefault("user_message", _("Configuration error: {}").format(reason))
        super().__init__(message, **kwargs)


def describe_error(error: BaseException) -> str:
    """Return the message to show an operator for ``error``."""
    if isinstance(error, DevfilesError):
        return error.user_message
    return str(error) or type(error).__name__


def handle_exception(
    exception: Exception,
    context: str = "",
    logger_name: str = None,
    reraise: bool = False,
) -> Optional[DevfilesError]:
    """Handle an exception by logging it and optionally converting to DevfilesError."""
    from .logger import log_error_with_context

    log_error_with_context(exception, context, logger_name)
    converted_exception = (
        exception
        if isinstance(exception, DevfilesError)
        else DevfilesError(
            message=str(exception),
            details={"original_type": type(exception).__name__, "context": context},
        )
    )
    if reraise:
        raise converted_exception
    return converted_exception
