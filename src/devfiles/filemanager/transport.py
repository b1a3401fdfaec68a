# devfiles/filemanager/transport.py
import errno
import os
import socket
import stat
import tempfile
import threading
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

import paramiko

from ..utils.exceptions import (
    DeviceUnavailableError,
    QuotaError,
    RemoteFileError,
    RemoteNotFoundError,
    RemotePermissionError,
    TransferError,
    TransportConnectionError,
)
from ..utils.logger import get_logger
from ..utils.translation_utils import _
from . import paths

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}
_QUOTA_MARKERS = ("quota", "no space", "disk full")
_STREAMING_OPERATIONS = {"download", "upload"}


def _reason(exc: BaseException) -> str:
    strerror = getattr(exc, "strerror", None)
    if strerror:
        return str(strerror)
    return str(exc) or type(exc).__name__


def classify_error(exc: BaseException, path: str, operation: str) -> RemoteFileError:
    """Map a paramiko/socket/OS failure onto the remote file error taxonomy."""
    if isinstance(exc, RemoteFileError):
        return exc

    reason = _reason(exc)
    if isinstance(
        exc, (paramiko.SSHException, EOFError, ConnectionError, socket.timeout)
    ):
        return TransportConnectionError(path, reason, operation)

    code = getattr(exc, "errno", None)
    if isinstance(exc, FileNotFoundError) or code == errno.ENOENT:
        return RemoteNotFoundError(path, reason, operation)
    if isinstance(exc, PermissionError) or code in (errno.EACCES, errno.EPERM):
        return RemotePermissionError(path, reason, operation)
    # Quota applies to writes on the device only
    if operation == "upload" and (
        code in _QUOTA_ERRNOS or any(m in reason.lower() for m in _QUOTA_MARKERS)
    ):
        return QuotaError(path, reason, operation)
    if operation in _STREAMING_OPERATIONS:
        return TransferError(path, reason, operation)
    return RemoteFileError(path, reason, operation)


class TransportSession:
    """One live SSH connection to a device with its SFTP channel.

    Calls are serialized with a lock because neither the SSH transport nor
    the SFTP channel may be used concurrently. No call retries on its own.
    """

    def __init__(self, client: Any, sftp: Any, label: str = ""):
        self.logger = get_logger("devfiles.filemanager.transport")
        self.label = label
        self._client = client
        self._sftp = sftp
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = 22,
        username: Optional[str] = None,
        password: Optional[str] = None,
        key_filename: Optional[str] = None,
        passphrase: Optional[str] = None,
        timeout: Optional[float] = None,
        label: Optional[str] = None,
    ) -> "TransportSession":
        """Open a connection; failures surface as DeviceUnavailableError."""
        label = label or host
        logger = get_logger("devfiles.filemanager.transport")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        explicit_credentials = bool(password or key_filename)
        try:
            client.connect(
                hostname=host,
                port=port,
                username=username,
                password=password,
                key_filename=key_filename,
                passphrase=passphrase,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
                look_for_keys=not explicit_credentials,
                allow_agent=not explicit_credentials,
            )
            sftp = client.open_sftp()
        except (paramiko.SSHException, OSError, EOFError) as e:
            logger.warning(f"Connection to {label} ({host}:{port}) failed: {e}")
            client.close()
            raise DeviceUnavailableError(label, _reason(e)) from e

        logger.debug(f"Opened transport to {label} ({host}:{port})")
        return cls(client, sftp, label=label)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self, path: str, operation: str):
        if self._closed:
            raise TransportConnectionError(path, _("connection already closed"), operation)

    def list_directory(self, path: str) -> List[Tuple[str, Any]]:
        with self._lock:
            self._check_open(path, "list")
            try:
                return [(attr.filename, attr) for attr in self._sftp.listdir_attr(path)]
            except Exception as e:
                raise classify_error(e, path, "list") from e

    def stat(self, path: str) -> Any:
        with self._lock:
            self._check_open(path, "stat")
            try:
                return self._sftp.stat(path)
            except Exception as e:
                raise classify_error(e, path, "stat") from e

    def download(self, remote_path: str, local_target: Union[str, Path]) -> None:
        with self._lock:
            self._check_open(remote_path, "download")
            target = Path(local_target)
            try:
                handle = tempfile.NamedTemporaryFile(
                    dir=target.parent, prefix=f".{target.name}.", suffix=".part", delete=False
                )
            except OSError as e:
                raise TransferError(str(target), _reason(e), "download") from e
            try:
                with handle:
                    self._sftp.getfo(remote_path, handle)
            except Exception as e:
                self._discard_partial(handle.name)
                raise classify_error(e, remote_path, "download") from e
            # An existing target is only replaced once the whole file arrived
            try:
                os.replace(handle.name, target)
            except OSError as e:
                self._discard_partial(handle.name)
                raise TransferError(str(target), _reason(e), "download") from e

    def upload(self, local_source: Union[str, Path], remote_path: str) -> None:
        with self._lock:
            self._check_open(remote_path, "upload")
            try:
                handle = open(local_source, "rb")
            except OSError as e:
                raise TransferError(str(local_source), _reason(e), "upload") from e
            with handle:
                try:
                    self._sftp.putfo(handle, remote_path)
                except Exception as e:
                    raise classify_error(e, remote_path, "upload") from e

    def remove(self, path: str, recursive: bool = False) -> None:
        with self._lock:
            self._check_open(path, "delete")
            try:
                self._remove_unlocked(path, recursive)
            except Exception as e:
                raise classify_error(e, path, "delete") from e

    def _remove_unlocked(self, path: str, recursive: bool) -> None:
        attrs = self._sftp.lstat(path)
        mode = getattr(attrs, "st_mode", None)
        if mode is not None and stat.S_ISDIR(mode):
            if recursive:
                for entry in self._sftp.listdir_attr(path):
                    if entry.filename in (".", ".."):
                        continue
                    self._remove_unlocked(paths.join(path, entry.filename), True)
            self._sftp.rmdir(path)
        else:
            self._sftp.remove(path)

    def _discard_partial(self, local_target: Union[str, Path]) -> None:
        try:
            os.unlink(local_target)
        except OSError as e:
            self.logger.debug(f"Could not remove partial download {local_target}: {e}")

    def close(self) -> None:
        """Best-effort disposal of the connection; safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for name, resource in (("sftp", self._sftp), ("ssh", self._client)):
                if resource is None:
                    continue
                try:
                    resource.close()
                except Exception as e:
                    self.logger.warning(f"Error closing {name} channel for {self.label}: {e}")
            self.logger.debug(f"Closed transport to {self.label}")
