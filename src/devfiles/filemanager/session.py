# devfiles/filemanager/session.py
import os
from pathlib import Path
from typing import Any, List, Union

from ..utils.exceptions import InvalidStateError
from ..utils.logger import get_logger, log_transfer_event
from . import paths
from .models import FileEntry, sort_entries


class FileSession:
    """Typed file operations over one transport session to one device.

    The session owns its transport exclusively. Callers end it exactly once,
    normally through ``with session:``; any operation after :meth:`end`
    raises :class:`InvalidStateError`.
    """

    def __init__(self, device_name: str, transport: Any):
        self.logger = get_logger("devfiles.filemanager.session")
        self.device_name = device_name
        self._transport = transport
        self._ended = False

    def __enter__(self) -> "FileSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.end()
        return False

    def __repr__(self) -> str:
        state = "ended" if self._ended else "open"
        return f"<FileSession device={self.device_name!r} {state}>"

    @property
    def ended(self) -> bool:
        return self._ended

    def _require_open(self, operation: str):
        if self._ended:
            raise InvalidStateError(
                f"Cannot {operation} on an ended session for device '{self.device_name}'"
            )

    def list_entries(self, path: str) -> List[FileEntry]:
        """List ``path``; directories first, then by filename."""
        self._require_open("list directory")
        directory = paths.target_path(path)
        raw_entries = self._transport.list_directory(directory)
        entries = [
            FileEntry.from_listing(directory, filename, raw)
            for filename, raw in raw_entries
            if filename not in (".", "..")
        ]
        self.logger.debug(f"Listed {len(entries)} entries in {directory} on {self.device_name}")
        return sort_entries(entries)

    def stat(self, remote_path: str) -> Any:
        self._require_open("stat")
        return self._transport.stat(paths.target_path(remote_path))

    def get(self, remote_path: str, local_target: Union[str, Path]) -> Path:
        """Download one file; a directory target receives the remote basename.

        Returns the local path that was written.
        """
        self._require_open("download")
        remote_path = paths.target_path(remote_path)
        local_path = Path(local_target)
        if local_path.is_dir():
            local_path = local_path / paths.basename(remote_path)
        self._transport.download(remote_path, os.fspath(local_path))
        log_transfer_event("downloaded", self.device_name, remote_path, str(local_path))
        return local_path

    def put(self, local_source: Union[str, Path], remote_path: str) -> str:
        self._require_open("upload")
        remote_path = paths.target_path(remote_path)
        self._transport.upload(os.fspath(local_source), remote_path)
        log_transfer_event("uploaded", self.device_name, remote_path, str(local_source))
        return remote_path

    def remove(self, remote_path: str, recursive: bool = True) -> None:
        self._require_open("delete")
        remote_path = paths.target_path(remote_path)
        self._transport.remove(remote_path, recursive)
        log_transfer_event("removed", self.device_name, remote_path)

    def end(self) -> None:
        """Close the underlying transport; later calls are no-ops."""
        if self._ended:
            return
        self._ended = True
        self._transport.close()
        self.logger.debug(f"Ended file session for {self.device_name}")
