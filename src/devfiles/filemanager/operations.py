# devfiles/filemanager/operations.py
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from ..core.tasks import AsyncTaskManager
from ..settings.config import DefaultSettings
from ..utils.exceptions import DevfilesError, InvalidStateError
from ..utils.logger import get_logger
from ..utils.platform import (
    ensure_directory_exists,
    open_with_default_handler,
    unique_staging_path,
)
from ..utils.translation_utils import _
from . import paths
from .batch import (
    BatchOperationController,
    BatchOutcome,
    DecisionProvider,
    ProgressIndicator,
)
from .models import FileEntry, FileType, sort_entries


class FileBrowser:
    """Browses one device's filesystem and runs file operations on it.

    Each logical operation acquires its own file session from the device
    manager and ends it before returning; nothing is kept open between calls.
    """

    def __init__(
        self,
        device_manager: Any,
        device_name: str,
        decisions: DecisionProvider,
        progress: Optional[ProgressIndicator] = None,
        settings: Optional[Dict[str, Any]] = None,
        opener: Callable[[Path], Any] = open_with_default_handler,
    ):
        self.logger = get_logger("devfiles.filemanager.operations")
        self.device_manager = device_manager
        self.device_name = device_name
        self.decisions = decisions
        self.settings = settings or DefaultSettings.get_defaults()
        self.opener = opener
        self.pwd: Optional[str] = None
        self.entries: List[FileEntry] = []
        self.refresh_error: Optional[DevfilesError] = None
        self.batch = BatchOperationController(
            device_manager.session_opener(device_name), decisions, progress
        )

    @property
    def breadcrumb(self) -> List[str]:
        return paths.breadcrumb(self.pwd or paths.ROOT)

    def cd(self, directory: str) -> List[FileEntry]:
        """List ``directory``; on failure the current directory is unchanged."""
        directory = paths.target_path(directory)
        self.logger.debug(f"cd {directory} on {self.device_name}")
        with self.device_manager.open_session(self.device_name) as session:
            entries = session.list_entries(directory)
        self.pwd = directory
        self.entries = entries
        return entries

    def home(self) -> List[FileEntry]:
        return self.cd(self.settings.get("default_directory", paths.ROOT))

    def refresh(self) -> List[FileEntry]:
        if self.pwd is None:
            return self.home()
        return self.cd(self.pwd)

    def breadcrumb_nav(self, segments: Sequence[str]) -> List[FileEntry]:
        return self.cd(paths.from_breadcrumb(segments))

    def sort_by(self, key: str = "name", reverse: bool = False) -> List[FileEntry]:
        self.entries = sort_entries(self.entries, by=key, reverse=reverse)
        return self.entries

    def find(self, filename: str) -> Optional[FileEntry]:
        for entry in self.entries:
            if entry.filename == filename:
                return entry
        return None

    def entry_for(self, path: str) -> FileEntry:
        """An attribute-less entry for ``path``, relative to the current directory."""
        abspath = paths.resolve(self.pwd or paths.ROOT, [path])
        known = self.find(paths.basename(abspath))
        if known is not None and known.abspath == abspath:
            return known
        return FileEntry(paths.basename(abspath), FileType.OTHER, abspath)

    def open_item(self, entry: FileEntry) -> Union[List[FileEntry], Path, None]:
        if entry.type is FileType.DIR:
            return self.cd(paths.join(self.pwd or paths.ROOT, entry.filename))
        if entry.type is FileType.FILE:
            return self.open_file(entry)
        return None

    def open_file(self, entry: FileEntry) -> Path:
        """Download ``entry`` to a unique staging file and hand it to the host."""
        staging_path = unique_staging_path(
            entry.filename, self.settings.get("staging_dir_name", "devmgr")
        )
        with self.device_manager.open_session(self.device_name) as session:
            session.get(entry.abspath, staging_path)
        self.opener(staging_path)
        return staging_path

    def download_files(
        self, entries: Iterable[FileEntry], destination: Union[str, Path]
    ) -> Optional[BatchOutcome]:
        """Download one file to a save path, or many into a directory."""
        entries = list(entries)
        if not entries:
            return None
        destination = Path(destination)
        if len(entries) == 1:
            return self.download_file(entries[0], destination)
        ensure_directory_exists(destination)
        return self.batch.download_many(entries, destination)

    def download_file(self, entry: FileEntry, save_path: Union[str, Path]) -> BatchOutcome:
        return self.batch.download_one(entry, save_path)

    def upload_files(self, local_sources: Iterable[Union[str, Path]]) -> Optional[BatchOutcome]:
        local_sources = list(local_sources)
        if not local_sources:
            return None
        if self.pwd is None:
            raise InvalidStateError(_("No remote directory is open"))
        outcome = self.batch.upload_many(local_sources, self.pwd)
        self._refresh_after_batch()
        return outcome

    def remove_files(
        self, entries: Iterable[FileEntry], confirm: bool = True
    ) -> Optional[BatchOutcome]:
        entries = list(entries)
        if not entries:
            return None
        if confirm and not self.decisions.confirm(
            _("Are you sure to delete selected files?"),
            _("Deleting files you don't know may break your device"),
            _("Delete"),
            _("Cancel"),
        ):
            return None
        outcome = self.batch.delete_many(entries)
        self._refresh_after_batch()
        return outcome

    def _refresh_after_batch(self) -> None:
        self.refresh_error = None
        if self.pwd is None:
            return
        try:
            self.cd(self.pwd)
        except DevfilesError as e:
            self.logger.warning(f"Could not refresh {self.pwd} after batch: {e}")
            self.refresh_error = e

    def submit(self, fn: Callable, *args, **kwargs) -> Optional[Future]:
        """Run one of this browser's operations on the shared I/O pool."""
        return AsyncTaskManager.get().submit_io(fn, *args, **kwargs)
