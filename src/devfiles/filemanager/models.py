# devfiles/filemanager/models.py
import stat
from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, Iterable, List, Optional

from . import paths


class FileType(Enum):
    FILE = "file"
    DIR = "dir"
    OTHER = "other"


@dataclass(frozen=True)
class FileAttributes:
    size: int = 0
    mtime: int = 0
    permissions: int = 0

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["FileAttributes"]:
        """Build attributes from an SFTP attribute record.

        Returns None when the record carries nothing usable (unreadable entry).
        """
        if raw is None:
            return None
        size = getattr(raw, "st_size", None)
        mtime = getattr(raw, "st_mtime", None)
        mode = getattr(raw, "st_mode", None)
        if size is None and mtime is None and mode is None:
            return None
        return cls(size=int(size or 0), mtime=int(mtime or 0), permissions=int(mode or 0))


def file_type_from_mode(mode: Optional[int]) -> FileType:
    if mode is None:
        return FileType.OTHER
    if stat.S_ISDIR(mode):
        return FileType.DIR
    if stat.S_ISREG(mode):
        return FileType.FILE
    return FileType.OTHER


@dataclass(frozen=True)
class FileEntry:
    """One item of a remote directory listing."""

    filename: str
    type: FileType
    abspath: str
    attrs: Optional[FileAttributes] = None

    @classmethod
    def from_listing(cls, directory: str, filename: str, raw: Any) -> "FileEntry":
        attrs = FileAttributes.from_raw(raw)
        mode = getattr(raw, "st_mode", None) if raw is not None else None
        return cls(
            filename=filename,
            type=file_type_from_mode(mode),
            abspath=paths.join(directory, filename),
            attrs=attrs,
        )

    @property
    def is_directory(self) -> bool:
        return self.type is FileType.DIR

    @property
    def size(self) -> int:
        return self.attrs.size if self.attrs else 0

    @property
    def mtime(self) -> int:
        return self.attrs.mtime if self.attrs else 0

    @property
    def permissions(self) -> int:
        return self.attrs.permissions if self.attrs else 0

    @property
    def mode_string(self) -> str:
        """``ls``-style permission string, e.g. ``drwxr-xr-x``."""
        if not self.attrs:
            return "?" * 10
        return stat.filemode(self.attrs.permissions)


def _dirs_first(a: FileEntry, b: FileEntry, secondary: Callable = None) -> int:
    a_type = 0 if a.is_directory else 1
    b_type = 0 if b.is_directory else 1
    if a_type != b_type:
        return a_type - b_type
    if secondary:
        result = secondary(a, b)
        if result:
            return result
    return (a.filename > b.filename) - (a.filename < b.filename)


def compare_name(a: FileEntry, b: FileEntry) -> int:
    return _dirs_first(a, b)


def compare_size(a: FileEntry, b: FileEntry) -> int:
    # Directory sizes are meaningless over SFTP
    size_a = a.size if a.type is FileType.FILE else 0
    size_b = b.size if b.type is FileType.FILE else 0
    return _dirs_first(a, b, lambda x, y: size_a - size_b)


def compare_mtime(a: FileEntry, b: FileEntry) -> int:
    return _dirs_first(a, b, lambda x, y: (x.mtime > y.mtime) - (x.mtime < y.mtime))


SORTERS = {
    "name": compare_name,
    "size": compare_size,
    "mtime": compare_mtime,
}


def sort_entries(entries: Iterable[FileEntry], by: str = "name", reverse: bool = False) -> List[FileEntry]:
    """Sort entries directories first; ``reverse`` only flips the secondary order."""
    compare = SORTERS[by]
    if reverse:
        ordered = sorted(
            entries, key=cmp_to_key(lambda a, b: _dirs_first(a, b, lambda x, y: -compare(x, y)))
        )
    else:
        ordered = sorted(entries, key=cmp_to_key(compare))
    return ordered
