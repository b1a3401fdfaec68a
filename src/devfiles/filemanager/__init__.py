# devfiles/filemanager/__init__.py
"""Remote file browsing, transfers and batch operations."""

from .batch import (
    BatchOperationController,
    BatchOutcome,
    Decision,
    DecisionProvider,
    FutureDecisionProvider,
    PolicyDecisionProvider,
)
from .models import FileEntry, FileType
from .operations import FileBrowser
from .session import FileSession

__all__ = [
    "BatchOperationController",
    "BatchOutcome",
    "Decision",
    "DecisionProvider",
    "FileBrowser",
    "FileEntry",
    "FileSession",
    "FileType",
    "FutureDecisionProvider",
    "PolicyDecisionProvider",
]
