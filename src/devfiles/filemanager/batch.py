# devfiles/filemanager/batch.py
"""Per-item retry/skip/abort driver for multi-file operations.

One generic loop serves downloads, uploads and deletions: the caller supplies
the operation run for each item and the controller turns every failure into an
operator decision.
"""

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from ..utils.exceptions import InvalidStateError, describe_error
from ..utils.logger import get_logger
from ..utils.translation_utils import _
from . import paths
from .models import FileEntry
from .session import FileSession


class Decision(Enum):
    RETRY = "retry"
    SKIP = "skip"
    ABORT = "abort"
    CANCEL = "cancel"


BATCH_CHOICES: Tuple[Decision, ...] = (Decision.RETRY, Decision.SKIP, Decision.ABORT)
SINGLE_CHOICES: Tuple[Decision, ...] = (Decision.RETRY, Decision.CANCEL)


class BatchKind(Enum):
    DOWNLOAD = "download"
    UPLOAD = "upload"
    DELETE = "delete"

    @property
    def failure_title(self) -> str:
        titles = {
            BatchKind.DOWNLOAD: _("Failed to download file {}"),
            BatchKind.UPLOAD: _("Failed to upload file {}"),
            BatchKind.DELETE: _("Failed to delete {}"),
        }
        return titles[self]


@dataclass(frozen=True)
class BatchItem:
    """One unit of work: ``source`` -> ``target`` for transfers, ``source`` alone for deletes."""

    label: str
    source: str
    target: Optional[str] = None

    @classmethod
    def download(cls, entry: FileEntry, local_target: Union[str, Path]) -> "BatchItem":
        return cls(entry.filename, entry.abspath, str(local_target))

    @classmethod
    def upload(cls, local_source: Union[str, Path], remote_directory: str) -> "BatchItem":
        filename = Path(local_source).name
        return cls(filename, str(local_source), paths.join(remote_directory, filename))

    @classmethod
    def delete(cls, entry: FileEntry) -> "BatchItem":
        return cls(entry.filename, entry.abspath)


@dataclass
class BatchOutcome:
    total: int
    attempted: int = 0
    completed: bool = True
    skipped_items: List[str] = field(default_factory=list)

    @property
    def aborted(self) -> bool:
        return not self.completed

    @property
    def skipped(self) -> int:
        return len(self.skipped_items)

    @property
    def remaining(self) -> int:
        """Items never attempted because the batch was aborted."""
        return self.total - self.attempted

    @property
    def last_index(self) -> int:
        """0-based index of the last attempted item, -1 when none was attempted."""
        return self.attempted - 1


ItemOperation = Callable[[FileSession, BatchItem], object]


def _download(session: FileSession, item: BatchItem):
    session.get(item.source, item.target)


def _upload(session: FileSession, item: BatchItem):
    session.put(item.source, item.target)


def _delete(session: FileSession, item: BatchItem):
    session.remove(item.source, True)


DEFAULT_OPERATIONS = {
    BatchKind.DOWNLOAD: _download,
    BatchKind.UPLOAD: _upload,
    BatchKind.DELETE: _delete,
}


class DecisionProvider:
    """Resolves a failure into a :class:`Decision`, blocking until answered."""

    def prompt(self, title: str, message: str, choices: Sequence[Decision]) -> Decision:
        raise NotImplementedError

    def confirm(self, title: str, message: str, positive: str, negative: str) -> bool:
        raise NotImplementedError


class PolicyDecisionProvider(DecisionProvider):
    """Answers every prompt with a fixed decision, for unattended runs."""

    def __init__(self, decision: Decision = Decision.SKIP, confirm_answer: bool = True):
        self.decision = decision
        self.confirm_answer = confirm_answer

    def prompt(self, title, message, choices):
        if self.decision in choices:
            return self.decision
        # Single-item prompts have no Skip/Abort, both mean giving up
        if Decision.CANCEL in choices:
            return Decision.CANCEL
        return Decision.ABORT

    def confirm(self, title, message, positive, negative):
        return self.confirm_answer


@dataclass
class PendingDecision:
    """A prompt waiting for an answer from another thread (usually a UI)."""

    title: str
    message: str
    choices: Tuple
    future: Future = field(default_factory=Future)

    def resolve(self, answer) -> None:
        self.future.set_result(answer)


class FutureDecisionProvider(DecisionProvider):
    """Hands each prompt to ``on_prompt`` and blocks on its future.

    There is no timeout: a prompt left open suspends the batch indefinitely.
    """

    def __init__(self, on_prompt: Callable[[PendingDecision], None]):
        self.on_prompt = on_prompt

    def prompt(self, title, message, choices):
        pending = PendingDecision(title, message, tuple(choices))
        self.on_prompt(pending)
        return pending.future.result()

    def confirm(self, title, message, positive, negative):
        pending = PendingDecision(title, message, (positive, negative))
        self.on_prompt(pending)
        return bool(pending.future.result())


class ProgressHandle:
    def dismiss(self) -> None:
        pass


class ProgressIndicator:
    """Signals the start of a batch; the returned handle signals its end."""

    def show(self) -> ProgressHandle:
        return ProgressHandle()


NullProgress = ProgressIndicator


class BatchOperationController:
    """Runs ordered batches against one freshly opened file session.

    ``open_session`` is called once per non-empty batch; the controller ends
    that session on every exit path.
    """

    def __init__(
        self,
        open_session: Callable[[], FileSession],
        decisions: DecisionProvider,
        progress: Optional[ProgressIndicator] = None,
    ):
        self.logger = get_logger("devfiles.filemanager.batch")
        self.open_session = open_session
        self.decisions = decisions
        self.progress = progress or NullProgress()

    def run(
        self,
        kind: BatchKind,
        items: Iterable[BatchItem],
        operation: Optional[ItemOperation] = None,
    ) -> BatchOutcome:
        items = list(items)
        if not items:
            return BatchOutcome(total=0)
        return self._with_session(
            lambda session: self._drive(
                kind, items, operation or DEFAULT_OPERATIONS[kind], session
            )
        )

    def run_single(
        self,
        kind: BatchKind,
        item: BatchItem,
        operation: Optional[ItemOperation] = None,
    ) -> BatchOutcome:
        """One item with Retry/Cancel instead of Retry/Skip/Abort."""
        operation = operation or DEFAULT_OPERATIONS[kind]

        def drive(session: FileSession) -> BatchOutcome:
            decision = self._attempt(kind, item, operation, session, SINGLE_CHOICES)
            return BatchOutcome(total=1, attempted=1, completed=decision is None)

        return self._with_session(drive)

    def download_many(self, entries: Iterable[FileEntry], target_directory) -> BatchOutcome:
        return self.run(
            BatchKind.DOWNLOAD,
            [BatchItem.download(entry, target_directory) for entry in entries],
        )

    def download_one(self, entry: FileEntry, save_path) -> BatchOutcome:
        return self.run_single(BatchKind.DOWNLOAD, BatchItem.download(entry, save_path))

    def upload_many(self, local_sources: Iterable, remote_directory: str) -> BatchOutcome:
        return self.run(
            BatchKind.UPLOAD,
            [BatchItem.upload(source, remote_directory) for source in local_sources],
        )

    def delete_many(self, entries: Iterable[FileEntry]) -> BatchOutcome:
        return self.run(BatchKind.DELETE, [BatchItem.delete(entry) for entry in entries])

    def _with_session(self, body: Callable[[FileSession], BatchOutcome]) -> BatchOutcome:
        handle = self.progress.show()
        try:
            session = self.open_session()
            try:
                return body(session)
            finally:
                session.end()
        finally:
            handle.dismiss()

    def _drive(
        self,
        kind: BatchKind,
        items: List[BatchItem],
        operation: ItemOperation,
        session: FileSession,
    ) -> BatchOutcome:
        outcome = BatchOutcome(total=len(items))
        for index, item in enumerate(items):
            outcome.attempted = index + 1
            decision = self._attempt(kind, item, operation, session, BATCH_CHOICES)
            if decision is None:
                continue
            if decision is Decision.SKIP:
                outcome.skipped_items.append(item.label)
                continue
            outcome.completed = False
            self.logger.info(
                f"{kind.value} batch aborted at item {index + 1}/{len(items)} ({item.label}), "
                f"{outcome.remaining} not attempted"
            )
            return outcome

        self.logger.info(
            f"{kind.value} batch finished: {len(items)} items, {outcome.skipped} skipped"
        )
        return outcome

    def _attempt(
        self,
        kind: BatchKind,
        item: BatchItem,
        operation: ItemOperation,
        session: FileSession,
        choices: Sequence[Decision],
    ) -> Optional[Decision]:
        """Run ``operation`` until it succeeds (None) or the operator gives up."""
        attempt = 0
        while True:
            attempt += 1
            try:
                operation(session, item)
                return None
            except InvalidStateError:
                raise
            except Exception as e:
                self.logger.warning(
                    f"{kind.value} of {item.source} failed (attempt {attempt}): {e}"
                )
                decision = self.decisions.prompt(
                    kind.failure_title.format(item.label), describe_error(e), choices
                )
            if decision not in choices:
                raise ValueError(f"Decision {decision!r} was not offered ({choices})")
            if decision is not Decision.RETRY:
                return decision
            self.logger.debug(f"Retrying {kind.value} of {item.source}")
