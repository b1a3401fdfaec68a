# devfiles/ui/console.py
"""Terminal front end for operator prompts and batch progress."""

import sys
from typing import Dict, Optional, Sequence, TextIO

from ..filemanager.batch import (
    Decision,
    DecisionProvider,
    ProgressHandle,
    ProgressIndicator,
)
from ..utils.logger import get_logger
from ..utils.translation_utils import _

_LABELS: Dict[Decision, str] = {
    Decision.RETRY: _("Retry"),
    Decision.SKIP: _("Skip"),
    Decision.ABORT: _("Abort"),
    Decision.CANCEL: _("Cancel"),
}


class ConsoleDecisionProvider(DecisionProvider):
    """Asks on the terminal. Blocks until the operator answers; EOF gives up."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.logger = get_logger("devfiles.ui.console")
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def _ask(self, question: str) -> Optional[str]:
        self.stdout.write(question)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        return line.strip().lower()

    def prompt(self, title: str, message: str, choices: Sequence[Decision]) -> Decision:
        keys = {_LABELS[choice][0].lower(): choice for choice in choices}
        menu = " / ".join(f"[{_LABELS[c][0]}]{_LABELS[c][1:]}" for c in choices)
        self.stdout.write(f"\n{title}\n  {message}\n")
        while True:
            answer = self._ask(f"{menu}? ")
            if answer is None:
                # Closed stdin cannot answer; stop rather than loop
                giving_up = Decision.ABORT if Decision.ABORT in choices else choices[-1]
                self.logger.warning(f"No input available, answering {giving_up.value}")
                return giving_up
            if answer in keys:
                return keys[answer]
            for choice in choices:
                if answer == _LABELS[choice].lower():
                    return choice
            self.stdout.write(_("Please answer one of: {}\n").format(menu))

    def confirm(self, title: str, message: str, positive: str, negative: str) -> bool:
        self.stdout.write(f"\n{title}\n  {message}\n")
        answer = self._ask(f"{positive} / {negative} [y/N]? ")
        return answer in ("y", "yes", positive.lower())


class _ConsoleProgressHandle(ProgressHandle):
    def __init__(self, stream: TextIO):
        self.stream = stream

    def dismiss(self) -> None:
        self.stream.write(_("Done.\n"))
        self.stream.flush()


class ConsoleProgress(ProgressIndicator):
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stderr

    def show(self) -> ProgressHandle:
        self.stream.write(_("Working...\n"))
        self.stream.flush()
        return _ConsoleProgressHandle(self.stream)
