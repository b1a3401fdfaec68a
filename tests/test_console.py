import io

from devfiles.filemanager.batch import BATCH_CHOICES, SINGLE_CHOICES, Decision
from devfiles.ui.console import ConsoleDecisionProvider, ConsoleProgress


def _provider(answers):
    out = io.StringIO()
    return ConsoleDecisionProvider(stdin=io.StringIO(answers), stdout=out), out


class TestConsoleDecisionProvider:
    def test_accepts_first_letter(self):
        provider, out = _provider("s\n")
        assert provider.prompt("Failed to delete a", "Permission denied", BATCH_CHOICES) is Decision.SKIP
        assert "Permission denied" in out.getvalue()
        assert "[R]etry / [S]kip / [A]bort" in out.getvalue()

    def test_accepts_full_word_after_bad_answer(self):
        provider, out = _provider("maybe\nRetry\n")
        assert provider.prompt("t", "m", BATCH_CHOICES) is Decision.RETRY
        assert "Please answer one of" in out.getvalue()

    def test_letters_not_offered_are_refused(self):
        provider, _ = _provider("s\nc\n")
        assert provider.prompt("t", "m", SINGLE_CHOICES) is Decision.CANCEL

    def test_closed_input_aborts_batches(self):
        provider, _ = _provider("")
        assert provider.prompt("t", "m", BATCH_CHOICES) is Decision.ABORT

    def test_closed_input_cancels_single_items(self):
        provider, _ = _provider("")
        assert provider.prompt("t", "m", SINGLE_CHOICES) is Decision.CANCEL

    def test_confirm(self):
        assert _provider("y\n")[0].confirm("t", "m", "Delete", "Cancel")
        assert _provider("delete\n")[0].confirm("t", "m", "Delete", "Cancel")
        assert not _provider("\n")[0].confirm("t", "m", "Delete", "Cancel")


class TestConsoleProgress:
    def test_show_and_dismiss_write_to_stream(self):
        stream = io.StringIO()
        ConsoleProgress(stream).show().dismiss()
        assert stream.getvalue() == "Working...\nDone.\n"
