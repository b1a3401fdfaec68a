import json
import stat
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest

from devfiles.devices.manager import DeviceManager
from devfiles.devices.storage import DeviceStorageManager
from devfiles.filemanager import paths
from devfiles.filemanager.batch import DecisionProvider
from devfiles.filemanager.transport import classify_error
from devfiles.settings.config import DefaultSettings
from devfiles.utils.exceptions import TransportConnectionError
from devfiles.utils.platform import reset_platform_info


class FakeDeviceState:
    """In-memory remote filesystem shared by every connection to one fake device."""

    def __init__(self):
        self.files = {}
        self.dirs = {"/"}
        self.failures = {}
        self.calls = []
        self.opened = 0
        self.closed = 0

    def add_dir(self, path):
        path = paths.target_path(path)
        while path != "/":
            self.dirs.add(path)
            path = paths.parent(path)

    def add_file(self, path, data=b"", mtime=0):
        path = paths.target_path(path)
        self.add_dir(paths.parent(path))
        self.files[path] = (data, mtime)

    def fail(self, operation, path, *errors):
        """Queue ``errors`` raised by the next calls of ``operation`` on ``path``."""
        self.failures.setdefault((operation, path), []).extend(errors)

    def maybe_fail(self, operation, path):
        self.calls.append((operation, path))
        queued = self.failures.get((operation, path))
        if queued:
            raise queued.pop(0)

    def attr(self, path):
        if path in self.dirs:
            return SimpleNamespace(
                filename=paths.basename(path), st_size=4096, st_mtime=0, st_mode=stat.S_IFDIR | 0o755
            )
        data, mtime = self.files[path]
        return SimpleNamespace(
            filename=paths.basename(path),
            st_size=len(data),
            st_mtime=mtime,
            st_mode=stat.S_IFREG | 0o644,
        )

    def children(self, directory):
        names = set()
        for path in list(self.files) + list(self.dirs):
            if path != "/" and paths.parent(path) == directory:
                names.add(path)
        return sorted(names, reverse=True)


class FakeTransport:
    """Stands in for TransportSession on top of a FakeDeviceState."""

    def __init__(self, state):
        self.state = state
        self.closed = False
        state.opened += 1

    def _check(self, path, operation):
        if self.closed:
            raise TransportConnectionError(path, "connection already closed", operation)
        self.state.maybe_fail(operation, path)

    def list_directory(self, path):
        self._check(path, "list")
        if path not in self.state.dirs:
            raise classify_error(FileNotFoundError(2, "No such file", path), path, "list")
        return [(".", None), ("..", None)] + [
            (paths.basename(child), self.state.attr(child))
            for child in self.state.children(path)
        ]

    def stat(self, path):
        self._check(path, "stat")
        return self.state.attr(path)

    def download(self, remote_path, local_target):
        self._check(remote_path, "download")
        data, _mtime = self.state.files[remote_path]
        Path(local_target).write_bytes(data)

    def upload(self, local_source, remote_path):
        self._check(remote_path, "upload")
        self.state.add_file(remote_path, Path(local_source).read_bytes())

    def remove(self, path, recursive=False):
        self._check(path, "delete")
        if path in self.state.files:
            del self.state.files[path]
            return
        for child in self.state.children(path):
            self.remove(child, recursive)
        self.state.dirs.discard(path)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.state.closed += 1


class ScriptedDecisionProvider(DecisionProvider):
    """Answers prompts from a fixed script and records what was asked."""

    def __init__(self, *answers, confirm_answer=True):
        self.answers = list(answers)
        self.prompts = []
        self.confirmations = []
        self.confirm_answer = confirm_answer

    def prompt(self, title, message, choices):
        self.prompts.append((title, message, tuple(choices)))
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {title}")
        return self.answers.pop(0)

    def confirm(self, title, message, positive, negative):
        self.confirmations.append((title, message, positive, negative))
        return self.confirm_answer


@pytest.fixture
def temp_config_dir(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("DEVFILES_CONFIG_DIR", tmpdir)
        reset_platform_info()
        yield Path(tmpdir)
    reset_platform_info()


@pytest.fixture
def device_state():
    return FakeDeviceState()


@pytest.fixture
def devices_file(temp_config_dir):
    path = temp_config_dir / "devices.json"
    path.write_text(
        json.dumps(
            [
                {
                    "name": "tv",
                    "host": "10.0.0.5",
                    "port": 9922,
                    "username": "prisoner",
                    "privateKey": {"openSsh": "tv_webos"},
                    "passphrase": "ABC123",
                    "default": True,
                },
                {"name": "emulator", "host": "127.0.0.1", "port": 6622},
            ]
        )
    )
    return path


@pytest.fixture
def device_manager(devices_file, device_state):
    connections = []

    def connector(device, timeout=None):
        connections.append((device.name, timeout))
        return FakeTransport(device_state)

    manager = DeviceManager(
        DeviceStorageManager(devices_file), DefaultSettings.get_defaults(), connector
    )
    manager.connections = connections
    return manager


@pytest.fixture
def scripted_decisions():
    def _make(*answers, confirm_answer=True):
        return ScriptedDecisionProvider(*answers, confirm_answer=confirm_answer)

    return _make


@pytest.fixture
def make_transport(device_state):
    return lambda: FakeTransport(device_state)
