import errno
import socket
import stat
from types import SimpleNamespace
from unittest.mock import MagicMock

import paramiko
import pytest

from devfiles.filemanager import transport as transport_module
from devfiles.filemanager.transport import TransportSession, classify_error
from devfiles.utils.exceptions import (
    DeviceUnavailableError,
    QuotaError,
    RemoteFileError,
    RemoteNotFoundError,
    RemotePermissionError,
    TransferError,
    TransportConnectionError,
)


@pytest.fixture
def sftp():
    return MagicMock()


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def session(client, sftp):
    return TransportSession(client, sftp, label="tv")


class TestClassifyError:
    def test_ssh_failure_is_connection_error(self):
        err = classify_error(paramiko.SSHException("Server connection dropped"), "/a", "list")
        assert type(err) is TransportConnectionError

    def test_socket_timeout_is_connection_error(self):
        assert isinstance(classify_error(socket.timeout("timed out"), "/a", "list"), TransportConnectionError)

    def test_missing_file_is_not_found(self):
        err = classify_error(IOError(errno.ENOENT, "No such file"), "/a", "stat")
        assert type(err) is RemoteNotFoundError
        assert err.user_message == "No such file"

    def test_denied_access_is_permission_error(self):
        err = classify_error(PermissionError(errno.EACCES, "Permission denied"), "/a", "delete")
        assert type(err) is RemotePermissionError

    def test_disk_full_is_quota_error(self):
        err = classify_error(IOError(errno.ENOSPC, "No space left on device"), "/a", "upload")
        assert type(err) is QuotaError

    def test_quota_text_without_errno_is_quota_error(self):
        assert type(classify_error(IOError("Disk quota exceeded"), "/a", "upload")) is QuotaError

    def test_no_space_outside_upload_is_not_quota(self):
        err = classify_error(IOError(errno.ENOSPC, "No space left on device"), "/a", "download")
        assert type(err) is TransferError

    def test_unknown_streaming_failure_is_transfer_error(self):
        assert type(classify_error(IOError("Failure"), "/a", "download")) is TransferError

    def test_unknown_failure_elsewhere_is_generic(self):
        assert type(classify_error(IOError("Failure"), "/a", "list")) is RemoteFileError

    def test_already_classified_error_passes_through(self):
        original = RemoteNotFoundError("/a", "gone")
        assert classify_error(original, "/b", "list") is original


class TestListAndStat:
    def test_list_directory_pairs_names_with_attributes(self, session, sftp):
        attr = SimpleNamespace(filename="z.txt", st_size=1, st_mtime=0, st_mode=stat.S_IFREG)
        sftp.listdir_attr.return_value = [attr]
        assert session.list_directory("/media") == [("z.txt", attr)]
        sftp.listdir_attr.assert_called_once_with("/media")

    def test_list_failure_is_classified(self, session, sftp):
        sftp.listdir_attr.side_effect = IOError(errno.ENOENT, "No such file")
        with pytest.raises(RemoteNotFoundError):
            session.list_directory("/nope")


class TestDownloadUpload:
    def test_download_streams_into_local_file(self, session, sftp, tmp_path):
        sftp.getfo.side_effect = lambda remote, handle: handle.write(b"payload")
        target = tmp_path / "z.txt"
        session.download("/media/z.txt", target)
        assert target.read_bytes() == b"payload"

    def test_failed_download_discards_partial_file(self, session, sftp, tmp_path):
        def broken(remote, handle):
            handle.write(b"part")
            raise paramiko.SSHException("Server connection dropped")

        sftp.getfo.side_effect = broken
        target = tmp_path / "z.txt"
        with pytest.raises(TransportConnectionError):
            session.download("/media/z.txt", target)
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    def test_failed_download_keeps_existing_local_file(self, session, sftp, tmp_path):
        sftp.getfo.side_effect = IOError(errno.ENOENT, "No such file")
        target = tmp_path / "notes.txt"
        target.write_bytes(b"keep me")
        with pytest.raises(RemoteNotFoundError):
            session.download("/media/missing.txt", target)
        assert target.read_bytes() == b"keep me"
        assert list(tmp_path.iterdir()) == [target]

    def test_successful_download_replaces_existing_file(self, session, sftp, tmp_path):
        sftp.getfo.side_effect = lambda remote, handle: handle.write(b"new")
        target = tmp_path / "notes.txt"
        target.write_bytes(b"old contents")
        session.download("/media/notes.txt", target)
        assert target.read_bytes() == b"new"
        assert list(tmp_path.iterdir()) == [target]

    def test_local_disk_full_during_download_is_transfer_error(self, session, sftp, tmp_path):
        sftp.getfo.side_effect = OSError(errno.ENOSPC, "No space left on device")
        with pytest.raises(TransferError) as excinfo:
            session.download("/media/developer/big.bin", tmp_path / "big.bin")
        assert type(excinfo.value) is TransferError

    def test_unwritable_local_target_is_transfer_error(self, session, sftp, tmp_path):
        with pytest.raises(TransferError):
            session.download("/media/z.txt", tmp_path / "missing" / "z.txt")
        sftp.getfo.assert_not_called()

    def test_upload_streams_local_file(self, session, sftp, tmp_path):
        source = tmp_path / "app.ipk"
        source.write_bytes(b"ipk")
        session.upload(source, "/media/developer/app.ipk")
        handle, remote = sftp.putfo.call_args[0]
        assert remote == "/media/developer/app.ipk"

    def test_missing_local_source_is_transfer_error(self, session, tmp_path):
        with pytest.raises(TransferError):
            session.upload(tmp_path / "absent", "/media/absent")


class TestRemove:
    def test_removes_plain_file(self, session, sftp):
        sftp.lstat.return_value = SimpleNamespace(st_mode=stat.S_IFREG | 0o644)
        session.remove("/media/z.txt")
        sftp.remove.assert_called_once_with("/media/z.txt")
        sftp.rmdir.assert_not_called()

    def test_recursive_remove_empties_directory_first(self, session, sftp):
        modes = {"/d": stat.S_IFDIR | 0o755, "/d/a": stat.S_IFREG | 0o644}
        sftp.lstat.side_effect = lambda path: SimpleNamespace(st_mode=modes[path])
        sftp.listdir_attr.return_value = [
            SimpleNamespace(filename="."),
            SimpleNamespace(filename=".."),
            SimpleNamespace(filename="a"),
        ]
        session.remove("/d", recursive=True)
        sftp.remove.assert_called_once_with("/d/a")
        sftp.rmdir.assert_called_once_with("/d")

    def test_permission_denied_is_classified(self, session, sftp):
        sftp.lstat.return_value = SimpleNamespace(st_mode=stat.S_IFREG)
        sftp.remove.side_effect = IOError(errno.EACCES, "Permission denied")
        with pytest.raises(RemotePermissionError):
            session.remove("/etc/passwd")


class TestClose:
    def test_close_is_idempotent(self, session, client, sftp):
        session.close()
        session.close()
        sftp.close.assert_called_once()
        client.close.assert_called_once()
        assert session.closed

    def test_close_failure_is_not_raised(self, session, client, sftp):
        sftp.close.side_effect = EOFError()
        session.close()
        client.close.assert_called_once()

    def test_use_after_close_is_connection_error(self, session):
        session.close()
        with pytest.raises(TransportConnectionError):
            session.stat("/")


class TestConnect:
    def test_connection_failure_reports_device_unavailable(self, monkeypatch):
        fake_client = MagicMock()
        fake_client.connect.side_effect = socket.timeout("timed out")
        monkeypatch.setattr(transport_module.paramiko, "SSHClient", lambda: fake_client)
        with pytest.raises(DeviceUnavailableError) as excinfo:
            TransportSession.connect("10.0.0.5", 9922, "prisoner", timeout=1, label="tv")
        assert excinfo.value.device_name == "tv"
        fake_client.close.assert_called_once()

    def test_explicit_key_disables_agent_lookup(self, monkeypatch):
        fake_client = MagicMock()
        monkeypatch.setattr(transport_module.paramiko, "SSHClient", lambda: fake_client)
        session = TransportSession.connect("10.0.0.5", key_filename="/keys/tv", timeout=5)
        kwargs = fake_client.connect.call_args.kwargs
        assert kwargs["key_filename"] == "/keys/tv"
        assert kwargs["allow_agent"] is False
        assert kwargs["timeout"] == 5
        assert session.label == "10.0.0.5"
