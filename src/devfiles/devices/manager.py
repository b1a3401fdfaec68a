# devfiles/devices/manager.py

from typing import Any, Callable, Dict, List, Optional

from ..filemanager.session import FileSession
from ..filemanager.transport import TransportSession
from ..settings.config import DefaultSettings
from ..utils.exceptions import DeviceUnavailableError, StorageError
from ..utils.logger import get_logger
from ..utils.translation_utils import _
from .models import Device
from .storage import DeviceStorageManager

Connector = Callable[[Device, Optional[float]], Any]


def connect_device(device: Device, timeout: Optional[float] = None) -> TransportSession:
    key_path = device.key_path
    return TransportSession.connect(
        host=device.host,
        port=device.port,
        username=device.username,
        password=device.password,
        key_filename=str(key_path) if key_path else None,
        passphrase=device.passphrase,
        timeout=timeout,
        label=device.name,
    )


class DeviceManager:
    """Session factory: every call hands out a new, caller-owned FileSession.

    There is no notion of a "currently selected" device here; callers pass
    the device name explicitly.
    """

    def __init__(
        self,
        storage: DeviceStorageManager,
        settings: Optional[Dict[str, Any]] = None,
        connector: Connector = connect_device,
    ):
        self.logger = get_logger("devfiles.devices.manager")
        self.storage = storage
        self.settings = settings or DefaultSettings.get_defaults()
        self.connector = connector

    def list_devices(self) -> List[Device]:
        return self.storage.load_devices()

    def get_device(self, device_name: str) -> Device:
        try:
            device = self.storage.find(device_name)
        except StorageError as e:
            raise DeviceUnavailableError(device_name, e.user_message) from e
        if device is None:
            raise DeviceUnavailableError(device_name, _("No such device configured"))
        return device

    def default_device(self) -> Optional[Device]:
        devices = self.list_devices()
        for device in devices:
            if device.default:
                return device
        return devices[0] if len(devices) == 1 else None

    def open_session(self, device_name: str) -> FileSession:
        device = self.get_device(device_name)
        self.logger.debug(f"Opening file session to {device.name} ({device.host}:{device.port})")
        transport = self.connector(device, self.settings.get("connect_timeout"))
        return FileSession(device.name, transport)

    def session_opener(self, device_name: str) -> Callable[[], FileSession]:
        """A zero-argument factory bound to ``device_name``."""
        return lambda: self.open_session(device_name)
