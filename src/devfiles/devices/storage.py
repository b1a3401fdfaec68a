# devfiles/devices/storage.py

import json
import os
import threading
from pathlib import Path
from typing import List, Optional

from ..utils.exceptions import StorageCorruptedError, StorageError, StorageReadError
from ..utils.logger import get_logger
from ..utils.platform import ensure_directory_exists
from ..utils.translation_utils import _
from .models import Device


class DeviceStorageManager:
    """Loads and saves the device registry (``devices.json``).

    The file holds either a bare list of device objects (novacom layout) or
    ``{"devices": [...]}``.
    """

    def __init__(self, devices_file: Path):
        self.logger = get_logger("devfiles.devices.storage")
        self._file_lock = threading.RLock()
        self.devices_file = Path(devices_file)

    def load_devices(self) -> List[Device]:
        with self._file_lock:
            if not self.devices_file.exists():
                self.logger.info("Devices file does not exist, returning empty registry")
                return []
            if self.devices_file.stat().st_size == 0:
                return []

            try:
                with open(self.devices_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                self.logger.error(f"JSON parsing failed: {e}")
                raise StorageCorruptedError(
                    str(self.devices_file), _("Invalid JSON: {}").format(e)
                ) from e
            except (OSError, UnicodeDecodeError) as e:
                raise StorageReadError(str(self.devices_file), str(e)) from e

            if isinstance(data, dict):
                data = data.get("devices", [])
            if not isinstance(data, list):
                raise StorageCorruptedError(
                    str(self.devices_file), _("Device list is not an array")
                )

            devices = []
            for raw in data:
                if not isinstance(raw, dict):
                    self.logger.warning(f"Ignoring malformed device entry: {raw!r}")
                    continue
                device = Device.from_dict(raw)
                if device.validate():
                    devices.append(device)
            self.logger.debug(f"Loaded {len(devices)} devices from {self.devices_file}")
            return devices

    def save_devices(self, devices: List[Device]) -> None:
        with self._file_lock:
            ensure_directory_exists(self.devices_file.parent)
            temp_file = self.devices_file.with_suffix(".tmp")
            try:
                with open(temp_file, "w", encoding="utf-8") as f:
                    json.dump([d.to_dict() for d in devices], f, indent=2)
                # Registry may hold passwords
                os.chmod(temp_file, 0o600)
                os.replace(temp_file, self.devices_file)
            except OSError as e:
                raise StorageError(
                    _("Failed to write device registry '{}': {}").format(self.devices_file, e)
                ) from e

    def find(self, name: str) -> Optional[Device]:
        for device in self.load_devices():
            if device.name == name:
                return device
        return None
