# devfiles/devices/__init__.py
"""Device registry and session factory."""

from .manager import DeviceManager
from .models import Device
from .storage import DeviceStorageManager

__all__ = ["Device", "DeviceManager", "DeviceStorageManager"]
