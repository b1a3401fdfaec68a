# devfiles/devices/models.py

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..utils.logger import get_logger
from ..utils.platform import get_ssh_directory


@dataclass
class Device:
    """A device entry as stored in the device registry.

    The registry uses the novacom layout, so the private key is referenced as
    ``{"privateKey": {"openSsh": "<file in ~/.ssh>"}}``.
    """

    name: str
    host: str
    port: int = 22
    username: str = "root"
    private_key: Optional[str] = None
    passphrase: Optional[str] = None
    password: Optional[str] = None
    default: bool = False
    description: str = ""

    @property
    def key_path(self) -> Optional[Path]:
        if not self.private_key:
            return None
        key = Path(self.private_key).expanduser()
        if key.is_absolute():
            return key
        return get_ssh_directory() / key

    def get_validation_errors(self) -> List[str]:
        errors = []
        if not self.name or not self.name.strip():
            errors.append("Device name is required")
        if not self.host or not self.host.strip():
            errors.append("Host is required")
        if not isinstance(self.port, int) or isinstance(self.port, bool) or not 0 < self.port < 65536:
            errors.append(f"Invalid port: {self.port}")
        if not self.username:
            errors.append("Username is required")
        return errors

    def validate(self) -> bool:
        errors = self.get_validation_errors()
        if errors:
            get_logger("devfiles.devices.model").warning(
                f"Device validation failed for '{self.name}': {errors}"
            )
            return False
        return True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Device":
        private_key = data.get("privateKey")
        if isinstance(private_key, dict):
            private_key = private_key.get("openSsh")
        port = data.get("port", 22)
        try:
            port = int(port)
        except (TypeError, ValueError):
            pass
        return cls(
            name=str(data.get("name", "")),
            host=str(data.get("host", "")),
            port=port,
            username=str(data.get("username") or "root"),
            private_key=private_key or None,
            passphrase=data.get("passphrase") or None,
            password=data.get("password") or None,
            default=bool(data.get("default", False)),
            description=str(data.get("description", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "default": self.default,
        }
        if self.private_key:
            data["privateKey"] = {"openSsh": self.private_key}
        if self.passphrase:
            data["passphrase"] = self.passphrase
        if self.password:
            data["password"] = self.password
        if self.description:
            data["description"] = self.description
        return data
