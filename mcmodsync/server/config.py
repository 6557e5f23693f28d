import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mcmodsync.shared.utils.log import parse_log_level

DEFAULT_CONFIG = {
    "mods_folder": "mods",
    "delete_file": "delete.json",
    "host": "0.0.0.0",
    "port": 25555,
    "list_endpoint": "/list",
    "download_endpoint": "/download",
    "log_level": "info"
}


class ServerConfig:
    """Server settings: defaults, optionally overlaid by a JSON file and then by overrides"""

    def __init__(self, config_path: Optional[Union[str, Path]] = None, **overrides):
        self.config_path = Path(config_path) if config_path else None
        self.config = DEFAULT_CONFIG.copy()

        if self.config_path is not None and self.config_path.exists():
            try:
                data = json.loads(self.config_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise ValueError(f"invalid server config {self.config_path}: {e}") from e
            if not isinstance(data, dict):
                raise ValueError(f"server config {self.config_path} must be a JSON object")
            self._merge(data)

        self._merge(overrides)
        self.validate()

    def _merge(self, values: Dict[str, Any]):
        for key, value in values.items():
            if key not in DEFAULT_CONFIG:
                raise ValueError(f"unknown server setting: {key}")
            if value is not None:
                self.config[key] = value

    def validate(self):
        """Check value ranges and endpoint shapes"""
        port = self.config["port"]
        if not isinstance(port, int) or not (1 <= port <= 65535):
            raise ValueError(f"port must be in range 1-65535, got {port!r}")
        for key in ("list_endpoint", "download_endpoint"):
            if not str(self.config[key]).startswith("/"):
                raise ValueError(f"{key} must start with '/': {self.config[key]!r}")
        if self.config["list_endpoint"] == self.config["download_endpoint"]:
            raise ValueError("list_endpoint and download_endpoint must differ")
        parse_log_level(self.config["log_level"])

    def save(self, path: Optional[Union[str, Path]] = None):
        """Write the settings to a JSON file"""
        target = Path(path) if path else self.config_path
        if target is None:
            raise ValueError("no config path to save to")
        target.write_text(
            json.dumps(self.config, indent=4, ensure_ascii=False),
            encoding="utf-8"
        )

    @property
    def mods_folder(self) -> Path:
        return Path(self.config["mods_folder"])

    @property
    def delete_file(self) -> Path:
        return Path(self.config["delete_file"])

    @property
    def host(self) -> str:
        return self.config["host"]

    @property
    def port(self) -> int:
        return self.config["port"]

    @property
    def list_endpoint(self) -> str:
        return self.config["list_endpoint"]

    @property
    def download_endpoint(self) -> str:
        return self.config["download_endpoint"]

    @property
    def log_level(self) -> str:
        return self.config["log_level"]
