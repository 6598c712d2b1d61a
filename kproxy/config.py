"""Server configuration and the filesystem locations derived from it."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443


@dataclass
class Config:
    bind: str = ""
    http_port: int = DEFAULT_HTTP_PORT
    https_port: int = DEFAULT_HTTPS_PORT
    metrics_port: int = 0
    http3_enabled: bool = False
    alternate_config_dir: str = ""

    def socket_path(self) -> str:
        return os.path.join(self._runtime_directory(), "kamal-proxy.sock")

    def state_path(self) -> str:
        return os.path.join(self._data_directory(), "kamal-proxy.state")

    def certificate_path(self) -> str:
        return os.path.join(self._data_directory(), "certs")

    def _runtime_directory(self) -> str:
        return os.environ.get("XDG_RUNTIME_DIR") or tempfile.gettempdir()

    def _data_directory(self) -> str:
        return self.alternate_config_dir or self._default_data_directory()

    @staticmethod
    def _default_data_directory() -> str:
        home = os.path.expanduser("~")
        if home == "~":
            home = tempfile.gettempdir()
        directory = os.path.join(home, ".config", "kamal-proxy")
        try:
            os.makedirs(directory, mode=0o700, exist_ok=True)
        except OSError:
            directory = tempfile.gettempdir()
        return directory