from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# --- Package paths (bundled data file and front-end assets) ---
PACKAGE_ROOT = Path(__file__).resolve().parent
DATA_FILE_DEFAULT = PACKAGE_ROOT / "data" / "books.json"
CLIENT_DIR_DEFAULT = PACKAGE_ROOT / "client"

DEFAULT_PORT = 3000


def _env_port() -> int:
    # PORT is set by most hosts; NODE_PORT kept for older deployments
    for name in ("PORT", "NODE_PORT"):
        value = os.getenv(name)
        if value:
            return int(value)
    return DEFAULT_PORT


@dataclass
class Settings:
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    data_file: Path = DATA_FILE_DEFAULT
    client_dir: Path = CLIENT_DIR_DEFAULT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "127.0.0.1"),
            port=_env_port(),
            data_file=Path(os.getenv("BOOKS_FILE", str(DATA_FILE_DEFAULT))),
            client_dir=Path(os.getenv("CLIENT_DIR", str(CLIENT_DIR_DEFAULT))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
