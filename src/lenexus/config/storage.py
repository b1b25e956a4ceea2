"""Locations of the catalog database and the HTTP cache.

``LENEXUS_DATA_DIR`` moves every local file; ``DATABASE_URI`` points the catalog
at another database while the HTTP cache stays in the data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

DATA_DIR_ENV: Final[str] = "LENEXUS_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
CATALOG_FILENAME: Final[str] = "lenexus.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


def platform_data_dir() -> Path:
    """Per-user data directory: ``%LOCALAPPDATA%`` on Windows, XDG elsewhere."""

    if os.name == "nt":
        root = optional_env_var("LOCALAPPDATA") or Path.home() / "AppData" / "Local"
    else:
        root = optional_env_var("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return Path(root) / "lenexus"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    catalog_uri: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "data_dir", Path(self.data_dir).expanduser().resolve())

    @classmethod
    def from_env(cls) -> StorageConfig:
        data_dir = optional_env_var(DATA_DIR_ENV)
        return cls(
            data_dir=Path(data_dir) if data_dir else platform_data_dir(),
            catalog_uri=optional_env_var(DATABASE_URI_ENV),
        )

    def data_file(self, filename: str) -> Path:
        """Path of ``filename`` inside the data directory, created on demand."""

        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir / filename

    def http_cache_path(self) -> Path:
        return self.data_file(HTTP_CACHE_FILENAME)

    def database_uri(self) -> str:
        if self.catalog_uri is not None:
            return self.catalog_uri
        return f"sqlite+pysqlite:///{self.data_file(CATALOG_FILENAME)}"


def get_storage_config() -> StorageConfig:
    return StorageConfig.from_env()
