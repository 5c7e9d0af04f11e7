"""Local key/value stores for cached credentials."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union


class CredentialStore(ABC):
    """Persistent string store; callers treat every operation as best-effort."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value for ``key``, if any."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""


class InMemoryCredentialStore(CredentialStore):
    def __init__(self) -> None:
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class FileCredentialStore(CredentialStore):
    """One file per key under ``directory``."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_name = key.replace("/", "_").replace(os.sep, "_")
        return self.directory / f"{safe_name}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)
