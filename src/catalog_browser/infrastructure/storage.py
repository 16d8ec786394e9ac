"""Persisted key/value storage for infrastructure.

Usage example:
    from pathlib import Path

    from catalog_browser.infrastructure.storage import DiskStorage

    storage = DiskStorage(Path("data/cache"), namespace="catalog_v1_")
    storage.set_item("https://pokeapi.co/api/v2/pokemon/25", '{"value": 1}')
"""

from __future__ import annotations

import errno
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import override

from ..exceptions import StorageFullError
from ..protocols import KeyValueStorage

_CAPACITY_ERRNOS = {errno.ENOSPC, errno.EDQUOT}


@dataclass
class DiskStorage(KeyValueStorage):
    """File-based storage, one JSON file per key, scoped to a namespace prefix."""

    root_dir: Path
    namespace: str = "catalog_v1_"
    max_bytes: int | None = None

    def __post_init__(self) -> None:
        self.root_dir = Path(self.root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        h = hashlib.sha256(f"{self.namespace}{key}".encode()).hexdigest()
        return self.root_dir / f"{self.namespace}{h}.json"

    def _namespace_files(self) -> list[Path]:
        return sorted(self.root_dir.glob(f"{self.namespace}*.json"))

    def used_bytes(self) -> int:
        return sum(p.stat().st_size for p in self._namespace_files())

    @override
    def get_item(self, key: str) -> str | None:
        p = self._path(key)
        if p.exists():
            return p.read_text(encoding="utf-8")
        return None

    @override
    def set_item(self, key: str, value: str) -> None:
        p = self._path(key)
        encoded = value.encode("utf-8")
        if self.max_bytes is not None:
            existing = p.stat().st_size if p.exists() else 0
            if self.used_bytes() - existing + len(encoded) > self.max_bytes:
                raise StorageFullError(key, f"quota of {self.max_bytes} bytes exceeded")
        try:
            p.write_bytes(encoded)
        except OSError as exc:
            if exc.errno in _CAPACITY_ERRNOS:
                raise StorageFullError(key, exc.strerror or "disk full") from exc
            raise

    @override
    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    @override
    def clear(self) -> None:
        for p in self._namespace_files():
            p.unlink(missing_ok=True)
