"""Cache fakes for tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import override

from catalog_browser.protocols import CacheStore


def _empty_store() -> dict[str, object]:
    return {}


@dataclass
class InMemoryCache(CacheStore):
    """In-memory cache for testing; entries never expire."""

    _store: dict[str, object] = field(default_factory=_empty_store)

    @override
    async def get(self, key: str, ignore_expiry: bool = False) -> object | None:
        return self._store.get(key)

    @override
    async def set(self, key: str, value: object) -> None:
        self._store[key] = value

    @override
    async def clear(self) -> None:
        self._store.clear()

    def has(self, key: str) -> bool:
        return key in self._store
