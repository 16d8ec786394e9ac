"""Expiring cache implementation for infrastructure.

Usage example:
    from pathlib import Path

    from catalog_browser.infrastructure.cache import ExpiringCache
    from catalog_browser.infrastructure.connectivity import ConnectivityMonitor
    from catalog_browser.infrastructure.storage import DiskStorage

    cache = ExpiringCache(
        storage=DiskStorage(Path("data/cache")),
        connectivity=ConnectivityMonitor(),
        ttl_seconds=30 * 60,
    )
    await cache.set("key", {"value": 1})
    cached = await cache.get("key")
"""

from __future__ import annotations

import asyncio
import json
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypedDict, override

from pydantic import TypeAdapter, ValidationError

from ..exceptions import StorageFullError
from ..observability import get_logger
from ..protocols import CacheStore, ConnectivityOracle, KeyValueStorage

logger = get_logger("catalog_browser.infrastructure.cache")


class CacheEnvelope(TypedDict):
    """Persisted shape of one cache entry."""

    value: object
    timestamp: int


_ENVELOPE_ADAPTER = TypeAdapter(CacheEnvelope)


def _empty_memory() -> OrderedDict[str, CacheEnvelope]:
    return OrderedDict()


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ExpiringCache(CacheStore):
    """Cache with a TTL, an offline override and quota recovery.

    The persisted storage is the source of truth. The in-memory layer is a
    read-through accelerator: it only holds entries the storage accepted and
    is cleared whenever the storage namespace is cleared. It keeps at most
    `memory_max_entries` entries, evicting the least recently used.
    """

    storage: KeyValueStorage
    connectivity: ConnectivityOracle
    ttl_seconds: float = 30 * 60
    use_memory_layer: bool = True
    memory_max_entries: int = 256
    clock_ms: Callable[[], int] = _epoch_ms
    _memory: OrderedDict[str, CacheEnvelope] = field(default_factory=_empty_memory, init=False)

    @override
    async def get(self, key: str, ignore_expiry: bool = False) -> object | None:
        envelope = self._memory.get(key) if self.use_memory_layer else None
        if envelope is None:
            envelope = await self._read(key)
            if envelope is None:
                return None
        self._remember(key, envelope)

        # Stale data beats no data when offline
        if ignore_expiry or self.connectivity.is_offline():
            return envelope["value"]

        age_ms = self.clock_ms() - envelope["timestamp"]
        if age_ms > self.ttl_seconds * 1000:
            return None
        return envelope["value"]

    @override
    async def set(self, key: str, value: object) -> None:
        envelope: CacheEnvelope = {"value": value, "timestamp": self.clock_ms()}
        try:
            raw = json.dumps(envelope, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.warning("Not caching %s: value is not JSON serialisable (%s)", key, exc)
            return

        try:
            await asyncio.to_thread(self.storage.set_item, key, raw)
        except StorageFullError:
            logger.warning("Cache storage full while writing %s; clearing namespace", key)
            if not await self._clear_quietly():
                return
            try:
                await asyncio.to_thread(self.storage.set_item, key, raw)
            except (StorageFullError, OSError) as exc:
                logger.warning("Dropping cache write for %s after clearing: %s", key, exc)
                return
        except OSError as exc:
            logger.warning("Dropping cache write for %s: %s", key, exc)
            return

        self._remember(key, envelope)

    @override
    async def clear(self) -> None:
        self._memory.clear()
        await asyncio.to_thread(self.storage.clear)

    def _remember(self, key: str, envelope: CacheEnvelope) -> None:
        if not self.use_memory_layer or self.memory_max_entries < 1:
            return
        self._memory[key] = envelope
        self._memory.move_to_end(key)
        while len(self._memory) > self.memory_max_entries:
            self._memory.popitem(last=False)

    async def _clear_quietly(self) -> bool:
        self._memory.clear()
        try:
            await asyncio.to_thread(self.storage.clear)
        except OSError as exc:
            logger.warning("Could not clear cache storage: %s", exc)
            return False
        return True

    async def _read(self, key: str) -> CacheEnvelope | None:
        try:
            raw = await asyncio.to_thread(self.storage.get_item, key)
        except OSError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return _ENVELOPE_ADAPTER.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding corrupt cache entry for %s", key)
            try:
                await asyncio.to_thread(self.storage.remove_item, key)
            except OSError as exc:
                logger.warning("Could not remove corrupt cache entry %s: %s", key, exc)
            return None
