"""Connectivity oracle implementations.

Usage example:
    from catalog_browser.infrastructure.connectivity import ConnectivityMonitor

    monitor = ConnectivityMonitor()
    unsubscribe = monitor.subscribe(lambda offline: print("offline" if offline else "online"))
    monitor.set_offline(True)
"""

from __future__ import annotations

import asyncio
import socket
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import override

from ..observability import get_logger
from ..protocols import ConnectivityOracle, ObservableConnectivity

logger = get_logger("catalog_browser.infrastructure.connectivity")

Listener = Callable[[bool], None]


def _no_listeners() -> list[Listener]:
    return []


@dataclass
class ConnectivityMonitor(ObservableConnectivity):
    """Push-driven connectivity state, updated by the host platform."""

    offline: bool = False
    _listeners: list[Listener] = field(default_factory=_no_listeners, init=False)

    @override
    def is_offline(self) -> bool:
        return self.offline

    @override
    async def refresh(self) -> None:
        """Push-driven state is always current."""

    def set_offline(self, offline: bool) -> None:
        """Record a platform notification; listeners fire only on change."""
        if offline == self.offline:
            return
        self.offline = offline
        logger.info("Connectivity changed: %s", "offline" if offline else "online")
        for listener in list(self._listeners):
            listener(offline)

    @override
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


@dataclass
class ProbeConnectivity(ConnectivityOracle):
    """Polls reachability with a TCP connect, caching the answer briefly.

    `is_offline` only reads the cached answer. `refresh` re-probes in a worker
    thread once the answer is older than `staleness_seconds`, so a query made
    right after a refresh is at most that old.
    """

    host: str = "pokeapi.co"
    port: int = 443
    probe_timeout_seconds: float = 1.5
    staleness_seconds: float = 5.0
    clock: Callable[[], float] = time.monotonic
    _checked_at: float | None = field(default=None, init=False)
    _offline: bool = field(default=False, init=False)
    _refresh_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @override
    def is_offline(self) -> bool:
        return self._offline

    @override
    async def refresh(self) -> None:
        # Concurrent callers share one connection attempt
        async with self._refresh_lock:
            if not self._is_stale():
                return
            reachable = await asyncio.to_thread(self._probe)
            self._offline = not reachable
            self._checked_at = self.clock()

    def invalidate(self) -> None:
        """Force the next refresh to probe again."""
        self._checked_at = None

    def _is_stale(self) -> bool:
        if self._checked_at is None:
            return True
        return self.clock() - self._checked_at >= self.staleness_seconds

    def _probe(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), self.probe_timeout_seconds):
                return True
        except OSError as exc:
            logger.debug("Connectivity probe to %s:%s failed: %s", self.host, self.port, exc)
            return False
