"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces that the coordinator and the
data access layer depend on, so each layer can be tested in isolation with
in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .exceptions import RequestError
    from .infrastructure.cancellation import CancellationToken
    from .types import CatalogItemDetail, CatalogItemRef


@runtime_checkable
class ConnectivityOracle(Protocol):
    """Reports whether the device can currently reach the network."""

    def is_offline(self) -> bool:
        """Return True when the network is unavailable."""
        ...

    async def refresh(self) -> None:
        """Bring the answer of `is_offline` up to date without blocking the event loop."""
        ...


@runtime_checkable
class ObservableConnectivity(ConnectivityOracle, Protocol):
    """Connectivity oracle that pushes changes to listeners."""

    def subscribe(self, listener: Callable[[bool], None]) -> Callable[[], None]:
        """Register a listener called with the new offline state; returns an unsubscriber."""
        ...


@runtime_checkable
class HttpClient(Protocol):
    """Abstract HTTP client for making JSON API requests."""

    async def get_json(
        self,
        url: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> object:
        """Fetch and decode JSON from URL.

        Raises:
            RequestError: A classified request failure.
        """
        ...


@runtime_checkable
class KeyValueStorage(Protocol):
    """Persisted string storage with a private namespace."""

    def get_item(self, key: str) -> str | None:
        """Return the stored string, or None if absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Persist a string.

        Raises:
            StorageFullError: When capacity is exhausted.
        """
        ...

    def remove_item(self, key: str) -> None:
        """Remove a key if present."""
        ...

    def clear(self) -> None:
        """Remove every key in this storage's namespace."""
        ...


@runtime_checkable
class CacheStore(Protocol):
    """Key/value cache with time-based expiry."""

    async def get(self, key: str, ignore_expiry: bool = False) -> object | None:
        """Return the cached payload, or None when missing or expired."""
        ...

    async def set(self, key: str, value: object) -> None:
        """Store a payload; never raises."""
        ...

    async def clear(self) -> None:
        """Drop every cached entry."""
        ...


@runtime_checkable
class RetryPolicy(Protocol):
    """Abstract retry policy for transient failures."""

    max_attempts: int

    def compute_backoff(self, attempt: int) -> float:
        """Return the delay in seconds after the given failed attempt (1-based)."""
        ...

    def is_retryable(self, error: RequestError) -> bool:
        """Return True when another attempt may succeed."""
        ...


@runtime_checkable
class CatalogSource(Protocol):
    """Domain operations the list coordinator consumes."""

    async def get_page(
        self,
        batch_size: int,
        offset: int,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        """Return one page of refs."""
        ...

    async def get_detail(
        self,
        id_or_name: str | int,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> CatalogItemDetail:
        """Return the normalised detail for one item."""
        ...

    async def get_by_category(
        self,
        category: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        """Return every ref tagged with a category."""
        ...

    async def get_many_details(
        self,
        refs: list[CatalogItemRef],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemDetail]:
        """Return details for refs, omitting individual failures."""
        ...

    async def get_all_names(
        self,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        """Return the full name index."""
        ...

    async def get_variants(
        self,
        name: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        """Return variant refs of a base entry, default form first."""
        ...
