"""Persisted favourites list, keyed by item id."""

from __future__ import annotations

import json

from ..observability import get_logger
from ..protocols import KeyValueStorage
from ..types import CatalogItemDetail

logger = get_logger("catalog_browser.domain.favorites")

FAVORITES_KEY = "favorites"


class FavoritesStore:
    """Ordered favourites, saved as a single JSON document after each change."""

    def __init__(self, storage: KeyValueStorage, key: str = FAVORITES_KEY) -> None:
        self._storage = storage
        self._key = key
        self._items: list[CatalogItemDetail] = self._load()

    @property
    def items(self) -> tuple[CatalogItemDetail, ...]:
        return tuple(self._items)

    def is_favorite(self, item_id: int) -> bool:
        return any(item.id == item_id for item in self._items)

    def toggle(self, detail: CatalogItemDetail) -> bool:
        """Add or remove `detail`; returns True if it is now a favourite.

        The in-memory list only changes once the document is saved.

        Raises:
            StorageFullError: If the storage has no room for the document.
            OSError: If the storage cannot be written.
        """
        remaining = [item for item in self._items if item.id != detail.id]
        added = len(remaining) == len(self._items)
        updated = [*remaining, detail] if added else remaining
        self._save(updated)
        self._items = updated
        return added

    def clear(self) -> None:
        self._storage.remove_item(self._key)
        self._items = []

    def _load(self) -> list[CatalogItemDetail]:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return []
        try:
            payload = json.loads(raw)
            return [CatalogItemDetail.from_payload(entry) for entry in payload]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable favourites document: %s", exc)
            return []

    def _save(self, items: list[CatalogItemDetail]) -> None:
        document = json.dumps([item.to_payload() for item in items], ensure_ascii=False)
        self._storage.set_item(self._key, document)
