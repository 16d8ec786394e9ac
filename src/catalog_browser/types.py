"""Domain data types shared across the catalog browser core."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Self, cast

from .exceptions import ErrorKind


@dataclass(frozen=True)
class CatalogItemRef:
    """Lightweight pointer to a catalog item (name plus detail locator)."""

    name: str
    locator: str

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name, "url": self.locator}


@dataclass(frozen=True)
class StatEntry:
    """One labelled value of an item's stat block."""

    label: str
    value: int


@dataclass(frozen=True)
class CatalogItemDetail:
    """Normalised item record; identity is `id`, not `name`."""

    id: int
    name: str
    category_tags: tuple[str, ...] = ()
    image_ref: str | None = None
    mass: float = 0
    size: float = 0
    stat_block: tuple[StatEntry, ...] = ()
    traits: tuple[str, ...] = ()

    def to_payload(self) -> dict[str, object]:
        """Return the JSON-safe payload stored in the cache."""
        return {
            "id": self.id,
            "name": self.name,
            "category_tags": list(self.category_tags),
            "image_ref": self.image_ref,
            "mass": self.mass,
            "size": self.size,
            "stat_block": [{"label": s.label, "value": s.value} for s in self.stat_block],
            "traits": list(self.traits),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> Self:
        """Rebuild a detail from a payload produced by `to_payload`."""
        stats = cast(list[dict[str, object]], payload.get("stat_block") or [])
        tags = cast(list[object], payload.get("category_tags") or [])
        traits = cast(list[object], payload.get("traits") or [])
        image_ref = payload.get("image_ref")
        return cls(
            id=int(cast(int, payload["id"])),
            name=str(payload["name"]),
            category_tags=tuple(str(t) for t in tags),
            image_ref=str(image_ref) if image_ref else None,
            mass=float(cast(float, payload.get("mass") or 0)),
            size=float(cast(float, payload.get("size") or 0)),
            stat_block=tuple(
                StatEntry(label=str(s["label"]), value=int(cast(int, s["value"]))) for s in stats
            ),
            traits=tuple(str(t) for t in traits),
        )


class ListMode(StrEnum):
    """Coordinator modes."""

    BROWSE = "browse"
    SEARCH = "search"
    CATEGORY_FILTER = "category"


@dataclass
class PageCursor:
    """Browse-mode pagination position."""

    offset: int = 0
    batch_size: int = 20

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError("offset must be >= 0")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")

    def advance(self) -> None:
        self.offset += self.batch_size


def _no_items() -> tuple[CatalogItemDetail, ...]:
    return ()


@dataclass(frozen=True)
class CoordinatorSnapshot:
    """Read-only view of coordinator state handed to the UI."""

    items: tuple[CatalogItemDetail, ...] = field(default_factory=_no_items)
    mode: ListMode = ListMode.BROWSE
    query: str | None = None
    active_category: str | None = None
    offset: int = 0
    queue_length: int = 0
    is_loading: bool = False
    is_offline: bool = False
    error: ErrorKind | None = None
    exhausted: bool = False
