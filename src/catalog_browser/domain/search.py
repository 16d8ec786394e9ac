"""Client-side name matching against the full name index."""

from __future__ import annotations

from collections.abc import Iterable

from ..types import CatalogItemDetail, CatalogItemRef


def find_exact(index: Iterable[CatalogItemRef], name: str) -> CatalogItemRef | None:
    """Return the ref whose canonical name equals `name`, if any."""
    for ref in index:
        if ref.name == name:
            return ref
    return None


def match_names(index: Iterable[CatalogItemRef], term: str) -> list[CatalogItemRef]:
    """Return every ref whose name contains `term`, in index order."""
    if not term:
        return []
    return [ref for ref in index if term in ref.name]


def suggest_names(index: Iterable[CatalogItemRef], term: str, limit: int = 5) -> list[str]:
    """Return up to `limit` names containing `term`.

    Names starting with the term come first; index order is kept otherwise.
    """
    if not term or limit <= 0:
        return []
    matches = match_names(index, term)
    ranked = sorted(matches, key=lambda ref: not ref.name.startswith(term))
    return [ref.name for ref in ranked[:limit]]


def unique_by_id(
    existing_ids: set[int],
    details: Iterable[CatalogItemDetail],
) -> list[CatalogItemDetail]:
    """Return details whose id is not yet seen, updating `existing_ids` in place.

    Names may alias to the same id, so identity is the numeric id.
    """
    fresh: list[CatalogItemDetail] = []
    for detail in details:
        if detail.id in existing_ids:
            continue
        existing_ids.add(detail.id)
        fresh.append(detail)
    return fresh
