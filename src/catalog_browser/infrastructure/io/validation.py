"""Pydantic-based validation helpers for inbound API payloads.

Upstream responses are validated against permissive `TypedDict` input shapes
and then normalised into the domain types, keeping only the fields the data
model uses.
"""

from __future__ import annotations

from typing import TypedDict

from pydantic import TypeAdapter, ValidationError

from ...exceptions import InvalidPayloadError
from ...types import CatalogItemDetail, CatalogItemRef, StatEntry


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class NamedResourceInput(TypedDict, total=False):
    name: str
    url: str


class ResourceListInput(TypedDict, total=False):
    count: int | None
    results: list[NamedResourceInput]


class TypeSlotInput(TypedDict, total=False):
    slot: int | None
    type: NamedResourceInput


class StatInput(TypedDict, total=False):
    base_stat: int
    stat: NamedResourceInput


class AbilitySlotInput(TypedDict, total=False):
    ability: NamedResourceInput
    is_hidden: bool | None


class ArtworkInput(TypedDict, total=False):
    front_default: str | None


class SpritesInput(TypedDict, total=False):
    front_default: str | None
    other: dict[str, ArtworkInput | None] | None


class ItemDetailInput(TypedDict, total=False):
    id: int
    name: str
    types: list[TypeSlotInput]
    sprites: SpritesInput | None
    weight: float | None
    height: float | None
    stats: list[StatInput]
    abilities: list[AbilitySlotInput]


class CategoryMemberInput(TypedDict, total=False):
    pokemon: NamedResourceInput
    slot: int | None


class CategoryInput(TypedDict, total=False):
    name: str | None
    pokemon: list[CategoryMemberInput]


class VarietyInput(TypedDict, total=False):
    is_default: bool
    pokemon: NamedResourceInput


class SpeciesInput(TypedDict, total=False):
    id: int | None
    name: str | None
    varieties: list[VarietyInput]


def validate_as[SchemaT](schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        message = f"Invalid payload for {schema}."
        raise IncomingDataError(message) from exc


def _validate_response[SchemaT](schema: type[SchemaT], payload: object, url: str) -> SchemaT:
    try:
        return validate_as(schema, payload)
    except IncomingDataError as exc:
        raise InvalidPayloadError(url, str(exc)) from exc


def _to_ref(resource: NamedResourceInput) -> CatalogItemRef | None:
    name = resource.get("name", "").strip().lower()
    if not name:
        return None
    return CatalogItemRef(name=name, locator=resource.get("url", ""))


def _to_refs(resources: list[NamedResourceInput]) -> list[CatalogItemRef]:
    refs: list[CatalogItemRef] = []
    for resource in resources:
        ref = _to_ref(resource)
        if ref is not None:
            refs.append(ref)
    return refs


def parse_ref_list(payload: object, *, url: str) -> list[CatalogItemRef]:
    """Parse a paginated list response (`{"results": [...]}`) into refs."""
    data = _validate_response(ResourceListInput, payload, url)
    return _to_refs(data.get("results", []))


def parse_category_refs(payload: object, *, url: str) -> list[CatalogItemRef]:
    """Flatten a category response (`{"pokemon": [{"pokemon": {...}}]}`) into refs."""
    data = _validate_response(CategoryInput, payload, url)
    members = data.get("pokemon", [])
    return _to_refs([m["pokemon"] for m in members if "pokemon" in m])


def parse_variant_refs(payload: object, *, url: str) -> list[CatalogItemRef]:
    """Parse a species response into variant refs, default form first."""
    data = _validate_response(SpeciesInput, payload, url)
    varieties = [v for v in data.get("varieties", []) if "pokemon" in v]
    ordered = sorted(varieties, key=lambda v: not v.get("is_default", False))
    return _to_refs([v["pokemon"] for v in ordered])


def _image_ref(sprites: SpritesInput | None) -> str | None:
    if not sprites:
        return None
    other = sprites.get("other") or {}
    artwork = other.get("official-artwork") or {}
    return artwork.get("front_default") or sprites.get("front_default") or None


def parse_item_detail(payload: object, *, url: str) -> CatalogItemDetail:
    """Normalise an item detail response to the fields of `CatalogItemDetail`."""
    data = _validate_response(ItemDetailInput, payload, url)
    if "id" not in data or "name" not in data:
        raise InvalidPayloadError(url, "detail is missing id or name")

    slots = sorted(data.get("types", []), key=lambda t: t.get("slot") or 0)
    return CatalogItemDetail(
        id=data["id"],
        name=data["name"].strip().lower(),
        category_tags=tuple(t["type"]["name"] for t in slots if "name" in t.get("type", {})),
        image_ref=_image_ref(data.get("sprites")),
        mass=float(data.get("weight") or 0),
        size=float(data.get("height") or 0),
        stat_block=tuple(
            StatEntry(label=s["stat"]["name"], value=s["base_stat"])
            for s in data.get("stats", [])
            if "base_stat" in s and "name" in s.get("stat", {})
        ),
        traits=tuple(
            a["ability"]["name"]
            for a in data.get("abilities", [])
            if "name" in a.get("ability", {})
        ),
    )
