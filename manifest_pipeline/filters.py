from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from manifest_pipeline.classification import as_int, display_name, probe
from manifest_pipeline.definitions import CLASS_TYPES, ITEM_TYPES, TIER_TYPES

Item = Mapping[str, Any]


def is_active_item(item: Item) -> bool:
    return (
        not item.get("redacted")
        and not item.get("blacklisted")
        and display_name(item).strip() != ""
    )


def is_weapon(item: Item) -> bool:
    return as_int(item.get("itemType")) == ITEM_TYPES["WEAPON"]


def is_armor(item: Item) -> bool:
    return as_int(item.get("itemType")) == ITEM_TYPES["ARMOR"]


def is_subclass(item: Item) -> bool:
    return as_int(item.get("itemType")) == ITEM_TYPES["SUBCLASS"]


def is_exotic(item: Item) -> bool:
    return as_int(probe(item, "inventory.tierType")) == TIER_TYPES["EXOTIC"]


def is_legendary(item: Item) -> bool:
    return as_int(probe(item, "inventory.tierType")) == TIER_TYPES["LEGENDARY"]


def filter_armor_by_slot(items: Iterable[Item], slot_hash: int) -> List[Item]:
    return [
        item
        for item in items
        if is_armor(item) and is_active_item(item) and probe(item, "inventory.bucketTypeHash") == slot_hash
    ]


def filter_weapons_by_slot(items: Iterable[Item], slot_hash: int) -> List[Item]:
    return [
        item
        for item in items
        if is_weapon(item) and is_active_item(item) and probe(item, "inventory.bucketTypeHash") == slot_hash
    ]


def filter_by_class(items: Iterable[Item], class_type: int) -> List[Item]:
    # Items usable by every class match any class filter.
    return [item for item in items if item.get("classType") in (class_type, CLASS_TYPES["ALL"])]


def filter_by_tier(items: Iterable[Item], tier_type: int) -> List[Item]:
    return [item for item in items if probe(item, "inventory.tierType") == tier_type]


def search_items(items: Iterable[Item], term: str) -> List[Item]:
    term = term.lower()
    matches = []
    for item in items:
        haystacks = (
            display_name(item),
            probe(item, "displayProperties.description", ""),
            item.get("itemTypeDisplayName") or "",
        )
        if any(isinstance(text, str) and term in text.lower() for text in haystacks):
            matches.append(item)
    return matches


def group_items_by(items: Iterable[Item], field: str) -> Dict[Any, List[Item]]:
    groups: Dict[Any, List[Item]] = {}
    for item in items:
        groups.setdefault(probe(item, field), []).append(item)
    return groups


def unique_values(items: Iterable[Item], field: str) -> List[Any]:
    values = {probe(item, field) for item in items}
    values.discard(None)
    return sorted(values, key=lambda v: (str(type(v)), v))
