"""Kind and element inference for item definitions.

Item JSON comes from the provider's schema and may be missing any field, so
every probe here returns a default instead of raising. Classification runs a
priority-ordered rule table: structured-field rules first, then display-name
substring rules, first match wins in each group.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence

from manifest_pipeline.definitions import (
    ARMOR_SLOTS,
    COSMETIC_SLOTS,
    ITEM_TYPES,
    MOD_CATEGORY_HASH,
    WEAPON_SLOTS,
    class_type_name,
    damage_type_name,
    equipment_slot_name,
    item_type_name,
    tier_type_name,
)

UNKNOWN = "unknown"

FIELD = "field"
NAME = "name"


def probe(item: Mapping[str, Any], dotted: str, default: Any = None) -> Any:
    value: Any = item
    for key in dotted.split("."):
        if not isinstance(value, Mapping) or key not in value:
            return default
        value = value[key]
    return default if value is None else value


def as_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def category_hashes(item: Mapping[str, Any]) -> List[int]:
    raw = item.get("itemCategoryHashes") if isinstance(item, Mapping) else None
    if not isinstance(raw, list):
        return []
    return [h for h in (as_int(v) for v in raw) if h is not None]


def display_name(item: Mapping[str, Any]) -> str:
    name = probe(item, "displayProperties.name", "")
    return name if isinstance(name, str) else ""


@dataclass(frozen=True)
class ClassificationRule:
    label: str
    predicate: Callable[[Mapping[str, Any]], bool]
    source: str = FIELD


def _item_type_in(*codes: int) -> Callable[[Mapping[str, Any]], bool]:
    wanted = frozenset(codes)
    return lambda item: as_int(item.get("itemType")) in wanted


def _bucket_in(buckets: frozenset) -> Callable[[Mapping[str, Any]], bool]:
    return lambda item: as_int(probe(item, "inventory.bucketTypeHash")) in buckets


def _damage_in(*codes: int) -> Callable[[Mapping[str, Any]], bool]:
    wanted = frozenset(codes)
    return lambda item: as_int(item.get("defaultDamageType")) in wanted


def _name_contains(*needles: str) -> Callable[[Mapping[str, Any]], bool]:
    lowered = tuple(n.lower() for n in needles)
    return lambda item: any(n in display_name(item).lower() for n in lowered)


KIND_RULES: Sequence[ClassificationRule] = (
    ClassificationRule("mod", lambda item: MOD_CATEGORY_HASH in category_hashes(item)),
    ClassificationRule("subclass", _item_type_in(ITEM_TYPES["SUBCLASS"])),
    ClassificationRule("weapon", _item_type_in(ITEM_TYPES["WEAPON"])),
    ClassificationRule("armor", _item_type_in(ITEM_TYPES["ARMOR"], ITEM_TYPES["CLASS_ITEM"])),
    ClassificationRule("weapon", _bucket_in(WEAPON_SLOTS)),
    ClassificationRule("armor", _bucket_in(ARMOR_SLOTS)),
    ClassificationRule(
        "cosmetic",
        _item_type_in(
            ITEM_TYPES["EMBLEM"],
            ITEM_TYPES["GHOST"],
            ITEM_TYPES["VEHICLE"],
            ITEM_TYPES["SHIP"],
            ITEM_TYPES["FINISHER"],
        ),
    ),
    ClassificationRule("cosmetic", _bucket_in(COSMETIC_SLOTS)),
    ClassificationRule(
        "consumable",
        _item_type_in(
            ITEM_TYPES["CURRENCY"],
            ITEM_TYPES["CONSUMABLE"],
            ITEM_TYPES["EXCHANGE_MATERIAL"],
            ITEM_TYPES["MATERIAL"],
        ),
    ),
    ClassificationRule("collectible", lambda item: as_int(item.get("collectibleHash")) is not None),
    ClassificationRule("mod", _name_contains(" mod", "mod:"), source=NAME),
    ClassificationRule("subclass", _name_contains("subclass"), source=NAME),
    ClassificationRule(
        "weapon",
        _name_contains("rifle", "cannon", "shotgun", "sidearm", "launcher", "sword", "bow", "glaive", "smg"),
        source=NAME,
    ),
    ClassificationRule(
        "armor",
        _name_contains("helm", "mask", "gauntlets", "gloves", "grips", "plate", "vest", "robes", "greaves",
                       "boots", "strides", "cloak", "bond", "mark"),
        source=NAME,
    ),
    ClassificationRule(
        "cosmetic",
        _name_contains("shader", "emblem", "ornament", "sparrow", "ship", "shell", "finisher", "transmat"),
        source=NAME,
    ),
    ClassificationRule("consumable", _name_contains("consumable", "engram", "booster", "glimmer"), source=NAME),
)

ELEMENT_RULES: Sequence[ClassificationRule] = (
    ClassificationRule("prismatic", _damage_in(8)),
    ClassificationRule("darkness", _damage_in(6, 7)),
    ClassificationRule("light", _damage_in(2, 3, 4)),
    ClassificationRule("prismatic", _name_contains("prismatic"), source=NAME),
)


def apply_rules(item: Mapping[str, Any], rules: Sequence[ClassificationRule], default: str = UNKNOWN) -> str:
    if not isinstance(item, Mapping):
        return default
    for source in (FIELD, NAME):
        for rule in rules:
            if rule.source == source and rule.predicate(item):
                return rule.label
    return default


def classify_item(item: Mapping[str, Any]) -> str:
    return apply_rules(item, KIND_RULES)


def subclass_element(item: Mapping[str, Any]) -> str:
    return apply_rules(item, ELEMENT_RULES)


def summarize_item(record_id: int, item: Mapping[str, Any]) -> Dict[str, Any]:
    item_type = as_int(probe(item, "itemType"))
    tier_type = as_int(probe(item, "inventory.tierType"))
    class_type = as_int(probe(item, "classType"))
    damage_type = as_int(probe(item, "defaultDamageType"))
    bucket_hash = as_int(probe(item, "inventory.bucketTypeHash"))
    item_hash = as_int(probe(item, "hash"))
    return {
        "id": record_id,
        "hash": item_hash if item_hash is not None else record_id & 0xFFFFFFFF,
        "name": display_name(item).strip() or None,
        "item_type": item_type,
        "item_type_name": item_type_name(item_type) if item_type is not None else None,
        "item_sub_type": as_int(probe(item, "itemSubType")),
        "tier_type": tier_type,
        "tier_name": tier_type_name(tier_type),
        "class_type": class_type,
        "class_name": class_type_name(class_type),
        "damage_type": damage_type,
        "damage_name": damage_type_name(damage_type),
        "bucket_hash": bucket_hash,
        "slot_name": equipment_slot_name(bucket_hash) if bucket_hash is not None else None,
        "kind": classify_item(item),
        "category_hashes": category_hashes(item),
        "redacted": bool(probe(item, "redacted", False)),
        "blacklisted": bool(probe(item, "blacklisted", False)),
    }
