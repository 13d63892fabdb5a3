"""Numeric code tables used by the provider's item definitions."""

from __future__ import annotations

ITEM_TYPES = {
    "NONE": 0,
    "CURRENCY": 1,
    "ARMOR": 2,
    "WEAPON": 3,
    "MESSAGE": 7,
    "ENGRAM": 8,
    "CONSUMABLE": 9,
    "EXCHANGE_MATERIAL": 10,
    "MISSION_REWARD": 11,
    "QUEST_STEP": 12,
    "QUEST_STEP_COMPLETE": 13,
    "EMBLEM": 14,
    "QUEST": 15,
    "SUBCLASS": 19,
    "CLASS_ITEM": 20,
    "MATERIAL": 21,
    "GHOST": 24,
    "VEHICLE": 39,
    "SHIP": 41,
    "BOUNTY": 42,
    "WRAPPER": 43,
    "SEASONAL_ARTIFACT": 44,
    "FINISHER": 45,
}

CLASS_TYPES = {
    "TITAN": 0,
    "HUNTER": 1,
    "WARLOCK": 2,
    "ALL": 3,
}

DAMAGE_TYPES = {
    "NONE": 0,
    "KINETIC": 1,
    "ARC": 2,
    "SOLAR": 3,
    "VOID": 4,
    "RAID": 5,
    "STASIS": 6,
    "STRAND": 7,
    "PRISMATIC": 8,
}

TIER_TYPES = {
    "UNKNOWN": 0,
    "CURRENCY": 1,
    "COMMON": 2,
    "RARE": 3,
    "LEGENDARY": 4,
    "EXOTIC": 5,
}

# Inventory bucket hashes
EQUIPMENT_SLOTS = {
    "KINETIC_WEAPONS": 1498876634,
    "ENERGY_WEAPONS": 2465295065,
    "POWER_WEAPONS": 953998645,
    "HELMET": 3448274439,
    "GAUNTLETS": 3551918588,
    "CHEST_ARMOR": 14239492,
    "LEG_ARMOR": 20886954,
    "CLASS_ARMOR": 1585787867,
    "GHOST": 4023194814,
    "VEHICLE": 2025709351,
    "SHIP": 284967655,
    "SHADER": 2973005342,
    "EMBLEM": 4274335291,
}

WEAPON_SLOTS = frozenset(
    EQUIPMENT_SLOTS[k] for k in ("KINETIC_WEAPONS", "ENERGY_WEAPONS", "POWER_WEAPONS")
)
ARMOR_SLOTS = frozenset(
    EQUIPMENT_SLOTS[k] for k in ("HELMET", "GAUNTLETS", "CHEST_ARMOR", "LEG_ARMOR", "CLASS_ARMOR")
)
COSMETIC_SLOTS = frozenset(
    EQUIPMENT_SLOTS[k] for k in ("GHOST", "VEHICLE", "SHIP", "SHADER", "EMBLEM")
)

# Item category hash for mods in the category-definition table.
MOD_CATEGORY_HASH = 59

_CLASS_NAMES = {0: "Titan", 1: "Hunter", 2: "Warlock", 3: "All Classes"}
_TIER_NAMES = {1: "Currency", 2: "Common", 3: "Rare", 4: "Legendary", 5: "Exotic"}
_DAMAGE_NAMES = {
    1: "Kinetic",
    2: "Arc",
    3: "Solar",
    4: "Void",
    5: "Raid",
    6: "Stasis",
    7: "Strand",
    8: "Prismatic",
}
_ITEM_TYPE_NAMES = {
    2: "Armor",
    3: "Weapon",
    9: "Consumable",
    14: "Emblem",
    15: "Quest",
    19: "Subclass",
    21: "Material",
    24: "Ghost",
    39: "Vehicle",
    41: "Ship",
    42: "Bounty",
    44: "Seasonal Artifact",
    45: "Finisher",
}
_SLOT_NAMES = {
    EQUIPMENT_SLOTS["KINETIC_WEAPONS"]: "Kinetic Weapon",
    EQUIPMENT_SLOTS["ENERGY_WEAPONS"]: "Energy Weapon",
    EQUIPMENT_SLOTS["POWER_WEAPONS"]: "Power Weapon",
    EQUIPMENT_SLOTS["HELMET"]: "Helmet",
    EQUIPMENT_SLOTS["GAUNTLETS"]: "Gauntlets",
    EQUIPMENT_SLOTS["CHEST_ARMOR"]: "Chest Armor",
    EQUIPMENT_SLOTS["LEG_ARMOR"]: "Leg Armor",
    EQUIPMENT_SLOTS["CLASS_ARMOR"]: "Class Item",
    EQUIPMENT_SLOTS["GHOST"]: "Ghost",
    EQUIPMENT_SLOTS["VEHICLE"]: "Vehicle",
    EQUIPMENT_SLOTS["SHIP"]: "Ship",
    EQUIPMENT_SLOTS["EMBLEM"]: "Emblem",
    EQUIPMENT_SLOTS["SHADER"]: "Shader",
}


def class_type_name(class_type) -> str:
    return _CLASS_NAMES.get(class_type, "Unknown")


def tier_type_name(tier_type) -> str:
    return _TIER_NAMES.get(tier_type, "Unknown")


def damage_type_name(damage_type) -> str:
    return _DAMAGE_NAMES.get(damage_type, "None")


def item_type_name(item_type) -> str:
    return _ITEM_TYPE_NAMES.get(item_type, f"Type {item_type}")


def equipment_slot_name(bucket_hash) -> str:
    return _SLOT_NAMES.get(bucket_hash, f"Slot {bucket_hash}")
