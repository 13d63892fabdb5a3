from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List, Mapping

import pandas as pd

from manifest_pipeline.classification import category_hashes, display_name, probe, subclass_element
from manifest_pipeline.definitions import (
    ARMOR_SLOTS,
    CLASS_TYPES,
    WEAPON_SLOTS,
    class_type_name,
    damage_type_name,
    equipment_slot_name,
    tier_type_name,
)
from manifest_pipeline.download import configure_logging
from manifest_pipeline.errors import PipelineError
from manifest_pipeline.filters import (
    filter_armor_by_slot,
    filter_by_class,
    filter_by_tier,
    filter_weapons_by_slot,
    group_items_by,
    is_active_item,
    is_armor,
    is_exotic,
    is_legendary,
    is_subclass,
    is_weapon,
    search_items,
    unique_values,
)
from manifest_pipeline.pipeline import ExploreResult, run_explore
from manifest_pipeline.settings import Settings, load_settings
from manifest_pipeline.stages import StoreInspector

SAMPLE_LIMIT = 3
SEARCH_LIMIT = 10
PLAYABLE_CLASSES = tuple(CLASS_TYPES[name] for name in ("TITAN", "HUNTER", "WARLOCK"))

Item = Mapping[str, Any]


def _print_samples(title: str, items: List[Item], fields: Dict[str, str]) -> None:
    print(f"\n{title} ({len(items)} shown)")
    for item in items:
        print(f"  {display_name(item) or 'Unnamed'}")
        for label, path in fields.items():
            print(f"    {label}: {probe(item, path)}")
        print(f"    Categories: {category_hashes(item)}")


def _print_breakdown(items: List[Item]) -> None:
    print(f"\nSampled items: {sum(map(is_exotic, items))} exotic, {sum(map(is_legendary, items))} legendary")
    for tier in unique_values(items, "inventory.tierType"):
        print(f"  {tier_type_name(tier)}: {len(filter_by_tier(items, tier))}")

    print("By class (class-agnostic items count for every class):")
    for class_type in PLAYABLE_CLASSES:
        print(f"  {class_type_name(class_type)}: {len(filter_by_class(items, class_type))}")

    print("By slot:")
    for slot in sorted(ARMOR_SLOTS, key=equipment_slot_name):
        print(f"  {equipment_slot_name(slot)}: {len(filter_armor_by_slot(items, slot))}")
    for slot in sorted(WEAPON_SLOTS, key=equipment_slot_name):
        print(f"  {equipment_slot_name(slot)}: {len(filter_weapons_by_slot(items, slot))}")

    by_damage = group_items_by([i for i in items if is_weapon(i)], "defaultDamageType")
    if by_damage:
        print("Weapons by damage type:")
        for damage_type in sorted(by_damage, key=str):
            print(f"  {damage_type_name(damage_type)}: {len(by_damage[damage_type])}")


def _code(value: Any) -> str:
    return "?" if pd.isna(value) else str(value)


def report(result: ExploreResult, settings: Settings, search: str | None = None) -> None:
    record = result.run_record
    print(f"Manifest version: {record.version}")
    print(f"Downloaded: {record.download_date}")

    print(f"\n{len(result.tables)} tables:")
    for table in result.tables:
        print(f"  - {table.name}: {result.row_counts[table.name]:,} records")
        for col in table.columns:
            print(f"      {col.name} ({col.declared_type})")

    handle = StoreInspector.open_read_only(result.store_path)
    if settings.item_table in result.row_counts:
        samples = handle.sample_rows(settings.item_table, limit=200)
        items = [r.json for r in samples if is_active_item(r.json)]
        _print_samples(
            "Armor samples",
            [i for i in items if is_armor(i)][:SAMPLE_LIMIT],
            {"Type": "itemType", "Class": "classType", "Tier": "inventory.tierType"},
        )
        _print_samples(
            "Weapon samples",
            [i for i in items if is_weapon(i)][:SAMPLE_LIMIT],
            {"Type": "itemType", "Damage": "defaultDamageType", "Bucket": "inventory.bucketTypeHash"},
        )
        # Subclasses flagged for every class are placeholders.
        subclasses = [i for i in items if is_subclass(i) and i.get("classType") in PLAYABLE_CLASSES]
        for item in subclasses[:SAMPLE_LIMIT]:
            print(f"  Subclass {display_name(item)}: {subclass_element(item)}")
        _print_breakdown(items)

        if search:
            matches = search_items((r.json for r in handle.iter_records(settings.item_table)), search)
            print(f"\n{len(matches)} items match {search!r}:")
            for item in matches[:SEARCH_LIMIT]:
                print(f"  {display_name(item) or 'Unnamed'} ({item.get('itemTypeDisplayName') or 'no type'})")

    if not result.type_distribution.empty:
        print("\nTop item type/sub-type combinations:")
        for item_type, sub_type, count in result.type_distribution.itertuples(index=False, name=None):
            print(f"  Type {_code(item_type)}, SubType {_code(sub_type)}: {count} items")

    index = result.category_index
    print(f"\nTop {len(index.ranking)} categories:")
    for category_hash, count in index.ranking:
        print(f"  {category_hash} {index.name_for(category_hash)}: {count}")

    profile = result.profile
    print(f"\nItems: {profile['record_count']:,} ({profile['active_count']:,} active)")
    print(f"Field completeness: {profile['completeness_score']}")
    print(f"Category mapping saved to {settings.categories_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect the extracted manifest and rank item categories.")
    parser.add_argument("--config", help="settings YAML (default: config/pipeline.yaml when present)")
    parser.add_argument("--data-dir", help="directory holding the extracted store and run record")
    parser.add_argument("--top", type=int, help="number of categories kept in the ranking")
    parser.add_argument("--search", help="list items whose name, description or type mentions this text")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        settings = load_settings(args.config, data_dir=args.data_dir, top_n=args.top)
        result = run_explore(settings)
        report(result, settings, search=args.search)
    except PipelineError as exc:
        print(f"{exc.stage} failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
