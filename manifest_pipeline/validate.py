from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Dict, List

from manifest_pipeline.common import read_json, sha256_for_file
from manifest_pipeline.errors import StoreUnreadable
from manifest_pipeline.settings import Settings
from manifest_pipeline.stages import StoreInspector

RUN_RECORD_FIELDS = ["version", "downloadDate", "dbPath", "tables"]


def _validate_run_record(record: Dict, errors: List[str], warnings: List[str]) -> Path | None:
    for field in RUN_RECORD_FIELDS:
        if field not in record:
            errors.append(f"Run record missing required field: {field}")

    db_path = Path(record["dbPath"]) if record.get("dbPath") else None
    if db_path is None or not db_path.exists():
        errors.append(f"Extracted store missing: {record.get('dbPath')}")
        return None

    sha = record.get("sha256")
    if not sha:
        warnings.append("Run record has no sha256 for the extracted store")
    elif sha != sha256_for_file(db_path):
        errors.append(f"Extracted store sha mismatch: {db_path}")

    try:
        tables = StoreInspector.open_read_only(db_path).table_names()
    except (StoreUnreadable, sqlite3.Error) as exc:
        errors.append(f"Extracted store unreadable: {exc}")
        return db_path

    recorded = list(record.get("tables", []))
    if not recorded:
        errors.append("Run record lists no tables")
    for name in sorted(set(recorded) - set(tables)):
        errors.append(f"Run record table missing from store: {name}")
    for name in sorted(set(tables) - set(recorded)):
        warnings.append(f"Store table not listed in run record: {name}")
    return db_path


def _validate_categories(payload: Dict, errors: List[str], warnings: List[str]) -> None:
    ranking = payload.get("ranking")
    if not isinstance(ranking, list):
        errors.append("Category index has no ranking list")
        return
    counts = [entry.get("count", 0) for entry in ranking]
    if counts != sorted(counts, reverse=True):
        errors.append("Category ranking is not sorted by descending count")
    top_n = payload.get("top_n")
    if isinstance(top_n, int) and len(ranking) > top_n:
        errors.append(f"Category ranking has {len(ranking)} entries, more than top_n={top_n}")
    categories = payload.get("categories", {})
    for entry in ranking:
        if str(entry.get("hash")) not in categories:
            warnings.append(f"Ranked category {entry.get('hash')} has no catalog entry")


def run(settings: Settings, fail_on_warning: bool = False) -> int:
    errors: List[str] = []
    warnings: List[str] = []

    record = read_json(settings.run_record_path)
    if not record:
        errors.append(f"Run record is empty or missing: {settings.run_record_path}")
        return print_result(errors, warnings, fail_on_warning)
    _validate_run_record(record, errors, warnings)

    categories = read_json(settings.categories_path)
    if not categories:
        warnings.append(f"Category index missing: {settings.categories_path}")
    else:
        if categories.get("version") and categories.get("version") != record.get("version"):
            warnings.append("Category index was built from a different manifest version")
        _validate_categories(categories, errors, warnings)

    return print_result(errors, warnings, fail_on_warning)


def print_result(errors: List[str], warnings: List[str], fail_on_warning: bool = False) -> int:
    if errors:
        print("Artifact validation failed with errors:")
        for item in errors:
            print(f"- ERROR: {item}")
    else:
        print("Artifact validation errors: none")

    if warnings:
        print("Artifact validation warnings:")
        for item in warnings:
            print(f"- WARNING: {item}")

    if errors or (fail_on_warning and warnings):
        return 1
    return 0
