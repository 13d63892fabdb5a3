from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd

from manifest_pipeline.classification import summarize_item
from manifest_pipeline.stages.base import Record

# Fields every item definition is expected to carry; missing values are tolerated.
PROBED_FIELDS = ["name", "item_type", "tier_type", "class_type", "bucket_hash"]
CODE_COLUMNS = ["item_type", "item_sub_type", "tier_type", "class_type", "damage_type", "bucket_hash"]


def items_frame(records: Iterable[Record]) -> pd.DataFrame:
    rows = [summarize_item(record.id, record.json) for record in records]
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.astype({column: "Int64" for column in CODE_COLUMNS})


def active_items(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return df
    mask = ~df["redacted"] & ~df["blacklisted"] & df["name"].notna()
    return df[mask]


def completeness_score(df: pd.DataFrame, columns: List[str] | None = None) -> float:
    if df.empty:
        return 0.0
    subset = df[[c for c in (columns or list(df.columns)) if c in df.columns]]
    total = len(subset) * max(len(subset.columns), 1)
    missing = int(subset.isna().sum().sum())
    return round(max(0.0, 1 - (missing / total)), 3)


def field_coverage(df: pd.DataFrame, fields: List[str] | None = None) -> Dict[str, float]:
    fields = fields or PROBED_FIELDS
    if df.empty:
        return {f: 0.0 for f in fields}
    coverage = {}
    for f in fields:
        if f not in df.columns:
            coverage[f] = 0.0
            continue
        coverage[f] = round(float(df[f].notna().mean()), 3)
    return coverage


def type_distribution(df: pd.DataFrame, top_n: int = 20) -> pd.DataFrame:
    """Counts of (item_type, item_sub_type) pairs among active items, busiest first."""
    active = active_items(df)
    if active.empty:
        return pd.DataFrame(columns=["item_type", "item_sub_type", "count"])
    grouped = (
        active.groupby(["item_type", "item_sub_type"], dropna=False)
        .size()
        .reset_index(name="count")
        .sort_values(["count", "item_type"], ascending=[False, True], kind="mergesort")
    )
    return grouped.head(top_n).reset_index(drop=True)


def kind_counts(df: pd.DataFrame) -> Dict[str, int]:
    if df.empty:
        return {}
    counts = active_items(df)["kind"].value_counts()
    return {str(k): int(v) for k, v in counts.items()}


def evaluate(df: pd.DataFrame) -> Dict[str, Any]:
    return {
        "record_count": int(len(df)),
        "active_count": int(len(active_items(df))),
        "completeness_score": completeness_score(df, PROBED_FIELDS),
        "field_coverage": field_coverage(df),
        "kinds": kind_counts(df),
    }
