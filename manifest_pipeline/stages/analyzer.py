from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, Mapping

from manifest_pipeline.classification import as_int, category_hashes, probe
from manifest_pipeline.settings import DEFAULT_TOP_N

from .base import CategoryIndex, CategoryInfo, Record

logger = logging.getLogger(__name__)


def _unsigned(value: int) -> int:
    # Row ids are the signed 32-bit form of the definition hash.
    return value & 0xFFFFFFFF


def build_category_catalog(records: Iterable[Record]) -> Dict[int, CategoryInfo]:
    catalog: Dict[int, CategoryInfo] = {}
    for record in records:
        data = record.json if isinstance(record.json, Mapping) else {}
        declared = as_int(data.get("hash"))
        category_hash = declared if declared is not None else _unsigned(record.id)
        name = probe(data, "displayProperties.name")
        description = probe(data, "displayProperties.description", "")
        catalog[category_hash] = CategoryInfo(
            name=name if isinstance(name, str) and name else "Unknown",
            description=description if isinstance(description, str) else "",
            visible=bool(data.get("visible", False)),
            deprecated=bool(data.get("deprecated", False)),
        )
    return catalog


def count_categories(records: Iterable[Record]) -> Counter:
    counts: Counter = Counter()
    for record in records:
        data = record.json if isinstance(record.json, Mapping) else {}
        counts.update(category_hashes(data))
    return counts


def rank(counts: Mapping[int, int], top_n: int) -> tuple:
    ordered = sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))
    return tuple(ordered[:top_n])


def classify(
    records: Iterable[Record],
    catalog: Mapping[int, CategoryInfo] | None = None,
    top_n: int = DEFAULT_TOP_N,
) -> CategoryIndex:
    """Count category-hash references across records and rank the busiest categories.

    Records without ``itemCategoryHashes`` contribute nothing. Ties in count are
    broken by ascending hash, so the output depends only on the inputs.
    """
    counts = count_categories(records)
    ranking = rank(counts, top_n)
    logger.info("Ranked %d distinct categories (top %d kept)", len(counts), len(ranking))
    return CategoryIndex(categories=dict(catalog or {}), ranking=ranking, top_n=top_n)
