from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import requests

from manifest_pipeline.common import ensure_dirs, read_json, sha256_for_file, write_json, write_parquet
from manifest_pipeline.errors import ConfigurationError, PipelineCancelled, UnknownTable
from manifest_pipeline.profile import evaluate, items_frame, type_distribution
from manifest_pipeline.settings import Settings
from manifest_pipeline.stages import (
    ArchiveExtractor,
    ArchiveFetcher,
    CategoryIndex,
    MetadataResolver,
    Record,
    RunRecord,
    StoreInspector,
    TableDescriptor,
    build_category_catalog,
    classify,
)
from manifest_pipeline.stages.fetcher import ProgressCallback

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadResult:
    run_record: RunRecord
    row_counts: Dict[str, int]


@dataclass(frozen=True)
class ExploreResult:
    run_record: RunRecord
    store_path: Path
    tables: List[TableDescriptor]
    row_counts: Dict[str, int]
    category_index: CategoryIndex
    items: pd.DataFrame
    type_distribution: pd.DataFrame
    profile: Dict[str, Any]


def _checkpoint(cancel_event: threading.Event | None, next_stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PipelineCancelled(f"Cancelled before {next_stage}")


def _archive_name(location: str) -> str:
    name = location.rstrip("/").rsplit("/", 1)[-1].split("?", 1)[0]
    return name or "manifest.zip"


def run_download(
    settings: Settings,
    api_key: str,
    session: requests.Session | None = None,
    progress: Optional[ProgressCallback] = None,
    cancel_event: threading.Event | None = None,
) -> DownloadResult:
    """Resolve, fetch and extract the manifest, then record what was installed."""
    if not api_key:
        raise ConfigurationError(f"No API key supplied; set {settings.api_key_env}")
    session = session or requests.Session()
    ensure_dirs(settings.data_dir)

    _checkpoint(cancel_event, "resolve")
    descriptor = MetadataResolver(settings, session=session).resolve(api_key)
    location = descriptor.location_for(settings.language)

    _checkpoint(cancel_event, "fetch")
    archive = ArchiveFetcher(settings, session=session).fetch(
        location,
        settings.data_dir / _archive_name(location),
        api_key=api_key,
        progress=progress,
        cancel_event=cancel_event,
    )

    _checkpoint(cancel_event, "extract")
    store = ArchiveExtractor(settings).extract(archive.path, settings.data_dir)

    _checkpoint(cancel_event, "inspect")
    handle = StoreInspector.open_read_only(store.path)
    tables = handle.table_names()
    row_counts = {name: handle.count_rows(name) for name in tables}
    for name in tables:
        logger.info("%s: %d records", name, row_counts[name])

    run_record = RunRecord(
        version=descriptor.version,
        download_date=datetime.now(timezone.utc).isoformat(),
        db_path=str(store.path.resolve()),
        tables=tables,
        sha256=sha256_for_file(store.path),
        size_bytes=store.size_bytes,
    )
    write_json(run_record.to_payload(), settings.run_record_path)
    logger.info("Run record written to %s", settings.run_record_path)
    return DownloadResult(run_record=run_record, row_counts=row_counts)


def load_run_record(settings: Settings) -> RunRecord:
    payload = read_json(settings.run_record_path)
    if not payload:
        raise ConfigurationError(
            f"Manifest info not found at {settings.run_record_path}. Run the download step first"
        )
    return RunRecord.from_payload(payload)


def _records(handle, table: str) -> List[Record]:
    try:
        return list(handle.iter_records(table))
    except UnknownTable:
        logger.warning("Table %s not present; skipping", table)
        return []


def _store_path(settings: Settings, run_record: RunRecord) -> Path:
    """The recorded store when it is still reachable, else the one under the configured data directory."""
    if run_record.db_path:
        recorded = Path(run_record.db_path)
        if recorded.is_absolute() and recorded.exists():
            return recorded
        logger.info("Recorded store %s is not reachable; using %s", recorded, settings.store_path)
    return settings.store_path


def run_explore(settings: Settings, cancel_event: threading.Event | None = None) -> ExploreResult:
    """Inspect the extracted store and rebuild the category index and item table."""
    run_record = load_run_record(settings)
    store_path = _store_path(settings, run_record)

    _checkpoint(cancel_event, "inspect")
    handle = StoreInspector.open_read_only(store_path)
    tables = handle.list_tables()
    row_counts = {table.name: handle.count_rows(table.name) for table in tables}

    _checkpoint(cancel_event, "analyze")
    items = _records(handle, settings.item_table)
    catalog = build_category_catalog(_records(handle, settings.category_table))
    index = classify(items, catalog=catalog, top_n=settings.top_n)
    write_json(
        {"generated_at": datetime.now(timezone.utc).isoformat(), "version": run_record.version} | index.to_payload(),
        settings.categories_path,
    )

    df = items_frame(items)
    if not df.empty:
        write_parquet(df, settings.items_path)
    distribution = type_distribution(df, top_n=settings.top_n)

    return ExploreResult(
        run_record=run_record,
        store_path=store_path,
        tables=tables,
        row_counts=row_counts,
        category_index=index,
        items=df,
        type_distribution=distribution,
        profile=evaluate(df),
    )
