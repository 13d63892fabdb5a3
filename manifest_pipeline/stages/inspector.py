from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

from manifest_pipeline.errors import StoreUnreadable, UnknownTable

from .base import ColumnDescriptor, Record, TableDescriptor

logger = logging.getLogger(__name__)

KEY_COLUMNS = ("id", "key")
DEFAULT_BATCH_SIZE = 500


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def parse_blob(raw: Any) -> Dict[str, Any]:
    """Decode one JSON column value; anything that is not a JSON object becomes {}."""
    if raw is None:
        return {}
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return value if isinstance(value, dict) else {}


class StoreHandle:
    """Read-only view of an extracted SQLite store.

    No connection outlives a single call: every query opens its own
    ``mode=ro`` connection and closes it on the way out.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        uri = f"{self.path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StoreUnreadable(f"Cannot open {self.path}: {exc}") from exc
        with closing(conn):
            try:
                yield conn
            except sqlite3.DatabaseError as exc:
                raise StoreUnreadable(f"Query against {self.path} failed: {exc}") from exc

    def table_names(self) -> List[str]:
        with self._session() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        return [row[0] for row in rows]

    def _require(self, table: str) -> None:
        if table not in self.table_names():
            raise UnknownTable(f"Table '{table}' does not exist in {self.path.name}", table=table)

    def _columns(self, conn: sqlite3.Connection, table: str) -> tuple[ColumnDescriptor, ...]:
        rows = conn.execute(f"PRAGMA table_info({_quote(table)})").fetchall()
        # PRAGMA table_info rows: (cid, name, type, notnull, dflt_value, pk)
        return tuple(ColumnDescriptor(name=row[1], declared_type=row[2] or "") for row in rows)

    def list_tables(self) -> List[TableDescriptor]:
        names = self.table_names()
        with self._session() as conn:
            return [TableDescriptor(name=name, columns=self._columns(conn, name)) for name in names]

    def describe(self, table: str) -> TableDescriptor:
        self._require(table)
        with self._session() as conn:
            return TableDescriptor(name=table, columns=self._columns(conn, table))

    def count_rows(self, table: str) -> int:
        self._require(table)
        with self._session() as conn:
            (count,) = conn.execute(f"SELECT COUNT(*) FROM {_quote(table)}").fetchone()
        return int(count)

    def sample_rows(self, table: str, limit: int, offset: int = 0) -> List[Record]:
        descriptor = self.describe(table)
        names = descriptor.column_names
        key = next((col for col in KEY_COLUMNS if col in names), "rowid")
        blob = "json" if "json" in names else None

        select_blob = _quote(blob) if blob else "NULL"
        sql = (
            f"SELECT {_quote(key) if key != 'rowid' else 'rowid'}, {select_blob} "
            f"FROM {_quote(table)} ORDER BY rowid LIMIT ? OFFSET ?"
        )
        with self._session() as conn:
            rows = conn.execute(sql, (int(limit), int(offset))).fetchall()

        records: List[Record] = []
        for raw_id, raw_json in rows:
            data = parse_blob(raw_json)
            if raw_json is not None and not data:
                logger.debug("Record %s in %s has no readable JSON object", raw_id, table)
            try:
                record_id = int(raw_id)
            except (TypeError, ValueError):
                record_id = 0
            records.append(Record(id=record_id, json=data))
        return records

    def iter_records(self, table: str, batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[Record]:
        offset = 0
        while True:
            batch = self.sample_rows(table, limit=batch_size, offset=offset)
            if not batch:
                return
            yield from batch
            offset += len(batch)


class StoreInspector:
    @staticmethod
    def open_read_only(path: str | Path) -> StoreHandle:
        path = Path(path)
        if not path.is_file():
            raise StoreUnreadable(f"No extracted store at {path}; run the download step first")
        handle = StoreHandle(path)
        # Forces SQLite to read the header so non-database files fail here.
        with handle._session() as conn:
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
        logger.debug("Opened store %s read-only", path)
        return handle


def open_store(path: str | Path) -> StoreHandle:
    return StoreInspector.open_read_only(path)
