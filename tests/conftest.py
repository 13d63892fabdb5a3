from __future__ import annotations

import json
import sqlite3
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import pytest
import requests

from manifest_pipeline.settings import Settings


class DummyResponse:
    def __init__(self, status_code=200, json_data=None, chunks=None, headers=None, fail_after=None, reason="OK"):
        self.status_code = status_code
        self._json_data = json_data
        self._chunks = list(chunks or [])
        self.headers = headers or {}
        self.reason = reason
        self.fail_after = fail_after
        self.closed = False

    def json(self):
        if isinstance(self._json_data, Exception):
            raise self._json_data
        if self._json_data is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_data

    def iter_content(self, chunk_size=1):
        for index, chunk in enumerate(self._chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise requests.exceptions.ChunkedEncodingError("Connection broken: IncompleteRead")
            yield chunk

    def close(self):
        self.closed = True


class DummySession:
    def __init__(self, responses: Dict[str, Any]):
        self._responses = responses
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        try:
            response = self._responses[url]
        except KeyError as exc:  # pragma: no cover - safety
            raise AssertionError(f"Unexpected URL {url}") from exc
        if isinstance(response, Exception):
            raise response
        return response


def envelope(version="12345.67.89", paths=None, error_code=1, message="Ok", json_paths=None):
    return {
        "ErrorCode": error_code,
        "ThrottleSeconds": 0,
        "ErrorStatus": "Success" if error_code == 1 else "ApiInvalidOrExpiredKey",
        "Message": message,
        "Response": {
            "version": version,
            "mobileWorldContentPaths": paths if paths is not None else {"en": "/common/destiny2_content/sqlite/en/world.content"},
            "jsonWorldContentPaths": json_paths or {"en": "/common/destiny2_content/json/en/world.json"},
        },
    }


def make_store(path: Path, tables: Dict[str, Iterable[Tuple[int, Any]]], page_size: int | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        if page_size:
            conn.execute(f"PRAGMA page_size={page_size}")
        for name, rows in tables.items():
            conn.execute(f'CREATE TABLE "{name}" (id INTEGER PRIMARY KEY NOT NULL, json BLOB)')
            for row_id, payload in rows:
                raw = payload if isinstance(payload, (str, bytes)) or payload is None else json.dumps(payload)
                conn.execute(f'INSERT INTO "{name}" (id, json) VALUES (?, ?)', (row_id, raw))
        conn.commit()
    finally:
        conn.close()
    return path


def make_zip(path: Path, entries: Iterable[Tuple[str, bytes]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, payload in entries:
            zf.writestr(name, payload)
    return path


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "manifest-data", chunk_size=256)


@pytest.fixture
def item_records():
    return [
        (1, {"hash": 1, "itemType": 3, "displayProperties": {"name": "Ace of Spades"}, "itemCategoryHashes": [1, 2, 3],
             "inventory": {"tierType": 5, "bucketTypeHash": 1498876634}, "classType": 3, "defaultDamageType": 1}),
        (2, {"hash": 2, "itemType": 2, "displayProperties": {"name": "Crest of Alpha Lupi"}, "itemCategoryHashes": [20, 45],
             "inventory": {"tierType": 5, "bucketTypeHash": 14239492}, "classType": 1}),
        (3, {"hash": 3, "itemType": 19, "displayProperties": {"name": "Arc Mod"}, "itemCategoryHashes": [59]}),
        (4, {"hash": 4, "displayProperties": {"name": "Nameless"}}),
        (5, "not json at all"),
    ]
