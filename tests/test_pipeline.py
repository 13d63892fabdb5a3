import threading
from dataclasses import replace
from pathlib import Path

import pandas as pd
import pytest

from conftest import DummyResponse, DummySession, envelope, make_store, make_zip
from manifest_pipeline.common import read_json, write_json
from manifest_pipeline.errors import ConfigurationError, PipelineCancelled, RemoteRejected, UnexpectedStatus
from manifest_pipeline.pipeline import run_download, run_explore
from manifest_pipeline.stages import StoreInspector, classify

MANIFEST_URL = "https://www.bungie.net/Platform/Destiny2/Manifest/"
ARCHIVE_URL = "https://www.bungie.net/x.zip"


@pytest.fixture
def items_payload(tmp_path):
    store = make_store(
        tmp_path / "build" / "manifest.content",
        {
            "Items": [
                (1, {"itemCategoryHashes": [59]}),
                (2, {"itemCategoryHashes": [59]}),
                (3, {"displayProperties": {"name": "Plain"}}),
            ]
        },
        page_size=512,
    )
    return store.read_bytes()


def _session(payload, manifest=None):
    archive_path = payload["archive"]
    body = archive_path.read_bytes()
    chunks = [body[i : i + 200] for i in range(0, len(body), 200)]
    return DummySession(
        {
            MANIFEST_URL: DummyResponse(json_data=manifest or envelope(version="v1", paths={"en": "/x.zip"})),
            ARCHIVE_URL: DummyResponse(chunks=chunks, headers={"Content-Length": str(len(body))}),
        }
    )


@pytest.fixture
def archive(tmp_path, items_payload):
    return {"archive": make_zip(tmp_path / "src" / "x.zip", [("manifest.content", items_payload)])}


def test_end_to_end_scenario(settings, archive, items_payload):
    assert len(items_payload) == 1024
    settings = replace(settings, item_table="Items", category_table="ItemCategories")

    result = run_download(settings, "key", session=_session(archive))

    assert result.run_record.tables == ["Items"]
    assert result.row_counts == {"Items": 3}
    assert result.run_record.version == "v1"
    assert settings.store_path.stat().st_size == 1024
    assert not (settings.data_dir / "x.zip").exists()

    handle = StoreInspector.open_read_only(settings.store_path)
    assert [t.name for t in handle.list_tables()] == ["Items"]
    assert handle.count_rows("Items") == 3
    index = classify(handle.iter_records("Items"))
    assert index.ranking[0] == (59, 2)

    explored = run_explore(settings)
    assert explored.category_index.ranking == ((59, 2),)
    assert read_json(settings.categories_path)["ranking"][0]["count"] == 2
    assert read_json(settings.run_record_path)["tables"] == ["Items"]
    assert len(pd.read_parquet(settings.items_path)) == 3
    assert explored.profile["record_count"] == 3


def test_rejected_credential_stops_before_download(settings, archive):
    manifest = envelope(error_code=2101, message="Invalid API key")
    session = _session(archive, manifest=manifest)
    with pytest.raises(RemoteRejected, match="Invalid API key"):
        run_download(settings, "bad", session=session)
    assert [url for url, _ in session.calls] == [MANIFEST_URL]
    assert not settings.run_record_path.exists()


def test_failed_fetch_leaves_no_artifacts(settings, archive):
    session = _session(archive)
    session._responses[ARCHIVE_URL] = DummyResponse(status_code=500, reason="Server Error")
    with pytest.raises(UnexpectedStatus):
        run_download(settings, "key", session=session)
    assert not (settings.data_dir / "x.zip").exists()
    assert not settings.store_path.exists()
    assert not settings.run_record_path.exists()


def test_cancellation_at_stage_boundary(settings, archive):
    cancel = threading.Event()
    cancel.set()
    session = _session(archive)
    with pytest.raises(PipelineCancelled):
        run_download(settings, "key", session=session, cancel_event=cancel)
    assert session.calls == []


def test_missing_api_key(settings, archive):
    session = _session(archive)
    with pytest.raises(ConfigurationError):
        run_download(settings, "", session=session)
    assert session.calls == []


def test_explore_requires_run_record(settings):
    with pytest.raises(ConfigurationError, match="download step"):
        run_explore(settings)


def test_explore_with_default_tables(settings, item_records):
    settings.data_dir.mkdir(parents=True)
    make_store(
        settings.store_path,
        {
            "DestinyInventoryItemDefinition": item_records,
            "DestinyItemCategoryDefinition": [
                (59, {"displayProperties": {"name": "Mods"}, "visible": True}),
                (1, {"displayProperties": {"name": "Weapon"}, "visible": True}),
            ],
        },
    )
    run_record = {
        "version": "v2",
        "downloadDate": "2024-01-01T00:00:00+00:00",
        "dbPath": str(settings.store_path),
        "tables": ["DestinyInventoryItemDefinition", "DestinyItemCategoryDefinition"],
    }
    write_json(run_record, settings.run_record_path)
    result = run_explore(replace(settings, top_n=3))

    assert result.category_index.ranking == ((1, 1), (2, 1), (3, 1))
    assert result.category_index.name_for(1) == "Weapon"
    assert result.row_counts["DestinyInventoryItemDefinition"] == 5
    assert result.profile["kinds"]["weapon"] == 1
    payload = read_json(settings.categories_path)
    assert payload["version"] == "v2"
    assert payload["categories"]["59"]["name"] == "Mods"


def test_explore_from_another_directory_finds_store(settings, archive, tmp_path, monkeypatch):
    first, second = tmp_path / "a", tmp_path / "b"
    first.mkdir()
    second.mkdir()
    monkeypatch.chdir(first)
    relative = replace(settings, data_dir=Path("data"), item_table="Items", category_table="ItemCategories")

    result = run_download(relative, "key", session=_session(archive))
    assert Path(result.run_record.db_path) == first / "data" / "manifest.db"

    monkeypatch.chdir(second)
    explored = run_explore(replace(relative, data_dir=first / "data"))
    assert explored.store_path == first / "data" / "manifest.db"
    assert explored.category_index.ranking == ((59, 2),)


def test_explore_ignores_stale_relative_store_path(settings, item_records):
    settings.data_dir.mkdir(parents=True)
    make_store(settings.store_path, {"DestinyInventoryItemDefinition": item_records})
    write_json(
        {"version": "v1", "dbPath": "data/manifest.db", "tables": ["DestinyInventoryItemDefinition"]},
        settings.run_record_path,
    )
    explored = run_explore(settings)
    assert explored.store_path == settings.store_path
    assert explored.row_counts["DestinyInventoryItemDefinition"] == 5
