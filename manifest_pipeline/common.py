from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any, Dict

import pandas as pd


def sha256_for_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def ensure_dirs(*paths: str | Path) -> None:
    for p in paths:
        Path(p).mkdir(parents=True, exist_ok=True)


def write_parquet(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(path, index=False)


def write_json(payload: Dict[str, Any], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def read_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


def remove_quietly(path: Path) -> bool:
    """Delete ``path`` if present. Returns False when the unlink itself failed."""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        return False
    return True


def getenv(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name, default)
    if value is not None and not value.strip():
        return default
    return value
