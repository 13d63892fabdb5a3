from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict

import yaml

from manifest_pipeline.errors import ConfigurationError

DEFAULT_SETTINGS_PATH = Path("config/pipeline.yaml")
DEFAULT_TOP_N = 20


@dataclass(frozen=True)
class Settings:
    base_url: str = "https://www.bungie.net"
    manifest_endpoint: str = "/Platform/Destiny2/Manifest/"
    language: str = "en"
    data_dir: Path = Path("manifest-data")
    store_filename: str = "manifest.db"
    run_record_filename: str = "manifest-info.json"
    categories_filename: str = "categories.json"
    items_filename: str = "items.parquet"
    item_table: str = "DestinyInventoryItemDefinition"
    category_table: str = "DestinyItemCategoryDefinition"
    top_n: int = DEFAULT_TOP_N
    chunk_size: int = 64 * 1024
    request_timeout: float = 30.0
    download_timeout: float = 120.0
    api_key_env: str = "BUNGIE_API_KEY"
    user_agent: str = "Destiny-Data-Explorer/1.0"

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_filename

    @property
    def run_record_path(self) -> Path:
        return self.data_dir / self.run_record_filename

    @property
    def categories_path(self) -> Path:
        return self.data_dir / self.categories_filename

    @property
    def items_path(self) -> Path:
        return self.data_dir / self.items_filename

    def url_for(self, location: str) -> str:
        if location.startswith("http://") or location.startswith("https://"):
            return location
        return f"{self.base_url.rstrip('/')}/{location.lstrip('/')}"


def _coerce(payload: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name: f for f in fields(Settings)}
    unknown = sorted(set(payload) - set(known))
    if unknown:
        raise ConfigurationError(f"Unknown settings keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if key == "data_dir":
            value = Path(value)
        elif key in {"top_n", "chunk_size"}:
            value = int(value)
            if value <= 0:
                raise ConfigurationError(f"Setting {key} must be positive, got {value}")
        elif key in {"request_timeout", "download_timeout"}:
            value = float(value)
        values[key] = value
    return values


def load_settings(path: str | Path | None = None, **overrides: Any) -> Settings:
    """Build settings from an optional YAML file, then apply non-None overrides.

    Without an explicit path the default ``config/pipeline.yaml`` is read when
    it exists; otherwise the built-in defaults apply.
    """
    payload: Dict[str, Any] = {}
    if path is not None or DEFAULT_SETTINGS_PATH.exists():
        settings_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
        try:
            with settings_path.open("r", encoding="utf-8") as fh:
                payload = yaml.safe_load(fh) or {}
        except OSError as exc:
            raise ConfigurationError(f"Cannot read settings file {settings_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid settings file {settings_path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigurationError(f"Settings file {settings_path} must contain a mapping")

    settings = Settings(**_coerce(payload))
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        settings = replace(settings, **_coerce(overrides))
    return settings
