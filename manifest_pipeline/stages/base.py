from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

from manifest_pipeline.errors import InvalidEnvelope


@dataclass(frozen=True)
class ManifestDescriptor:
    version: str
    archive_locations: Mapping[str, str]
    json_locations: Mapping[str, str] = field(default_factory=dict)

    @property
    def languages(self) -> List[str]:
        return sorted(self.archive_locations)

    def location_for(self, language: str) -> str:
        try:
            return self.archive_locations[language]
        except KeyError:
            available = ", ".join(self.languages) or "none"
            raise InvalidEnvelope(
                f"Manifest {self.version} has no archive for language '{language}' (available: {available})"
            ) from None


@dataclass(frozen=True)
class DownloadProgress:
    written_bytes: int
    total_bytes: int | None = None

    @property
    def percent(self) -> float | None:
        if not self.total_bytes:
            return None
        return (self.written_bytes / self.total_bytes) * 100


@dataclass(frozen=True)
class DownloadedArchive:
    path: Path
    written_bytes: int
    total_bytes: int | None = None


@dataclass(frozen=True)
class ExtractedStore:
    path: Path
    entry_name: str
    size_bytes: int


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    declared_type: str


@dataclass(frozen=True)
class TableDescriptor:
    name: str
    columns: Tuple[ColumnDescriptor, ...]

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]


@dataclass(frozen=True)
class Record:
    id: int
    json: Dict[str, Any]


@dataclass(frozen=True)
class CategoryInfo:
    name: str = "Unknown"
    description: str = ""
    visible: bool = False
    deprecated: bool = False


@dataclass(frozen=True)
class CategoryIndex:
    categories: Mapping[int, CategoryInfo]
    ranking: Tuple[Tuple[int, int], ...]
    top_n: int

    def name_for(self, category_hash: int) -> str:
        info = self.categories.get(category_hash)
        return info.name if info else f"Category {category_hash}"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "top_n": self.top_n,
            "categories": {
                str(h): {
                    "name": info.name,
                    "description": info.description,
                    "visible": info.visible,
                    "deprecated": info.deprecated,
                }
                for h, info in sorted(self.categories.items())
            },
            "ranking": [
                {"hash": h, "count": count, "name": self.name_for(h)} for h, count in self.ranking
            ],
        }


@dataclass(frozen=True)
class RunRecord:
    version: str
    download_date: str
    db_path: str
    tables: List[str]
    sha256: str | None = None
    size_bytes: int | None = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "downloadDate": self.download_date,
            "dbPath": self.db_path,
            "tables": list(self.tables),
            "sha256": self.sha256,
            "sizeBytes": self.size_bytes,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RunRecord":
        return cls(
            version=str(payload.get("version", "")),
            download_date=str(payload.get("downloadDate", "")),
            db_path=str(payload.get("dbPath", "")),
            tables=list(payload.get("tables", [])),
            sha256=payload.get("sha256"),
            size_bytes=payload.get("sizeBytes"),
        )
