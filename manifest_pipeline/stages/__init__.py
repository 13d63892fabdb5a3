from .analyzer import build_category_catalog, classify
from .base import (
    CategoryIndex,
    CategoryInfo,
    ColumnDescriptor,
    DownloadedArchive,
    DownloadProgress,
    ExtractedStore,
    ManifestDescriptor,
    Record,
    RunRecord,
    TableDescriptor,
)
from .extractor import ArchiveExtractor
from .fetcher import ArchiveFetcher
from .inspector import StoreHandle, StoreInspector, open_store
from .resolver import MetadataResolver

__all__ = [
    "ArchiveExtractor",
    "ArchiveFetcher",
    "CategoryIndex",
    "CategoryInfo",
    "ColumnDescriptor",
    "DownloadedArchive",
    "DownloadProgress",
    "ExtractedStore",
    "ManifestDescriptor",
    "MetadataResolver",
    "Record",
    "RunRecord",
    "StoreHandle",
    "StoreInspector",
    "TableDescriptor",
    "build_category_catalog",
    "classify",
    "open_store",
]
