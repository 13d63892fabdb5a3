from __future__ import annotations

import logging
import os
import zipfile
import zlib
from pathlib import Path

from manifest_pipeline.common import remove_quietly
from manifest_pipeline.errors import CorruptArchive, EmptyArchive, ExtractionIO
from manifest_pipeline.settings import Settings

from .base import ExtractedStore

logger = logging.getLogger(__name__)


class ArchiveExtractor:
    """Unpacks the first entry of a downloaded ZIP to the fixed store path.

    The provider ships exactly one payload per archive, so additional entries
    are ignored. The archive is deleted afterwards whatever the outcome.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def extract(self, archive_path: Path, destination_dir: Path) -> ExtractedStore:
        archive_path = Path(archive_path)
        destination_dir = Path(destination_dir)
        try:
            return self._extract(archive_path, destination_dir)
        finally:
            if remove_quietly(archive_path):
                logger.info("Removed archive %s", archive_path.name)
            else:
                logger.warning("Could not remove archive %s", archive_path)

    def _extract(self, archive_path: Path, destination_dir: Path) -> ExtractedStore:
        logger.info("Extracting %s", archive_path)
        try:
            archive = zipfile.ZipFile(archive_path, "r")
        except (zipfile.BadZipFile, OSError) as exc:
            raise CorruptArchive(f"Cannot open archive {archive_path}: {exc}") from exc

        with archive:
            entries = archive.infolist()
            if not entries:
                raise EmptyArchive(f"Archive {archive_path.name} contains no entries")
            entry = entries[0]
            if len(entries) > 1:
                logger.debug("Archive holds %d entries; using %s", len(entries), entry.filename)

            target = destination_dir / self.settings.store_filename
            partial = target.with_name(target.name + ".part")
            try:
                destination_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ExtractionIO(f"Cannot create {destination_dir}: {exc}") from exc

            try:
                with archive.open(entry, "r") as src:
                    try:
                        dst = partial.open("wb")
                    except OSError as exc:
                        raise ExtractionIO(f"Cannot open {partial} for writing: {exc}") from exc
                    with dst:
                        self._copy(src, dst, partial)
                os.replace(partial, target)
            except ExtractionIO:
                remove_quietly(partial)
                raise
            except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as exc:
                remove_quietly(partial)
                raise CorruptArchive(f"Cannot decompress {entry.filename}: {exc}") from exc
            except OSError as exc:
                remove_quietly(partial)
                raise ExtractionIO(f"Cannot write {target}: {exc}") from exc

        size = target.stat().st_size
        logger.info("Extracted %s (%d bytes) to %s", entry.filename, size, target)
        return ExtractedStore(path=target, entry_name=entry.filename, size_bytes=size)

    def _copy(self, src, dst, partial: Path) -> None:
        while True:
            chunk = src.read(self.settings.chunk_size)
            if not chunk:
                return
            try:
                dst.write(chunk)
            except OSError as exc:
                raise ExtractionIO(f"Writing {partial} failed: {exc}") from exc


__all__ = ["ArchiveExtractor"]
