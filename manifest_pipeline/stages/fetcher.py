from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

import requests

from manifest_pipeline.common import remove_quietly
from manifest_pipeline.errors import (
    PipelineCancelled,
    PipelineError,
    TransportError,
    UnexpectedStatus,
    WriteError,
)
from manifest_pipeline.settings import Settings

from .base import DownloadedArchive, DownloadProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DownloadProgress], None]


def declared_length(headers) -> int | None:
    """Content-Length as an int, or None when absent or not comparable to decoded bytes."""
    encoding = (headers.get("Content-Encoding") or "identity").strip().lower()
    if encoding not in {"", "identity"}:
        return None
    raw = headers.get("Content-Length")
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value >= 0 else None


class ArchiveFetcher:
    """Streams one archive location to a local file.

    The destination either ends up holding the complete body or does not exist:
    every failure after the file was opened removes it before re-raising.
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _headers(self, api_key: str | None) -> Dict[str, str]:
        headers = {"User-Agent": self.settings.user_agent}
        if api_key:
            headers["X-API-Key"] = api_key
        return headers

    def fetch(
        self,
        location: str,
        destination: Path,
        api_key: str | None = None,
        progress: Optional[ProgressCallback] = None,
        cancel_event: threading.Event | None = None,
    ) -> DownloadedArchive:
        url = self.settings.url_for(location)
        destination = Path(destination)
        logger.info("Downloading %s -> %s", url, destination)

        try:
            response = self.session.get(
                url,
                headers=self._headers(api_key),
                stream=True,
                timeout=self.settings.download_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Download of {url} failed: {exc}") from exc

        try:
            if not 200 <= response.status_code < 300:
                reason = getattr(response, "reason", "") or ""
                raise UnexpectedStatus(
                    f"HTTP {response.status_code} {reason}".strip() + f" for {url}",
                    status_code=response.status_code,
                )
            total = declared_length(response.headers)
            written = self._stream(response, destination, total, progress, cancel_event)
        finally:
            response.close()

        logger.info("Downloaded %d bytes to %s", written, destination)
        return DownloadedArchive(path=destination, written_bytes=written, total_bytes=total)

    def _stream(
        self,
        response,
        destination: Path,
        total: int | None,
        progress: Optional[ProgressCallback],
        cancel_event: threading.Event | None,
    ) -> int:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            handle = destination.open("wb")
        except OSError as exc:
            raise WriteError(f"Cannot open {destination} for writing: {exc}") from exc

        written = 0
        try:
            with handle:
                for chunk in response.iter_content(chunk_size=self.settings.chunk_size):
                    if cancel_event is not None and cancel_event.is_set():
                        raise PipelineCancelled(f"Download cancelled after {written} bytes")
                    if not chunk:
                        continue
                    try:
                        handle.write(chunk)
                    except OSError as exc:
                        raise WriteError(f"Writing {destination} failed after {written} bytes: {exc}") from exc
                    written += len(chunk)
                    if progress is not None:
                        progress(DownloadProgress(written_bytes=written, total_bytes=total))
                    logger.debug("Downloaded %d/%s bytes", written, total if total is not None else "?")
            if total is not None and written != total:
                raise TransportError(f"Stream ended after {written} of {total} declared bytes")
        except PipelineError:
            self._discard(destination)
            raise
        except requests.RequestException as exc:
            self._discard(destination)
            raise TransportError(f"Stream interrupted after {written} bytes: {exc}") from exc
        except OSError as exc:
            self._discard(destination)
            raise WriteError(f"Writing {destination} failed: {exc}") from exc
        except BaseException:
            # Interrupts and progress-callback errors propagate unchanged.
            self._discard(destination)
            raise
        return written

    @staticmethod
    def _discard(destination: Path) -> None:
        if not remove_quietly(destination):
            logger.warning("Could not remove partial download %s", destination)
        else:
            logger.debug("Removed partial download %s", destination)
