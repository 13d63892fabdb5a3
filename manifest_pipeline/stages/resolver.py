from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

import requests

from manifest_pipeline.errors import InvalidEnvelope, RemoteRejected, RemoteUnavailable
from manifest_pipeline.settings import Settings

from .base import ManifestDescriptor

logger = logging.getLogger(__name__)

SUCCESS_ERROR_CODE = 1


def _string_map(value: Any, field_name: str) -> Dict[str, str]:
    if not isinstance(value, dict):
        raise InvalidEnvelope(f"Response.{field_name} is not an object")
    out: Dict[str, str] = {}
    for lang, path in value.items():
        if not isinstance(path, str) or not path:
            raise InvalidEnvelope(f"Response.{field_name}.{lang} is not a path string")
        out[str(lang)] = path
    return out


def _message(payload: Mapping[str, Any]) -> str:
    message = payload.get("Message")
    return message if isinstance(message, str) else ""


def parse_envelope(payload: Any) -> ManifestDescriptor:
    """Validate a decoded metadata envelope and build the descriptor from it."""
    if not isinstance(payload, dict):
        raise InvalidEnvelope("Metadata response is not a JSON object")

    error_code = payload.get("ErrorCode")
    if isinstance(error_code, bool) or not isinstance(error_code, int):
        raise InvalidEnvelope("Metadata response has no integer ErrorCode")
    if error_code != SUCCESS_ERROR_CODE:
        raise RemoteRejected(_message(payload), error_code=error_code)

    body = payload.get("Response")
    if not isinstance(body, dict):
        raise InvalidEnvelope("Metadata response has no Response object")
    version = body.get("version")
    if not isinstance(version, str):
        raise InvalidEnvelope("Response.version is missing or not a string")

    archive_locations = _string_map(body.get("mobileWorldContentPaths"), "mobileWorldContentPaths")
    json_locations: Mapping[str, str] = {}
    if body.get("jsonWorldContentPaths") is not None:
        json_locations = _string_map(body["jsonWorldContentPaths"], "jsonWorldContentPaths")

    return ManifestDescriptor(version=version, archive_locations=archive_locations, json_locations=json_locations)


class MetadataResolver:
    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            "X-API-Key": api_key,
            "User-Agent": self.settings.user_agent,
            "accept": "application/json",
        }

    def resolve(self, api_key: str) -> ManifestDescriptor:
        url = self.settings.url_for(self.settings.manifest_endpoint)
        logger.info("Requesting manifest metadata from %s", url)
        try:
            response = self.session.get(url, headers=self._headers(api_key), timeout=self.settings.request_timeout)
        except requests.RequestException as exc:
            raise RemoteUnavailable(f"Metadata request to {url} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            if not 200 <= response.status_code < 300:
                raise RemoteUnavailable(f"Metadata endpoint returned HTTP {response.status_code}") from exc
            raise InvalidEnvelope(f"Metadata response is not valid JSON: {exc}") from exc

        if not 200 <= response.status_code < 300:
            # Refusals (bad key, throttling) arrive as envelopes on error statuses.
            if isinstance(payload, dict) and isinstance(payload.get("ErrorCode"), int):
                if payload["ErrorCode"] != SUCCESS_ERROR_CODE:
                    raise RemoteRejected(_message(payload), error_code=payload["ErrorCode"])
            raise RemoteUnavailable(f"Metadata endpoint returned HTTP {response.status_code}")

        descriptor = parse_envelope(payload)
        logger.info(
            "Manifest version %s resolved (%d languages)", descriptor.version, len(descriptor.archive_locations)
        )
        return descriptor
