import pytest
import requests

from conftest import DummyResponse, DummySession, envelope
from manifest_pipeline.errors import InvalidEnvelope, RemoteRejected, RemoteUnavailable
from manifest_pipeline.stages.resolver import MetadataResolver, parse_envelope

MANIFEST_URL = "https://www.bungie.net/Platform/Destiny2/Manifest/"


def _resolver(settings, response):
    session = DummySession({MANIFEST_URL: response})
    return MetadataResolver(settings, session=session), session


@pytest.mark.parametrize("version", ["1", "229134.24.09.10.1700-1-bnet.56963", ""])
def test_resolve_returns_envelope_version(settings, version):
    resolver, _ = _resolver(settings, DummyResponse(json_data=envelope(version=version)))
    descriptor = resolver.resolve("secret")
    assert descriptor.version == version
    assert descriptor.location_for("en") == "/common/destiny2_content/sqlite/en/world.content"
    assert descriptor.json_locations["en"].endswith("world.json")


def test_resolve_sends_credential_header(settings):
    resolver, session = _resolver(settings, DummyResponse(json_data=envelope()))
    resolver.resolve("abc123")
    url, kwargs = session.calls[0]
    assert url == MANIFEST_URL
    assert kwargs["headers"]["X-API-Key"] == "abc123"
    assert kwargs["timeout"] == settings.request_timeout


def test_rejected_envelope_surfaces_message_verbatim(settings):
    message = "The API key you provided is invalid or expired."
    resolver, _ = _resolver(settings, DummyResponse(json_data=envelope(error_code=2101, message=message)))
    with pytest.raises(RemoteRejected) as excinfo:
        resolver.resolve("bad")
    assert str(excinfo.value) == message
    assert excinfo.value.error_code == 2101


def test_rejection_on_error_status_is_still_remote_rejected(settings):
    payload = envelope(error_code=2102, message="Key expired")
    resolver, _ = _resolver(settings, DummyResponse(status_code=401, json_data=payload))
    with pytest.raises(RemoteRejected, match="^Key expired$"):
        resolver.resolve("bad")


def test_transport_failure_is_remote_unavailable(settings):
    resolver, _ = _resolver(settings, requests.ConnectionError("DNS failure"))
    with pytest.raises(RemoteUnavailable):
        resolver.resolve("k")


def test_server_error_without_envelope_is_remote_unavailable(settings):
    resolver, _ = _resolver(settings, DummyResponse(status_code=503, json_data=ValueError("html page")))
    with pytest.raises(RemoteUnavailable, match="503"):
        resolver.resolve("k")


def test_non_json_body_is_invalid_envelope(settings):
    resolver, _ = _resolver(settings, DummyResponse(json_data=ValueError("Expecting value")))
    with pytest.raises(InvalidEnvelope):
        resolver.resolve("k")


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"Message": "no code"},
        {"ErrorCode": "1", "Response": {}},
        {"ErrorCode": 1},
        {"ErrorCode": 1, "Response": {"mobileWorldContentPaths": {"en": "/a"}}},
        {"ErrorCode": 1, "Response": {"version": "1", "mobileWorldContentPaths": ["/a"]}},
        {"ErrorCode": 1, "Response": {"version": "1", "mobileWorldContentPaths": {"en": 5}}},
    ],
)
def test_malformed_envelopes_are_invalid(payload):
    with pytest.raises(InvalidEnvelope):
        parse_envelope(payload)


def test_missing_language_is_invalid_envelope():
    descriptor = parse_envelope(envelope(paths={"de": "/de.content"}))
    assert descriptor.languages == ["de"]
    with pytest.raises(InvalidEnvelope, match="'en'"):
        descriptor.location_for("en")


def test_null_message_is_reported_as_empty(settings):
    with pytest.raises(RemoteRejected) as excinfo:
        parse_envelope({"ErrorCode": 2101, "Message": None})
    assert str(excinfo.value) == ""
    assert excinfo.value.error_code == 2101

    payload = {"ErrorCode": 2101, "Message": None}
    resolver, _ = _resolver(settings, DummyResponse(status_code=401, json_data=payload))
    with pytest.raises(RemoteRejected, match="^$"):
        resolver.resolve("bad")
