try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from skillsync.clients.pds_resolver import (
    Fallback,
    PdsResolver,
    Resolved,
    find_pds_endpoint,
    normalize_handle,
)

pytestmark = pytest.mark.anyio


def _plc_document(did: str, endpoint: str) -> dict:
    return {
        "id": did,
        "alsoKnownAs": ["at://alice.example.com"],
        "service": [
            {
                "id": "#atproto_pds",
                "type": "AtprotoPersonalDataServer",
                "serviceEndpoint": endpoint,
            }
        ],
    }


class RecordingHandler:
    def __init__(self, routes: dict[str, httpx.Response | Exception]) -> None:
        self.routes = routes
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        outcome = self.routes.get(url)
        if outcome is None:
            return httpx.Response(404)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


async def test_default_suffix_resolves_without_network(atproto_settings) -> None:
    handler = RecordingHandler({})
    resolver = PdsResolver(atproto_settings, transport=httpx.MockTransport(handler))

    resolution = await resolver.resolve_detailed("@Alice.bsky.social")

    assert resolution == Resolved(url="https://bsky.social", via="default_suffix")
    assert handler.requests == []


async def test_custom_domain_resolves_through_plc_directory(atproto_settings) -> None:
    did = "did:plc:abc123"
    handler = RecordingHandler(
        {
            "https://alice.example.com/.well-known/atproto-did": httpx.Response(
                200, text=f"{did}\n"
            ),
            f"https://plc.directory/{did}": httpx.Response(
                200, json=_plc_document(did, "https://pds.example.net/")
            ),
        }
    )
    resolver = PdsResolver(atproto_settings, transport=httpx.MockTransport(handler))

    resolution = await resolver.resolve_detailed("alice.example.com")

    assert resolution == Resolved(url="https://pds.example.net", did=did)
    assert await resolver.resolve("alice.example.com") == "https://pds.example.net"


async def test_did_web_resolves_through_did_json(atproto_settings) -> None:
    did = "did:web:carol.example.org"
    handler = RecordingHandler(
        {
            "https://carol.example.org/.well-known/atproto-did": httpx.Response(200, text=did),
            "https://carol.example.org/.well-known/did.json": httpx.Response(
                200, json=_plc_document(did, "https://self-hosted.example.org")
            ),
        }
    )
    resolver = PdsResolver(atproto_settings, transport=httpx.MockTransport(handler))

    assert await resolver.resolve("carol.example.org") == "https://self-hosted.example.org"


async def test_missing_well_known_falls_back(atproto_settings) -> None:
    resolver = PdsResolver(
        atproto_settings, transport=httpx.MockTransport(RecordingHandler({}))
    )

    resolution = await resolver.resolve_detailed("nobody.example.com")

    assert resolution == Fallback(url="https://bsky.social", reason="did_not_found")


async def test_network_error_falls_back(atproto_settings) -> None:
    handler = RecordingHandler(
        {
            "https://down.example.com/.well-known/atproto-did": httpx.ConnectError(
                "connection refused"
            )
        }
    )
    resolver = PdsResolver(atproto_settings, transport=httpx.MockTransport(handler))

    resolution = await resolver.resolve_detailed("down.example.com")

    assert isinstance(resolution, Fallback)
    assert resolution.reason == "network_error"
    assert resolution.url == "https://bsky.social"


async def test_document_without_pds_service_falls_back(atproto_settings) -> None:
    did = "did:plc:nopds"
    handler = RecordingHandler(
        {
            "https://bob.example.com/.well-known/atproto-did": httpx.Response(200, text=did),
            f"https://plc.directory/{did}": httpx.Response(
                200, json={"id": did, "service": []}
            ),
        }
    )
    resolver = PdsResolver(atproto_settings, transport=httpx.MockTransport(handler))

    resolution = await resolver.resolve_detailed("bob.example.com")

    assert resolution == Fallback(url="https://bsky.social", reason="service_not_found")


async def test_malformed_directory_response_falls_back(atproto_settings) -> None:
    did = "did:plc:garbled"
    handler = RecordingHandler(
        {
            "https://eve.example.com/.well-known/atproto-did": httpx.Response(200, text=did),
            f"https://plc.directory/{did}": httpx.Response(200, text="<html>not json</html>"),
        }
    )
    resolver = PdsResolver(atproto_settings, transport=httpx.MockTransport(handler))

    resolution = await resolver.resolve_detailed("eve.example.com")

    assert resolution == Fallback(url="https://bsky.social", reason="malformed_document")


async def test_non_did_well_known_body_falls_back(atproto_settings) -> None:
    handler = RecordingHandler(
        {
            "https://frank.example.com/.well-known/atproto-did": httpx.Response(
                200, text="<!doctype html>"
            ),
        }
    )
    resolver = PdsResolver(atproto_settings, transport=httpx.MockTransport(handler))

    assert await resolver.resolve("frank.example.com") == "https://bsky.social"


def test_find_pds_endpoint_matches_service_id_suffix() -> None:
    document = {
        "service": [
            {"id": "#other", "type": "Something", "serviceEndpoint": "https://x.example"},
            {"id": "did:plc:z#atproto_pds", "type": "Unknown", "serviceEndpoint": "https://y.example/"},
        ]
    }

    assert find_pds_endpoint(document) == "https://y.example"
    assert find_pds_endpoint({"service": "nope"}) is None


def test_normalize_handle_strips_at_and_case() -> None:
    assert normalize_handle("  @Alice.Example.COM ") == "alice.example.com"
