"""
Handle to Personal Data Server resolution.

Resolution is best-effort: any failure along the way degrades to the default
network's PDS rather than surfacing an error to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import httpx

from skillsync.core.config import AtprotoSettings

logger = logging.getLogger(__name__)

PDS_SERVICE_TYPE = "AtprotoPersonalDataServer"
PDS_SERVICE_ID_SUFFIX = "#atproto_pds"


@dataclass(frozen=True, slots=True)
class Resolved:
    """The handle was resolved to a concrete PDS."""

    url: str
    did: Optional[str] = None
    via: str = "did_document"


@dataclass(frozen=True, slots=True)
class Fallback:
    """Resolution could not be completed; ``url`` is the default network."""

    url: str
    reason: str


Resolution = Union[Resolved, Fallback]


def normalize_handle(handle: str) -> str:
    cleaned = handle.strip()
    if cleaned.startswith("@"):
        cleaned = cleaned[1:]
    return cleaned.lower()


def find_pds_endpoint(did_document: Dict[str, Any]) -> Optional[str]:
    """Return the PDS ``serviceEndpoint`` declared in a DID document, if any."""
    services = did_document.get("service")
    if not isinstance(services, list):
        return None
    for service in services:
        if not isinstance(service, dict):
            continue
        service_id = str(service.get("id", ""))
        if service.get("type") == PDS_SERVICE_TYPE or service_id.endswith(PDS_SERVICE_ID_SUFFIX):
            endpoint = service.get("serviceEndpoint")
            if isinstance(endpoint, str) and endpoint.startswith(("https://", "http://")):
                return endpoint.rstrip("/")
    return None


class PdsResolver:
    """Map a user-supplied handle to the base URL of its PDS."""

    WELL_KNOWN_DID_PATH = "/.well-known/atproto-did"

    def __init__(
        self,
        settings: AtprotoSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def resolve(self, handle: str) -> str:
        resolution = await self.resolve_detailed(handle)
        return resolution.url

    async def resolve_detailed(self, handle: str) -> Resolution:
        """Resolve ``handle`` and report how the URL was obtained."""
        default_url = self._settings.default_pds_url
        cleaned = normalize_handle(handle)
        if not cleaned:
            return Fallback(url=default_url, reason="empty_handle")

        if cleaned.endswith(self._settings.default_handle_suffix):
            return Resolved(url=default_url, via="default_suffix")

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                did = await self._fetch_did(client, cleaned)
                if did is None:
                    return Fallback(url=default_url, reason="did_not_found")
                endpoint = await self._fetch_pds_endpoint(client, did)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("PDS resolution for %s failed: %s", cleaned, exc)
            return Fallback(url=default_url, reason="network_error")
        except ValueError as exc:
            logger.warning("PDS resolution for %s returned malformed data: %s", cleaned, exc)
            return Fallback(url=default_url, reason="malformed_document")

        if endpoint is None:
            return Fallback(url=default_url, reason="service_not_found")
        logger.info("Resolved handle %s to PDS %s", cleaned, endpoint)
        return Resolved(url=endpoint, did=did)

    async def _fetch_did(self, client: httpx.AsyncClient, handle: str) -> Optional[str]:
        response = await client.get(f"https://{handle}{self.WELL_KNOWN_DID_PATH}")
        if response.status_code != httpx.codes.OK:
            return None
        did = response.text.strip()
        if not did.startswith("did:"):
            return None
        return did

    async def _fetch_pds_endpoint(
        self, client: httpx.AsyncClient, did: str
    ) -> Optional[str]:
        if did.startswith("did:plc:"):
            url = f"{self._settings.plc_directory_url}/{did}"
        elif did.startswith("did:web:"):
            url = f"https://{did[len('did:web:'):]}/.well-known/did.json"
        else:
            return None

        response = await client.get(url)
        if response.status_code != httpx.codes.OK:
            return None
        document = response.json()
        if not isinstance(document, dict):
            raise ValueError("DID document is not a JSON object.")
        return find_pds_endpoint(document)


__all__ = [
    "Fallback",
    "PdsResolver",
    "Resolution",
    "Resolved",
    "find_pds_endpoint",
    "normalize_handle",
]
