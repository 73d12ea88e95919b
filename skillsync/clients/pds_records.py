"""Record operations against a user's PDS over XRPC."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx


class PdsRecordError(Exception):
    """Raised when an XRPC repo call fails."""

    def __init__(self, method: str, status_code: int, error: str | None, message: str | None) -> None:
        self.method = method
        self.status_code = status_code
        self.error = error
        detail = error or f"HTTP {status_code}"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(f"{method} failed ({detail})")


class PdsRecordClient:
    """Authenticated client for the ``com.atproto.repo`` XRPC methods.

    Use as an async context manager; one underlying HTTP client is shared by
    every call made while the context is open.
    """

    def __init__(
        self,
        *,
        pds_url: str,
        access_token: str,
        repo: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = f"{pds_url.rstrip('/')}/xrpc"
        self._repo = repo
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "PdsRecordClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def repo(self) -> str:
        return self._repo

    async def get_record(self, *, collection: str, rkey: str) -> Optional[Dict[str, Any]]:
        """Fetch a record, returning ``None`` when the PDS reports it missing."""
        method = "com.atproto.repo.getRecord"
        response = await self._client.get(
            f"/{method}",
            params={"repo": self._repo, "collection": collection, "rkey": rkey},
        )
        if response.status_code == httpx.codes.OK:
            return response.json()
        error, message = _error_fields(response)
        if response.status_code in (httpx.codes.BAD_REQUEST, httpx.codes.NOT_FOUND) and (
            error in (None, "RecordNotFound")
        ):
            return None
        raise PdsRecordError(method, response.status_code, error, message)

    async def create_record(
        self, *, collection: str, rkey: str, record: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._procedure(
            "com.atproto.repo.createRecord",
            {"repo": self._repo, "collection": collection, "rkey": rkey, "record": record},
        )

    async def put_record(
        self, *, collection: str, rkey: str, record: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await self._procedure(
            "com.atproto.repo.putRecord",
            {"repo": self._repo, "collection": collection, "rkey": rkey, "record": record},
        )

    async def _procedure(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.post(f"/{method}", json=body)
        if response.status_code != httpx.codes.OK:
            error, message = _error_fields(response)
            raise PdsRecordError(method, response.status_code, error, message)
        return response.json()


def _error_fields(response: httpx.Response) -> tuple[str | None, str | None]:
    try:
        payload = response.json()
    except ValueError:
        return None, None
    if not isinstance(payload, dict):
        return None, None
    return payload.get("error"), payload.get("message")


__all__ = ["PdsRecordClient", "PdsRecordError"]
