"""Fakes shared by the test-suite: token builder and an in-memory PDS."""

from __future__ import annotations

import json
import time
from typing import Any
from urllib.parse import parse_qs

import httpx
import jwt

TOKEN_SIGNING_KEY = "skillsync-test-signing-key-0123456789abcdef"


def make_access_token(did: str = "did:plc:alice123", *, expires_in: int | None = 3600) -> str:
    claims: dict[str, Any] = {"sub": did, "scope": "atproto transition:generic"}
    if expires_in is not None:
        claims["exp"] = int(time.time()) + expires_in
    return jwt.encode(claims, TOKEN_SIGNING_KEY, algorithm="HS256")


class FakePds:
    """Minimal PDS: an OAuth token endpoint plus the repo record XRPC methods."""

    def __init__(self, *, did: str = "did:plc:alice123") -> None:
        self.did = did
        self.access_token = make_access_token(did)
        self.refresh_token = "refresh-token-1"
        self.token_status = 200
        self.token_body: dict[str, Any] | None = None
        self.token_requests: list[dict[str, str]] = []
        self.records: dict[tuple[str, str], dict[str, Any]] = {}
        self.fail_source_ids: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if path == "/oauth/token" and request.method == "POST":
            return self._token(request)
        if path.startswith("/xrpc/"):
            if request.headers.get("authorization") != f"Bearer {self.access_token}":
                return httpx.Response(401, json={"error": "InvalidToken", "message": "Bad token"})
            method = path[len("/xrpc/"):]
            if method == "com.atproto.repo.getRecord":
                return self._get_record(request)
            if method in ("com.atproto.repo.createRecord", "com.atproto.repo.putRecord"):
                return self._write_record(request)
        return httpx.Response(404, json={"error": "NotFound"})

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
        self.token_requests.append(form)
        if self.token_status != 200:
            return httpx.Response(self.token_status, json={"error": "invalid_grant"})
        body = self.token_body or {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": "DPoP",
            "expires_in": 3600,
            "sub": self.did,
        }
        return httpx.Response(200, json=body)

    def _get_record(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        key = (params["collection"], params["rkey"])
        if key not in self.records:
            return httpx.Response(
                400, json={"error": "RecordNotFound", "message": "Could not locate record"}
            )
        return httpx.Response(
            200,
            json={
                "uri": f"at://{self.did}/{key[0]}/{key[1]}",
                "value": self.records[key],
            },
        )

    def _write_record(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        record = body["record"]
        if record.get("sourceId") in self.fail_source_ids:
            return httpx.Response(
                500, json={"error": "InternalServerError", "message": "storage offline"}
            )
        key = (body["collection"], body["rkey"])
        self.records[key] = record
        return httpx.Response(
            200,
            json={"uri": f"at://{body['repo']}/{key[0]}/{key[1]}", "cid": "bafyfake"},
        )
