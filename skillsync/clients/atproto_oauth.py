"""
AT Protocol OAuth utilities.

These helpers build authorization URLs against a PDS, exchange authorization
codes for tokens and read the claims embedded in issued access tokens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
import jwt

from skillsync.core.config import AtprotoSettings
from skillsync.core.errors import (
    MalformedTokenError,
    TokenExchangeError,
    UpstreamUnavailableError,
)
from skillsync.utils.pkce import CODE_CHALLENGE_METHOD

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TokenSet:
    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)


def decode_token_claims(token: str) -> Dict[str, Any]:
    """Decode a JWT's claims without verifying its signature.

    The PDS that issued the token is the only party able to verify it; the
    claims are read here purely to learn who the token belongs to.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as exc:
        raise MalformedTokenError("Access token could not be decoded.") from exc
    if not isinstance(claims, dict):
        raise MalformedTokenError("Access token claims are not an object.")
    return claims


def decode_token_subject(token: str) -> str:
    """Return the DID carried in the token's ``sub`` claim."""
    subject = decode_token_claims(token).get("sub")
    if not isinstance(subject, str) or not subject.startswith("did:"):
        raise MalformedTokenError("Access token does not carry a DID subject.")
    return subject


def token_expiry(token: str) -> Optional[datetime]:
    """Return the token's ``exp`` claim as an aware datetime, when present."""
    try:
        exp = decode_token_claims(token).get("exp")
    except MalformedTokenError:
        return None
    if not isinstance(exp, (int, float)):
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)


class AtprotoOAuthClient:
    """Build PDS authorization URLs and talk to its token endpoint."""

    AUTHORIZE_PATH = "/oauth/authorize"
    TOKEN_PATH = "/oauth/token"

    def __init__(
        self,
        settings: AtprotoSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def build_authorization_url(
        self, *, pds_url: str, state: str, code_challenge: str
    ) -> str:
        """Construct the authorization URL for ``pds_url``."""
        params = {
            "response_type": "code",
            "client_id": self._settings.client_id,
            "redirect_uri": self._settings.redirect_uri,
            "scope": self._settings.scope,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": CODE_CHALLENGE_METHOD,
        }
        return f"{pds_url.rstrip('/')}{self.AUTHORIZE_PATH}?{urlencode(params)}"

    async def exchange_authorization_code(
        self, *, pds_url: str, code: str, code_verifier: str
    ) -> TokenSet:
        """Exchange an authorization code and its PKCE verifier for tokens."""
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._settings.redirect_uri,
            "client_id": self._settings.client_id,
            "code_verifier": code_verifier,
        }
        return await self._request_tokens(pds_url, payload)

    async def refresh_token(self, *, pds_url: str, refresh_token: str) -> TokenSet:
        """Obtain a fresh token pair using a stored refresh token."""
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self._settings.client_id,
        }
        return await self._request_tokens(pds_url, payload)

    async def _request_tokens(self, pds_url: str, payload: Dict[str, str]) -> TokenSet:
        token_url = f"{pds_url.rstrip('/')}{self.TOKEN_PATH}"
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(token_url, data=payload)
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            logger.warning(
                "Token endpoint %s rejected %s grant with status %s",
                token_url,
                payload["grant_type"],
                response.status_code,
            )
            raise TokenExchangeError(
                f"Token endpoint returned HTTP {response.status_code}."
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise TokenExchangeError("Token endpoint returned a non-JSON body.") from exc
        if not isinstance(token_payload, dict):
            raise TokenExchangeError("Token endpoint returned an unexpected body.")

        access_token = token_payload.get("access_token")
        refresh_token = token_payload.get("refresh_token")
        if not all(isinstance(token, str) and token for token in (access_token, refresh_token)):
            raise TokenExchangeError("Incomplete token payload returned from the PDS.")
        return TokenSet(access_token=access_token, refresh_token=refresh_token)


__all__ = [
    "AtprotoOAuthClient",
    "TokenSet",
    "decode_token_claims",
    "decode_token_subject",
    "token_expiry",
]
