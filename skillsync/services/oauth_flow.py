"""
Connect and callback halves of the AT Protocol OAuth handshake.

``initiate`` resolves the handle, records a PKCE-protected attempt and hands
back the authorization URL. ``complete`` consumes that attempt, exchanges the
code for tokens and stores the resulting connection. ``complete`` is the only
place a connection is ever created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from skillsync.clients.atproto_oauth import AtprotoOAuthClient, decode_token_subject
from skillsync.clients.pds_resolver import PdsResolver, normalize_handle
from skillsync.core.config import AtprotoSettings
from skillsync.core.errors import (
    AuthorizationDeniedError,
    InvalidInputError,
    InvalidOrExpiredStateError,
    UpstreamUnavailableError,
)
from skillsync.models import Connection
from skillsync.services.connections import ConnectionStore
from skillsync.services.oauth_state import OAuthStateStore
from skillsync.utils.pkce import derive_code_challenge, generate_code_verifier

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthorizationRequest:
    auth_url: str
    pds_url: str
    state: str


class AtprotoOAuthService:
    """Orchestrates the resolver, PKCE helpers, state store and token endpoint."""

    def __init__(
        self,
        *,
        settings: AtprotoSettings,
        resolver: PdsResolver,
        oauth_client: AtprotoOAuthClient,
        state_store: OAuthStateStore,
        connections: ConnectionStore,
    ) -> None:
        self._settings = settings
        self._resolver = resolver
        self._oauth = oauth_client
        self._states = state_store
        self._connections = connections

    def client_metadata(self) -> Dict[str, Any]:
        """Static OAuth client metadata document served at the client id URL."""
        base_url = self._settings.public_base_url
        return {
            "client_id": self._settings.client_id,
            "client_name": self._settings.client_name,
            "client_uri": base_url,
            "logo_uri": f"{base_url}{self._settings.logo_path}",
            "tos_uri": f"{base_url}{self._settings.tos_path}",
            "policy_uri": f"{base_url}{self._settings.policy_path}",
            "redirect_uris": [self._settings.redirect_uri],
            "grant_types": ["authorization_code", "refresh_token"],
            "response_types": ["code"],
            "scope": self._settings.scope,
            "token_endpoint_auth_method": "none",
            "dpop_bound_access_tokens": True,
            "application_type": "web",
        }

    async def initiate(self, *, user_id: str, handle: Optional[str]) -> AuthorizationRequest:
        """Start an authorization attempt for ``handle`` on behalf of ``user_id``."""
        if not normalize_handle(handle or ""):
            raise InvalidInputError("Handle is required.")

        try:
            pds_url = await self._resolver.resolve(handle)
        except Exception as exc:
            logger.exception("PDS resolver failed unexpectedly for %s", handle)
            raise UpstreamUnavailableError("Could not resolve PDS for handle.") from exc

        code_verifier = generate_code_verifier()
        code_challenge = derive_code_challenge(code_verifier)
        state = self._states.create(
            user_id=user_id,
            handle=handle,
            code_verifier=code_verifier,
            pds_url=pds_url,
        )
        auth_url = self._oauth.build_authorization_url(
            pds_url=pds_url, state=state, code_challenge=code_challenge
        )
        logger.info("Started AT Protocol authorization for user %s via %s", user_id, pds_url)
        return AuthorizationRequest(auth_url=auth_url, pds_url=pds_url, state=state)

    async def complete(
        self,
        *,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> Connection:
        """Finish the handshake started by :meth:`initiate` and store the connection."""
        if error:
            logger.warning("Authorization server returned error %s: %s", error, error_description)
            raise AuthorizationDeniedError(error, error_description)
        if not code or not state:
            raise InvalidInputError("Missing code or state.", reason="missing_params")

        attempt = self._states.consume(state)
        if attempt is None:
            raise InvalidOrExpiredStateError("OAuth state is invalid or has expired.")

        pds_url = attempt.pds_url or await self._resolver.resolve(attempt.handle)
        tokens = await self._oauth.exchange_authorization_code(
            pds_url=pds_url, code=code, code_verifier=attempt.code_verifier
        )
        did = decode_token_subject(tokens.access_token)

        connection = Connection(
            user_id=attempt.user_id,
            did=did,
            handle=attempt.handle,
            pds_url=pds_url,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            connected_at=datetime.now(timezone.utc),
        )
        self._connections.save(connection)
        return connection


__all__ = ["AtprotoOAuthService", "AuthorizationRequest"]
