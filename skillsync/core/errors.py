"""
Error taxonomy for the AT Protocol connection and sync flows.

Each error carries a short ``reason`` code, used verbatim in the
``atp_error`` query parameter of callback redirects, and the HTTP status the
JSON endpoints answer with.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional


class AtprotoError(Exception):
    """Base class for failures surfaced by the connection and sync services."""

    reason = "unknown"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None, *, reason: Optional[str] = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.reason)
        if reason:
            self.reason = reason

    @property
    def detail(self) -> str:
        return str(self)


class InvalidInputError(AtprotoError):
    """Request is missing a required field or carries a malformed one."""

    reason = "invalid_input"
    status_code = HTTPStatus.BAD_REQUEST


class InvalidOrExpiredStateError(AtprotoError):
    """OAuth state is unknown, expired or was already used."""

    reason = "invalid_state"
    status_code = HTTPStatus.BAD_REQUEST


class AuthorizationDeniedError(AtprotoError):
    """The authorization server declined the request."""

    reason = "access_denied"
    status_code = HTTPStatus.FORBIDDEN

    def __init__(self, error: str, description: Optional[str] = None) -> None:
        super().__init__(
            f"Authorization denied: {description or error}",
            reason=description or error,
        )
        self.error = error
        self.description = description


class TokenExchangeError(AtprotoError):
    """The token endpoint rejected the grant."""

    reason = "token_exchange_failed"
    status_code = HTTPStatus.BAD_GATEWAY


class MalformedTokenError(AtprotoError):
    """The access token's claims could not be decoded."""

    reason = "malformed_token"
    status_code = HTTPStatus.BAD_GATEWAY


class NotConnectedError(AtprotoError):
    """The user has not linked an AT Protocol account."""

    reason = "not_connected"
    status_code = HTTPStatus.BAD_REQUEST


class SessionExpiredError(AtprotoError):
    """The stored session can no longer be refreshed; the user must reconnect."""

    reason = "session_expired"
    status_code = HTTPStatus.UNAUTHORIZED


class UpstreamUnavailableError(AtprotoError):
    """An external AT Protocol service could not be reached."""

    reason = "upstream_unavailable"
    status_code = HTTPStatus.BAD_GATEWAY


__all__ = [
    "AtprotoError",
    "AuthorizationDeniedError",
    "InvalidInputError",
    "InvalidOrExpiredStateError",
    "MalformedTokenError",
    "NotConnectedError",
    "SessionExpiredError",
    "TokenExchangeError",
    "UpstreamUnavailableError",
]
