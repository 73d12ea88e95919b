"""Public schema exports."""

from .atproto import (
    ConnectRequest,
    ConnectResponse,
    ConnectionStatusResponse,
    DisconnectResponse,
    SyncFailureResponse,
    SyncResultResponse,
    SyncSettingsRequest,
)

__all__ = [
    "ConnectRequest",
    "ConnectResponse",
    "ConnectionStatusResponse",
    "DisconnectResponse",
    "SyncFailureResponse",
    "SyncResultResponse",
    "SyncSettingsRequest",
]
