"""Request and response schemas for the AT Protocol endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from skillsync.models import ConnectionStatus, SyncResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConnectRequest(BaseModel):
    """Body of ``POST /atproto/connect``; a missing handle is answered with 400."""

    handle: Optional[str] = Field(None, description="Handle of the account to link.")


class ConnectResponse(_CamelModel):
    auth_url: str
    pds_url: str


class ConnectionStatusResponse(_CamelModel):
    connected: bool
    did: Optional[str] = None
    handle: Optional[str] = None
    pds_url: Optional[str] = None
    connected_at: Optional[datetime] = None
    sync_enabled: bool = False
    last_sync_at: Optional[datetime] = None

    @classmethod
    def from_status(cls, status: ConnectionStatus) -> "ConnectionStatusResponse":
        return cls(
            connected=status.connected,
            did=status.did,
            handle=status.handle,
            pds_url=status.pds_url,
            connected_at=status.connected_at,
            sync_enabled=status.sync_enabled,
            last_sync_at=status.last_sync_at,
        )


class SyncSettingsRequest(BaseModel):
    enabled: bool


class DisconnectResponse(BaseModel):
    success: bool = True


class SyncFailureResponse(_CamelModel):
    record_id: str
    reason: str


class SyncResultResponse(_CamelModel):
    attempted: int
    succeeded: int
    failed: int
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failures: List[SyncFailureResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncResultResponse":
        return cls(
            attempted=result.attempted,
            succeeded=result.succeeded,
            failed=result.failed,
            created=result.created,
            updated=result.updated,
            skipped=result.skipped,
            failures=[
                SyncFailureResponse(record_id=failure.record_id, reason=failure.reason)
                for failure in result.failures
            ],
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
