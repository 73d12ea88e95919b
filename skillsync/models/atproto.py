"""
Domain models for AT Protocol connections, OAuth attempts and skill sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class OAuthAttempt:
    """A single in-flight authorization request, keyed by its state token."""

    state: str
    user_id: str
    handle: str
    code_verifier: str
    created_at: datetime
    expires_at: datetime
    pds_url: Optional[str] = None

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) >= self.expires_at


@dataclass(slots=True)
class Connection:
    """A user's linked AT Protocol account and its OAuth tokens."""

    user_id: str
    did: str
    handle: str
    pds_url: str
    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    connected_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class ConnectionStatus:
    """Token-free view of a connection, safe to hand to API callers."""

    connected: bool
    did: Optional[str] = None
    handle: Optional[str] = None
    pds_url: Optional[str] = None
    connected_at: Optional[datetime] = None
    sync_enabled: bool = False
    last_sync_at: Optional[datetime] = None


@dataclass(slots=True)
class SkillRecord:
    """A locally authored skill, read from the relational store."""

    id: str
    name: str
    category: Optional[str] = None
    skill_id: Optional[str] = None
    mastery: Optional[int] = None
    rank: Optional[int] = None
    evidence: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class SyncFailure:
    record_id: str
    reason: str


@dataclass(slots=True)
class SyncResult:
    """Aggregate outcome of one sync invocation; never persisted."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failures: List[SyncFailure] = field(default_factory=list)

    def record_success(self, action: str) -> None:
        self.attempted += 1
        self.succeeded += 1
        if action == "created":
            self.created += 1
        elif action == "updated":
            self.updated += 1

    def record_failure(self, record_id: str, reason: str) -> None:
        self.attempted += 1
        self.failed += 1
        self.failures.append(SyncFailure(record_id=record_id, reason=reason))


__all__ = [
    "Connection",
    "ConnectionStatus",
    "OAuthAttempt",
    "SkillRecord",
    "SyncFailure",
    "SyncResult",
    "utcnow",
]
