"""Domain model exports."""

from .atproto import (
    Connection,
    ConnectionStatus,
    OAuthAttempt,
    SkillRecord,
    SyncFailure,
    SyncResult,
)

__all__ = [
    "Connection",
    "ConnectionStatus",
    "OAuthAttempt",
    "SkillRecord",
    "SyncFailure",
    "SyncResult",
]
