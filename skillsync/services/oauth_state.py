"""
SQLite-backed storage for in-flight OAuth attempts.

Each attempt is keyed by an unguessable state token and can be consumed
exactly once. Consumption is a single ``DELETE ... RETURNING`` statement, so
concurrent callbacks racing on the same token see at most one success.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from skillsync.clients.sqlite_store import SQLiteStore
from skillsync.models import OAuthAttempt

logger = logging.getLogger(__name__)

STATE_TOKEN_BYTES = 32


class OAuthStateStore(SQLiteStore):
    """Persist single-use OAuth attempts with a short expiry."""

    SCHEMA = (
        """
        CREATE TABLE IF NOT EXISTS oauth_state (
            id TEXT PRIMARY KEY,
            state TEXT NOT NULL UNIQUE,
            code_verifier TEXT NOT NULL,
            handle TEXT NOT NULL,
            pds_url TEXT,
            user_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_oauth_state_expires ON oauth_state (expires_at)",
    )

    def __init__(self, db_path: str, ttl_seconds: int = 600) -> None:
        self._ttl = ttl_seconds
        super().__init__(db_path)

    def create(
        self,
        *,
        user_id: str,
        handle: str,
        code_verifier: str,
        pds_url: str | None = None,
    ) -> str:
        """Store a new attempt and return its state token."""
        self.prune_expired()
        state = secrets.token_urlsafe(STATE_TOKEN_BYTES)
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=self._ttl)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO oauth_state
                    (id, state, code_verifier, handle, pds_url, user_id, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    uuid4().hex,
                    state,
                    code_verifier,
                    handle,
                    pds_url,
                    user_id,
                    now.isoformat(timespec="microseconds"),
                    expires_at.isoformat(timespec="microseconds"),
                ),
            )
        return state

    def consume(self, state: str) -> Optional[OAuthAttempt]:
        """Atomically take the attempt for ``state``.

        Returns ``None`` when the token is unknown, already consumed or
        expired. Expired rows are removed as a side effect.
        """
        if not state:
            return None
        with self._immediate_transaction() as conn:
            rows = conn.execute(
                """
                DELETE FROM oauth_state WHERE state = ?
                RETURNING state, code_verifier, handle, pds_url, user_id,
                          created_at, expires_at
                """,
                (state,),
            ).fetchall()
        if not rows:
            return None
        row = rows[0]

        attempt = OAuthAttempt(
            state=row["state"],
            user_id=row["user_id"],
            handle=row["handle"],
            code_verifier=row["code_verifier"],
            pds_url=row["pds_url"],
            created_at=_parse_timestamp(row["created_at"]),
            expires_at=_parse_timestamp(row["expires_at"]),
        )
        if attempt.is_expired():
            logger.info("Rejected expired OAuth state for user %s", attempt.user_id)
            return None
        return attempt

    def prune_expired(self) -> int:
        """Delete attempts that expired without being consumed."""
        threshold = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM oauth_state WHERE expires_at < ?",
                (threshold,),
            )
        return cursor.rowcount

    def count(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM oauth_state").fetchone()
        return int(row["total"])


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = ["OAuthStateStore"]
