"""
Persistence of linked AT Protocol accounts.

One row per user. Tokens live in an encrypted ``session_data`` blob; the
DID, handle and PDS URL are stored in the clear so status queries never need
to decrypt anything. Deleting a connection only removes this local linkage.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from skillsync.clients.sqlite_store import SQLiteStore
from skillsync.models import Connection, ConnectionStatus
from skillsync.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_optional(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ConnectionStore(SQLiteStore):
    """Save, look up and remove a user's AT Protocol connection."""

    SCHEMA = (
        """
        CREATE TABLE IF NOT EXISTS user_atp_connections (
            user_id TEXT PRIMARY KEY,
            did TEXT NOT NULL,
            handle TEXT,
            pds_url TEXT NOT NULL,
            session_data TEXT NOT NULL,
            sync_enabled INTEGER NOT NULL DEFAULT 1,
            last_sync_at TEXT,
            connected_at TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
    )

    def __init__(self, db_path: str, cipher: TokenCipherService) -> None:
        self._cipher = cipher
        super().__init__(db_path)

    def save(self, connection: Connection) -> None:
        """Insert or replace the user's connection; ``sync_enabled`` survives reconnects."""
        now = _now_iso()
        session_data = self._cipher.encrypt_json(
            {
                "accessJwt": connection.access_token,
                "refreshJwt": connection.refresh_token,
            }
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO user_atp_connections
                    (user_id, did, handle, pds_url, session_data, sync_enabled,
                     connected_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, 1, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    did = excluded.did,
                    handle = excluded.handle,
                    pds_url = excluded.pds_url,
                    session_data = excluded.session_data,
                    connected_at = excluded.connected_at,
                    updated_at = excluded.updated_at
                """,
                (
                    connection.user_id,
                    connection.did,
                    connection.handle,
                    connection.pds_url,
                    session_data,
                    connection.connected_at.isoformat(),
                    now,
                    now,
                ),
            )
        logger.info("Stored AT Protocol connection for user %s (%s)", connection.user_id, connection.did)

    def get(self, user_id: str) -> Optional[Connection]:
        """Return the full connection, tokens included. For internal use only."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT user_id, did, handle, pds_url, session_data, connected_at
                FROM user_atp_connections WHERE user_id = ?
                """,
                (user_id,),
            ).fetchone()
        if not row:
            return None

        session = self._cipher.decrypt_json(row["session_data"])
        return Connection(
            user_id=row["user_id"],
            did=row["did"],
            handle=row["handle"] or "",
            pds_url=row["pds_url"],
            access_token=session["accessJwt"],
            refresh_token=session["refreshJwt"],
            connected_at=_parse_optional(row["connected_at"]) or datetime.now(timezone.utc),
        )

    def status(self, user_id: str) -> ConnectionStatus:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT did, handle, pds_url, sync_enabled, last_sync_at, connected_at
                FROM user_atp_connections WHERE user_id = ?
                """,
                (user_id,),
            ).fetchone()
        if not row:
            return ConnectionStatus(connected=False)
        return ConnectionStatus(
            connected=True,
            did=row["did"],
            handle=row["handle"] or None,
            pds_url=row["pds_url"],
            connected_at=_parse_optional(row["connected_at"]),
            sync_enabled=bool(row["sync_enabled"]),
            last_sync_at=_parse_optional(row["last_sync_at"]),
        )

    def delete(self, user_id: str) -> bool:
        """Remove the local linkage. Data on the PDS is left untouched."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM user_atp_connections WHERE user_id = ?",
                (user_id,),
            )
        removed = cursor.rowcount > 0
        if removed:
            logger.info("Removed AT Protocol connection for user %s", user_id)
        return removed

    def update_tokens(self, user_id: str, *, access_token: str, refresh_token: str) -> None:
        session_data = self._cipher.encrypt_json(
            {"accessJwt": access_token, "refreshJwt": refresh_token}
        )
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE user_atp_connections
                SET session_data = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (session_data, _now_iso(), user_id),
            )

    def set_sync_enabled(self, user_id: str, enabled: bool) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE user_atp_connections
                SET sync_enabled = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (1 if enabled else 0, _now_iso(), user_id),
            )
        return cursor.rowcount > 0

    def update_last_sync(self, user_id: str) -> None:
        now = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE user_atp_connections
                SET last_sync_at = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (now, now, user_id),
            )


__all__ = ["ConnectionStore"]
