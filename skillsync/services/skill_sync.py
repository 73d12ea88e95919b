"""
Push locally authored skills to the user's PDS.

Every record is pushed independently: a failure is logged into the result and
the remaining records are still attempted. Nothing is retried within one
invocation.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from skillsync.clients.atproto_oauth import AtprotoOAuthClient, token_expiry
from skillsync.clients.pds_records import PdsRecordClient, PdsRecordError
from skillsync.clients.skill_repository import SkillRepository
from skillsync.core.config import AtprotoSettings
from skillsync.core.errors import (
    InvalidInputError,
    NotConnectedError,
    SessionExpiredError,
    TokenExchangeError,
    UpstreamUnavailableError,
)
from skillsync.models import Connection, SkillRecord, SyncResult
from skillsync.services.connections import ConnectionStore

logger = logging.getLogger(__name__)

_TID_ALPHABET = "234567abcdefghijklmnopqrstuvwxyz"
_TID_LENGTH = 13


def record_key_for(record_id: str) -> str:
    """Derive a stable, TID-shaped record key from a local record id."""
    digest = hashlib.sha256(record_id.encode("utf-8")).digest()
    # TIDs keep the top bit clear.
    value = int.from_bytes(digest[:8], "big") & ((1 << 63) - 1)
    chars = []
    for _ in range(_TID_LENGTH):
        chars.append(_TID_ALPHABET[value & 0x1F])
        value >>= 5
    return "".join(reversed(chars))


def build_skill_record(collection: str, skill: SkillRecord) -> Dict[str, Any]:
    """Map a local skill onto the collection's record shape, dropping empty fields."""
    record: Dict[str, Any] = {
        "$type": collection,
        "skillName": skill.name,
        "skillId": skill.skill_id,
        "category": skill.category,
        "mastery": skill.mastery,
        "rank": skill.rank,
        "evidence": skill.evidence,
        "createdAt": skill.created_at or datetime.now(timezone.utc).isoformat(),
        "updatedAt": skill.updated_at,
        "sourceId": skill.id,
    }
    return {key: value for key, value in record.items() if value is not None}


class SkillSyncService:
    """Sync a user's skills to the ``skill_collection`` on their PDS."""

    _REFRESH_WINDOW = timedelta(seconds=60)

    def __init__(
        self,
        *,
        settings: AtprotoSettings,
        connections: ConnectionStore,
        skills: SkillRepository,
        oauth_client: AtprotoOAuthClient,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._connections = connections
        self._skills = skills
        self._oauth = oauth_client
        self._transport = transport

    async def sync_all(self, user_id: str) -> SyncResult:
        """Push every local skill of ``user_id``; raises when not connected."""
        connection = self._connections.get(user_id)
        if connection is None:
            raise NotConnectedError("Not connected to AT Protocol.")

        connection = await self._ensure_fresh_session(connection)
        records = self._skills.list_for_user(user_id)
        result = await self._push_records(connection, records)
        self._connections.update_last_sync(user_id)

        logger.info(
            "Synced skills for user %s: attempted=%s succeeded=%s failed=%s",
            user_id,
            result.attempted,
            result.succeeded,
            result.failed,
        )
        return result

    async def sync_one(self, user_id: str, record_id: str) -> SyncResult:
        """Push one skill; silently skipped when the user has not opted in."""
        status = self._connections.status(user_id)
        if not status.connected or not status.sync_enabled:
            return SyncResult(skipped=1)

        record = self._skills.get_for_user(user_id, record_id)
        if record is None:
            raise InvalidInputError("Unknown skill record.", reason="unknown_record")

        connection = self._connections.get(user_id)
        if connection is None:
            return SyncResult(skipped=1)
        connection = await self._ensure_fresh_session(connection)
        return await self._push_records(connection, [record])

    async def _ensure_fresh_session(self, connection: Connection) -> Connection:
        expires_at = token_expiry(connection.access_token)
        now = datetime.now(timezone.utc)
        if expires_at is None or expires_at > now + self._REFRESH_WINDOW:
            return connection

        try:
            tokens = await self._oauth.refresh_token(
                pds_url=connection.pds_url, refresh_token=connection.refresh_token
            )
        except (TokenExchangeError, UpstreamUnavailableError) as exc:
            logger.warning("Session refresh failed for user %s: %s", connection.user_id, exc)
            raise SessionExpiredError(
                "AT Protocol session expired; reconnect required."
            ) from exc

        self._connections.update_tokens(
            connection.user_id,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )
        connection.access_token = tokens.access_token
        connection.refresh_token = tokens.refresh_token
        logger.info("Refreshed AT Protocol session for user %s", connection.user_id)
        return connection

    async def _push_records(
        self, connection: Connection, records: Iterable[SkillRecord]
    ) -> SyncResult:
        records = list(records)
        result = SyncResult()
        if not records:
            return result

        semaphore = asyncio.Semaphore(self._settings.sync_concurrency)
        async with PdsRecordClient(
            pds_url=connection.pds_url,
            access_token=connection.access_token,
            repo=connection.did,
            timeout=self._settings.http_timeout_seconds,
            transport=self._transport,
        ) as client:

            async def _bounded(record: SkillRecord) -> Tuple[str, Optional[str]]:
                async with semaphore:
                    return await self._push_one(client, record)

            outcomes: List[Tuple[str, Optional[str]]] = await asyncio.gather(
                *(_bounded(record) for record in records)
            )

        for record, (action, reason) in zip(records, outcomes):
            if reason is None:
                result.record_success(action)
            else:
                result.record_failure(record.id, reason)
        return result

    async def _push_one(
        self, client: PdsRecordClient, record: SkillRecord
    ) -> Tuple[str, Optional[str]]:
        collection = self._settings.skill_collection
        rkey = record_key_for(record.id)
        payload = build_skill_record(collection, record)
        try:
            existing = await client.get_record(collection=collection, rkey=rkey)
            if existing is None:
                await client.create_record(collection=collection, rkey=rkey, record=payload)
                return "created", None
            await client.put_record(collection=collection, rkey=rkey, record=payload)
            return "updated", None
        except (PdsRecordError, httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to sync skill %s: %s", record.id, exc)
            return "error", str(exc) or exc.__class__.__name__
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error syncing skill %s", record.id)
            return "error", exc.__class__.__name__


__all__ = ["SkillSyncService", "build_skill_record", "record_key_for"]
