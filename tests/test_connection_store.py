try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import sqlite3

import pytest

from skillsync.models import Connection
from skillsync.services.connections import ConnectionStore
from skillsync.services.token_cipher import TokenCipherService


@pytest.fixture()
def store(db_path: str) -> ConnectionStore:
    return ConnectionStore(db_path, cipher=TokenCipherService(secret="secret-key"))


def _connection(**overrides) -> Connection:
    values = {
        "user_id": "user-1",
        "did": "did:plc:alice123",
        "handle": "alice.bsky.social",
        "pds_url": "https://bsky.social",
        "access_token": "access-1",
        "refresh_token": "refresh-1",
    }
    values.update(overrides)
    return Connection(**values)


def test_status_without_connection(store: ConnectionStore) -> None:
    status = store.status("user-1")

    assert status.connected is False
    assert status.handle is None
    assert store.get("user-1") is None


def test_save_then_get_and_status(store: ConnectionStore) -> None:
    store.save(_connection())

    connection = store.get("user-1")
    assert connection is not None
    assert connection.access_token == "access-1"
    assert connection.refresh_token == "refresh-1"
    assert connection.did == "did:plc:alice123"

    status = store.status("user-1")
    assert status.connected is True
    assert status.handle == "alice.bsky.social"
    assert status.connected_at is not None
    assert status.sync_enabled is True
    assert status.last_sync_at is None
    assert not hasattr(status, "access_token")


def test_tokens_are_encrypted_at_rest(store: ConnectionStore, db_path: str) -> None:
    store.save(_connection(access_token="very-secret-access"))

    with sqlite3.connect(db_path) as conn:
        (session_data,) = conn.execute(
            "SELECT session_data FROM user_atp_connections WHERE user_id = ?",
            ("user-1",),
        ).fetchone()

    assert "very-secret-access" not in session_data


def test_reconnect_overwrites_and_keeps_sync_preference(store: ConnectionStore) -> None:
    store.save(_connection())
    store.set_sync_enabled("user-1", False)

    store.save(
        _connection(did="did:plc:alice-new", handle="alice.example.com", access_token="access-2")
    )

    connection = store.get("user-1")
    assert connection.did == "did:plc:alice-new"
    assert connection.handle == "alice.example.com"
    assert connection.access_token == "access-2"
    assert store.status("user-1").sync_enabled is False


def test_connections_are_per_user(store: ConnectionStore) -> None:
    store.save(_connection())

    assert store.get("user-2") is None
    assert store.status("user-2").connected is False


def test_delete_removes_only_local_linkage(store: ConnectionStore) -> None:
    store.save(_connection())

    assert store.delete("user-1") is True
    assert store.status("user-1").connected is False
    assert store.delete("user-1") is False


def test_update_tokens_and_last_sync(store: ConnectionStore) -> None:
    store.save(_connection())

    store.update_tokens("user-1", access_token="access-2", refresh_token="refresh-2")
    store.update_last_sync("user-1")

    connection = store.get("user-1")
    assert (connection.access_token, connection.refresh_token) == ("access-2", "refresh-2")
    assert store.status("user-1").last_sync_at is not None


def test_set_sync_enabled_reports_missing_connection(store: ConnectionStore) -> None:
    assert store.set_sync_enabled("user-1", True) is False
