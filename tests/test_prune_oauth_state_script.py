"""Tests for the OAuth state maintenance script."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from scripts import prune_oauth_state
from skillsync.services.oauth_state import OAuthStateStore


def _seed(db_path: Path, *, live: int, expired: int) -> None:
    store = OAuthStateStore(str(db_path), ttl_seconds=600)
    for index in range(live):
        store.create(user_id=f"user-{index}", handle="alice.bsky.social", code_verifier="v" * 43)
    with sqlite3.connect(db_path) as conn:
        for index in range(expired):
            conn.execute(
                "INSERT INTO oauth_state"
                " (id, state, code_verifier, handle, user_id, created_at, expires_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    f"expired-{index}",
                    f"expired-state-{index}",
                    "v" * 43,
                    "bob.bsky.social",
                    "user-x",
                    "2020-01-01T00:00:00.000000+00:00",
                    "2020-01-01T00:10:00.000000+00:00",
                ),
            )
    assert store.count() == live + expired


def test_prune_removes_only_expired_attempts(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db_path = tmp_path / "app.db"
    _seed(db_path, live=2, expired=3)

    exit_code = prune_oauth_state.main(["prune", "--db-path", str(db_path)])

    assert exit_code == prune_oauth_state.EXIT_OK
    assert "Removed 3 expired OAuth attempt(s)." in capsys.readouterr().out
    assert OAuthStateStore(str(db_path)).count() == 2


def test_count_reports_stored_attempts(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    db_path = tmp_path / "app.db"
    _seed(db_path, live=1, expired=0)

    exit_code = prune_oauth_state.main(["count", "--db-path", str(db_path)])

    assert exit_code == prune_oauth_state.EXIT_OK
    assert "1 OAuth attempt(s) stored." in capsys.readouterr().out


def test_unusable_database_path_is_a_runtime_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")

    exit_code = prune_oauth_state.main(["count", "--db-path", str(blocker / "app.db")])

    assert exit_code == prune_oauth_state.EXIT_RUNTIME_ERROR
    assert "Unable to open OAuth state store" in capsys.readouterr().err


def test_unknown_command_exits_via_argparse() -> None:
    with pytest.raises(SystemExit):
        prune_oauth_state.main(["vacuum"])
