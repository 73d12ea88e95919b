"""Shared plumbing for the SQLite-backed stores."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator


class SQLiteStore:
    """Base class owning the database file, connections and schema bootstrap.

    Subclasses list their ``CREATE`` statements in ``SCHEMA``.
    """

    SCHEMA: Iterable[str] = ()

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _immediate_transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements under a write lock taken up front.

        ``BEGIN IMMEDIATE`` makes competing writers wait on the busy timeout
        instead of failing when they try to upgrade a shared lock.
        """
        conn = self._connect()
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            for statement in self.SCHEMA:
                conn.execute(statement)


__all__ = ["SQLiteStore"]
