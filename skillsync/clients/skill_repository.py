"""Read access to the locally authored skills of a user."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from skillsync.clients.sqlite_store import SQLiteStore
from skillsync.models import SkillRecord

_SELECT_USER_SKILLS = """
    SELECT us.id, us.skill_id, s.name AS skill_name,
           COALESCE(us.category, s.category) AS category,
           us.mastery, us.rank, us.evidence, us.created_at, us.updated_at
    FROM user_skills us
    JOIN skills s ON us.skill_id = s.id
    WHERE us.user_id = ?
"""


class SkillRepository(SQLiteStore):
    """Query helpers over the ``skills`` catalogue and ``user_skills`` rows."""

    SCHEMA = (
        """
        CREATE TABLE IF NOT EXISTS skills (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            category TEXT,
            created_at TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS user_skills (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            skill_id TEXT NOT NULL REFERENCES skills(id),
            category TEXT,
            mastery INTEGER,
            rank INTEGER,
            evidence TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_user_skills_user ON user_skills (user_id)",
    )

    def list_for_user(self, user_id: str) -> List[SkillRecord]:
        """Return the user's skills in the order they were recorded."""
        with self._connect() as conn:
            rows = conn.execute(
                _SELECT_USER_SKILLS + " ORDER BY us.rowid ASC",
                (user_id,),
            ).fetchall()
        return [self._to_record(row) for row in rows]

    def get_for_user(self, user_id: str, record_id: str) -> Optional[SkillRecord]:
        with self._connect() as conn:
            row = conn.execute(
                _SELECT_USER_SKILLS + " AND us.id = ?",
                (user_id, record_id),
            ).fetchone()
        if not row:
            return None
        return self._to_record(row)

    def add_user_skill(
        self,
        *,
        user_id: str,
        name: str,
        category: str | None = None,
        mastery: int | None = None,
        rank: int | None = None,
        evidence: str | None = None,
        record_id: str | None = None,
    ) -> SkillRecord:
        """Insert a skill for ``user_id``, reusing a catalogue entry with the same name."""
        now = datetime.now(timezone.utc).isoformat()
        record_id = record_id or uuid4().hex
        with self._connect() as conn:
            existing = conn.execute(
                "SELECT id FROM skills WHERE name = ?", (name,)
            ).fetchone()
            if existing:
                skill_id = existing["id"]
            else:
                skill_id = uuid4().hex
                conn.execute(
                    "INSERT INTO skills (id, name, category, created_at) VALUES (?, ?, ?, ?)",
                    (skill_id, name, category, now),
                )
            conn.execute(
                """
                INSERT INTO user_skills
                    (id, user_id, skill_id, category, mastery, rank, evidence,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (record_id, user_id, skill_id, category, mastery, rank, evidence, now, now),
            )
        return SkillRecord(
            id=record_id,
            name=name,
            category=category,
            skill_id=skill_id,
            mastery=mastery,
            rank=rank,
            evidence=evidence,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _to_record(row) -> SkillRecord:
        return SkillRecord(
            id=row["id"],
            name=row["skill_name"],
            category=row["category"],
            skill_id=row["skill_id"],
            mastery=row["mastery"],
            rank=row["rank"],
            evidence=row["evidence"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


__all__ = ["SkillRepository"]
