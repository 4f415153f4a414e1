"""Skill profile persistence: SQLite-backed store plus an in-memory one."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from aimtrainer.engine.profile import UserSkillProfile, create_initial_profile

logger = logging.getLogger(__name__)

DEFAULT_PLAYER = "default"


class ProfileStore(Protocol):
    """Read/write contract for one player's profile blob."""

    def load(self) -> UserSkillProfile:
        ...

    def save(self, profile: UserSkillProfile) -> None:
        ...


def profile_from_blob(blob: Optional[str]) -> UserSkillProfile:
    """Decode a stored blob, substituting a fresh profile when it is unusable."""
    if not blob:
        return create_initial_profile()
    try:
        data = json.loads(blob)
        if not isinstance(data, dict):
            raise ValueError("profile blob is not an object")
        return UserSkillProfile.from_dict(data)
    except ValueError as e:
        logger.warning("Discarding corrupt skill profile: %s", e)
        return create_initial_profile()


class MemoryProfileStore:
    """Keeps the serialized profile in memory, same encoding as on disk."""

    def __init__(self, blob: Optional[str] = None):
        self.blob = blob

    def load(self) -> UserSkillProfile:
        return profile_from_blob(self.blob)

    def save(self, profile: UserSkillProfile) -> None:
        self.blob = json.dumps(profile.to_dict())


class SqliteProfileStore:
    def __init__(self, db_path: Optional[Path] = None, player_id: str = DEFAULT_PLAYER):
        self.db_path = db_path or (Path.home() / ".aimtrainer" / "profiles.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.player_id = player_id
        self._init_db()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS skill_profiles (
                    player_id TEXT PRIMARY KEY,
                    profile TEXT NOT NULL,
                    sessions_analyzed INTEGER DEFAULT 0,
                    updated_at TEXT NOT NULL
                )
            """)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def load(self) -> UserSkillProfile:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT profile FROM skill_profiles WHERE player_id = ?",
                (self.player_id,),
            ).fetchone()
        if not row:
            logger.info("No stored profile for %s, starting fresh", self.player_id)
            return create_initial_profile()
        return profile_from_blob(row[0])

    def save(self, profile: UserSkillProfile) -> None:
        now = datetime.now().isoformat()
        with self._conn() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO skill_profiles
                   (player_id, profile, sessions_analyzed, updated_at)
                   VALUES (?, ?, ?, ?)""",
                (self.player_id, json.dumps(profile.to_dict()), profile.sessions_analyzed, now),
            )

    def list_players(self) -> list[str]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT player_id FROM skill_profiles ORDER BY player_id"
            ).fetchall()
        return [r[0] for r in rows]

    def delete(self) -> None:
        with self._conn() as conn:
            conn.execute(
                "DELETE FROM skill_profiles WHERE player_id = ?",
                (self.player_id,),
            )
