# Area: Profile
"""
sketchroom._profile.repo_progress — Progress Repository
=======================================================

SQLite storage for the local player's progress on this device.

Tables:
    player_progress  one ProgressState per player id; badges and stats
                     are JSON columns
    reward_log       one row per round or game already rewarded, so a
                     restarted client does not grant the same edge twice

The schema version lives in ``PRAGMA user_version``; opening a database
at an older version reapplies ``schema.sql`` (every statement there is
``IF NOT EXISTS``) and bumps the version.
"""

import json
import logging
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator, List, Set, Tuple

from .progress import ProgressState

logger = logging.getLogger("sketchroom.profile")

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
SCHEMA_VERSION = 2

# (kind, room_code, game_number, round_number)
GrantKey = Tuple[str, str, int, int]


class ProgressRepository:
    """
    Loads and saves player progress and the reward log.

    Each call opens its own connection and runs in one transaction, so
    a repository can be shared by the sync loop and the action handlers.
    """

    def __init__(self, db_path: str = "sketchroom.db", initialize: bool = True):
        self.db_path = db_path
        if initialize:
            self._ensure_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success and rolls back on error."""
        with closing(sqlite3.connect(self.db_path)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version >= SCHEMA_VERSION:
                return
            conn.executescript(SCHEMA_PATH.read_text())
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        logger.info(f"Progress database at {self.db_path} (schema v{version} -> v{SCHEMA_VERSION})")

    # ── Progress ─────────────────────────────────────────────

    def load(self, player_id: str) -> ProgressState:
        """
        Load a player's progress.

        Args:
            player_id: Player identifier

        Returns:
            Stored progress, or a fresh ProgressState if none is stored
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM player_progress WHERE player_id = ?", (player_id,),
            ).fetchone()
        if row is None:
            return ProgressState(player_id=player_id)
        return ProgressState.from_dict({
            "player_id": row["player_id"],
            "xp": row["xp"],
            "level": row["level"],
            "currency": row["currency"],
            "badges": json.loads(row["badges"] or "[]"),
            "stats": json.loads(row["stats"] or "{}"),
        })

    def save(self, progress: ProgressState) -> None:
        """Insert or replace a player's progress."""
        data = progress.to_dict()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO player_progress
                (player_id, xp, level, currency, badges, stats, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (
                    progress.player_id,
                    progress.xp,
                    progress.level,
                    progress.currency,
                    json.dumps(data["badges"]),
                    json.dumps(data["stats"]),
                ),
            )

    def get_all_player_ids(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT player_id FROM player_progress ORDER BY updated_at DESC"
            ).fetchall()
        return [row["player_id"] for row in rows]

    # ── Reward log ───────────────────────────────────────────

    def log_grant(self, player_id: str, key: GrantKey, xp: int, currency: int) -> bool:
        """
        Record that ``key`` was rewarded for ``player_id``.

        Returns:
            False if the same key was already logged
        """
        kind, room_code, game_number, round_number = key
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO reward_log
                (player_id, kind, room_code, game_number, round_number, xp, currency)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (player_id, kind, room_code, game_number, round_number, xp, currency),
            )
            return cursor.rowcount == 1

    def rewarded_keys(self, player_id: str) -> Set[GrantKey]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT kind, room_code, game_number, round_number "
                "FROM reward_log WHERE player_id = ?",
                (player_id,),
            ).fetchall()
        return {
            (row["kind"], row["room_code"], row["game_number"], row["round_number"])
            for row in rows
        }
