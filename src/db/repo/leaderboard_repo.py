from __future__ import annotations

from datetime import datetime
from typing import Iterable

from src.db.connection import Database
from src.domain.errors import ConcurrencyConflict
from src.domain.models import LeaderboardEntry


class LeaderboardRepository:
    """
    Best-words leaderboard: rows in leaderboard_entries plus a single
    version counter in leaderboard_state.

    The bound itself is enforced by the caller; this repo only applies a
    computed diff (added / removed rows) if nobody else wrote in between.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def load(self) -> tuple[list[LeaderboardEntry], int]:
        state = await self._db.fetchone("SELECT version FROM leaderboard_state WHERE id = 1")
        version = int(state["version"]) if state else 0

        rows = await self._db.fetchall(
            """
            SELECT word, score, created_at
            FROM leaderboard_entries
            ORDER BY score DESC, created_at ASC
            """
        )
        entries = [
            LeaderboardEntry(
                word=str(r["word"]),
                score=int(r["score"]),
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]
        return entries, version

    async def get_top(self, *, limit: int = 10) -> list[LeaderboardEntry]:
        entries, _ = await self.load()
        return entries[: max(0, int(limit))]

    async def save(
        self,
        *,
        added: Iterable[LeaderboardEntry],
        removed: Iterable[str],
        expected_version: int,
    ) -> int:
        """
        Apply the diff atomically. Returns the new version.
        """
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE leaderboard_state
                SET version = version + 1, updated_at = datetime('now')
                WHERE id = 1 AND version = ?
                """,
                (expected_version,),
            )
            if cursor.rowcount != 1:
                raise ConcurrencyConflict(f"Leaderboard changed since version {expected_version}")

            await conn.executemany(
                "DELETE FROM leaderboard_entries WHERE word = ?",
                [(w,) for w in removed],
            )
            await conn.executemany(
                "INSERT INTO leaderboard_entries (word, score, created_at) VALUES (?, ?, ?)",
                [(e.word, e.score, e.created_at.isoformat()) for e in added],
            )
        return expected_version + 1
