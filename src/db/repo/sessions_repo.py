from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

import aiosqlite

from src.db.connection import Database
from src.domain.errors import ConcurrencyConflict
from src.domain.models import Submission
from src.games.letter_pool.letters import LetterMultiset
from src.games.letter_pool.session import PuzzleSession


class SessionsRepository:
    """
    Puzzle sessions keyed by an external session key.

    Every write is conditional on the version the caller loaded; a stale
    write raises ConcurrencyConflict and changes nothing.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_current(self, session_key: str) -> Optional[PuzzleSession]:
        """Newest session for the key, active or not."""
        row = await self._db.fetchone(
            """
            SELECT id, session_key, puzzle_string, remaining_letters, is_active, version, created_at
            FROM puzzle_sessions
            WHERE session_key = ?
            ORDER BY created_at DESC, rowid DESC
            LIMIT 1
            """,
            (session_key,),
        )
        if not row:
            return None

        submissions = await self._db.fetchall(
            """
            SELECT id, word, score, submitted_at
            FROM submissions
            WHERE session_id = ?
            ORDER BY submitted_at ASC, rowid ASC
            """,
            (row["id"],),
        )
        return self._session_from_rows(row, submissions)

    @staticmethod
    def _session_from_rows(row: aiosqlite.Row, submissions: list[aiosqlite.Row]) -> PuzzleSession:
        return PuzzleSession(
            id=str(row["id"]),
            session_key=str(row["session_key"]),
            puzzle_string=str(row["puzzle_string"]),
            remaining=LetterMultiset(str(row["remaining_letters"])),
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            submissions=[
                Submission(
                    id=str(s["id"]),
                    word=str(s["word"]),
                    score=int(s["score"]),
                    submitted_at=datetime.fromisoformat(s["submitted_at"]),
                )
                for s in submissions
            ],
            version=int(row["version"]),
        )

    async def insert_session(self, session: PuzzleSession) -> None:
        try:
            await self._db.execute(
                """
                INSERT INTO puzzle_sessions (id, session_key, puzzle_string, remaining_letters, is_active, version, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.session_key,
                    session.puzzle_string,
                    str(session.remaining),
                    int(session.is_active),
                    session.version,
                    session.created_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            # Another writer created an active puzzle for this key first.
            raise ConcurrencyConflict(f"Active puzzle already exists for {session.session_key}") from e

    async def _bump(self, conn: aiosqlite.Connection, session: PuzzleSession) -> None:
        cursor = await conn.execute(
            """
            UPDATE puzzle_sessions
            SET remaining_letters = ?,
                is_active = ?,
                version = version + 1,
                updated_at = datetime('now')
            WHERE id = ? AND version = ?
            """,
            (str(session.remaining), int(session.is_active), session.id, session.version),
        )
        if cursor.rowcount != 1:
            raise ConcurrencyConflict(f"Puzzle {session.id} changed since version {session.version}")

    async def save_submission(self, session: PuzzleSession, submission: Submission) -> None:
        """
        Persist an accepted submission together with the session's new
        remaining letters and status, in one transaction.
        """
        async with self._db.transaction() as conn:
            await self._bump(conn, session)
            await conn.execute(
                """
                INSERT INTO submissions (id, session_id, word, score, submitted_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    submission.id,
                    session.id,
                    submission.word,
                    submission.score,
                    submission.submitted_at.isoformat(),
                ),
            )
        session.version += 1

    async def save_status(self, session: PuzzleSession) -> None:
        async with self._db.transaction() as conn:
            await self._bump(conn, session)
        session.version += 1
