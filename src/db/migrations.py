from __future__ import annotations

import logging
from typing import Awaitable, Callable

from src.db.connection import Database

logger = logging.getLogger(__name__)


# -----------------------------
# Migrations
# -----------------------------
async def _migration_v1(conn) -> None:
    """
    Initial schema: puzzle sessions, their submissions, the word leaderboard.
    """
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS puzzle_sessions (
            id TEXT PRIMARY KEY,
            session_key TEXT NOT NULL,
            puzzle_string TEXT NOT NULL,
            remaining_letters TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            version INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
        """
    )

    # At most one active puzzle per session key.
    await conn.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS uq_puzzle_sessions_active_key
        ON puzzle_sessions(session_key)
        WHERE is_active = 1;
        """
    )

    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS submissions (
            id TEXT PRIMARY KEY,
            session_id TEXT NOT NULL,
            word TEXT NOT NULL,
            score INTEGER NOT NULL,
            submitted_at TEXT NOT NULL,
            UNIQUE(session_id, word),
            FOREIGN KEY(session_id) REFERENCES puzzle_sessions(id) ON DELETE CASCADE
        );
        """
    )

    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS leaderboard_entries (
            word TEXT PRIMARY KEY,
            score INTEGER NOT NULL,
            created_at TEXT NOT NULL
        );
        """
    )

    # Single-row version counter guarding leaderboard read-modify-write.
    await conn.execute(
        """
        CREATE TABLE IF NOT EXISTS leaderboard_state (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            version INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
        """
    )
    await conn.execute("INSERT OR IGNORE INTO leaderboard_state (id, version) VALUES (1, 0);")


async def _migration_v2(conn) -> None:
    """
    Lookup indexes for session history and submission lists.
    """
    await conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_puzzle_sessions_key_created
        ON puzzle_sessions(session_key, created_at);
        """
    )
    await conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_submissions_session
        ON submissions(session_id, submitted_at);
        """
    )


MIGRATIONS: list[tuple[int, Callable[[object], Awaitable[None]]]] = [
    (1, _migration_v1),
    (2, _migration_v2),
]


# -----------------------------
# Runner
# -----------------------------
async def run_migrations(db: Database) -> None:
    logger.info("Running DB migrations (if needed)")

    async with db.transaction() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL DEFAULT (datetime('now'))
            );
            """
        )

        cursor = await conn.execute("SELECT MAX(version) AS v FROM schema_migrations;")
        row = await cursor.fetchone()
        current_version = int(row["v"]) if row and row["v"] is not None else 0

        for version, fn in MIGRATIONS:
            if version <= current_version:
                continue

            logger.info("Applying migration v%s", version)
            await fn(conn)
            await conn.execute(
                "INSERT INTO schema_migrations (version) VALUES (?);",
                (version,),
            )

    logger.info("DB migrations complete")
