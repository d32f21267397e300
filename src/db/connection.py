from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Sequence

import aiosqlite

logger = logging.getLogger(__name__)


class Database:
    """
    Small async SQLite wrapper shared by all repositories.

    - One connection per process
    - WAL + foreign keys
    - Every statement (reads included) is serialized on an asyncio.Lock: the
      connection is shared, so a read must not see an open transaction's rows.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._db_path

    @property
    def conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Database connection is not initialized. Call connect() first.")
        return self._conn

    async def connect(self) -> None:
        if self._conn is not None:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Connecting to SQLite: %s", self._db_path)
        self._conn = await aiosqlite.connect(self._db_path.as_posix())
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA foreign_keys = ON;")
        await self._conn.execute("PRAGMA journal_mode = WAL;")
        await self._conn.execute("PRAGMA busy_timeout = 5000;")  # ms
        await self._conn.commit()

    async def close(self) -> None:
        if self._conn is None:
            return
        logger.info("Closing SQLite connection")
        await self._conn.close()
        self._conn = None

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        async with self._lock:
            try:
                await self.conn.execute(sql, params)
            except Exception:
                # A failed DML statement leaves its implicit transaction open
                await self.conn.rollback()
                raise
            await self.conn.commit()

    async def fetchone(self, sql: str, params: Sequence[Any] = ()) -> aiosqlite.Row | None:
        async with self._lock:
            async with self.conn.execute(sql, params) as cursor:
                return await cursor.fetchone()

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        async with self._lock:
            async with self.conn.execute(sql, params) as cursor:
                return list(await cursor.fetchall())

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        BEGIN IMMEDIATE ... COMMIT, rolled back if the block raises.

        Use the yielded connection inside the block; calling execute() or a
        fetch method from within would wait on the lock this block holds.
        """
        async with self._lock:
            await self.conn.execute("BEGIN IMMEDIATE;")
            try:
                yield self.conn
            except BaseException:
                await self.conn.rollback()
                raise
            else:
                await self.conn.commit()
