from __future__ import annotations

import asyncio
import logging

from src.db.repo.leaderboard_repo import LeaderboardRepository
from src.domain.errors import ConcurrencyConflict
from src.domain.models import LeaderboardEntry, utc_now
from src.games.letter_pool.leaderboard import LEADERBOARD_SIZE, Leaderboard

logger = logging.getLogger(__name__)

MAX_CONFLICT_RETRIES = 3


class LeaderboardService:
    """
    High-level leaderboard operations.

    The board is one shared resource: load -> offer -> save runs under a
    process-wide lock, and the repo's version check catches writers from
    other processes (retried with a fresh load).
    """

    def __init__(
        self,
        *,
        leaderboard_repo: LeaderboardRepository,
        capacity: int = LEADERBOARD_SIZE,
    ) -> None:
        self._leaderboard_repo = leaderboard_repo
        self._capacity = capacity
        self._lock = asyncio.Lock()

    async def get_top(self, *, limit: int = LEADERBOARD_SIZE) -> list[LeaderboardEntry]:
        return await self._leaderboard_repo.get_top(limit=min(limit, self._capacity))

    async def record(self, word: str, score: int) -> bool:
        """
        Offer an accepted word. Returns True if the board changed.
        """
        async with self._lock:
            for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
                entries, version = await self._leaderboard_repo.load()
                board = Leaderboard(entries, capacity=self._capacity)
                before = {e.word for e in entries}

                if not board.offer(word, score, now=utc_now()):
                    return False

                after = board.words()
                added = [e for e in board.entries if e.word not in before]
                removed = sorted(before - after)

                try:
                    await self._leaderboard_repo.save(added=added, removed=removed, expected_version=version)
                except ConcurrencyConflict:
                    logger.warning("Leaderboard write conflict (attempt %s/%s)", attempt, MAX_CONFLICT_RETRIES)
                    continue

                logger.info("Leaderboard updated: +%s -%s", [e.word for e in added], removed)
                return True

        raise ConcurrencyConflict("Leaderboard update failed after retries")
