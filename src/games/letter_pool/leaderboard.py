from __future__ import annotations

from datetime import datetime
from typing import Iterable

from src.domain.models import LeaderboardEntry, utc_now

LEADERBOARD_SIZE = 10


def _rank_key(entry: LeaderboardEntry) -> tuple[int, datetime]:
    return (-entry.score, entry.created_at)


class Leaderboard:
    """
    Top-N best words across all puzzles.

    - A word enters at most once; the first occurrence wins for good.
    - Ordered by score desc, then created_at asc (older entry wins a tie).
    - Inserting past capacity evicts whatever ranks below position N.
    """

    def __init__(self, entries: Iterable[LeaderboardEntry] = (), *, capacity: int = LEADERBOARD_SIZE) -> None:
        self._capacity = capacity
        self._entries: list[LeaderboardEntry] = sorted(entries, key=_rank_key)

    @property
    def entries(self) -> list[LeaderboardEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def words(self) -> set[str]:
        return {e.word for e in self._entries}

    def min_score(self) -> int | None:
        if not self._entries:
            return None
        return min(e.score for e in self._entries)

    def offer(self, word: str, score: int, *, now: datetime | None = None) -> bool:
        """
        Offer a newly accepted word. Returns True if the board changed.
        """
        if word in self.words():
            return False

        lowest = self.min_score()
        if len(self._entries) >= self._capacity and lowest is not None and score < lowest:
            return False

        entry = LeaderboardEntry(word=word, score=score, created_at=now or utc_now())
        before = list(self._entries)

        # Stable sort keeps the earlier entry ahead on an exact (score, created_at) tie.
        self._entries.append(entry)
        self._entries.sort(key=_rank_key)
        del self._entries[self._capacity:]

        return self._entries != before
