from __future__ import annotations

import logging
from typing import Protocol

from src.games.letter_pool.letters import LetterMultiset

logger = logging.getLogger(__name__)

WITNESS_LIMIT = 10


class ConstructibleWords(Protocol):
    def constructible_from(self, letters: LetterMultiset | str, limit: int | None = None) -> set[str]:
        ...


class CompletionOracle:
    """Decides whether a pool still admits any dictionary word."""

    def __init__(self, wordlist: ConstructibleWords, *, limit: int = WITNESS_LIMIT) -> None:
        self._wordlist = wordlist
        self._limit = limit

    def is_complete(self, remaining: LetterMultiset) -> bool:
        if remaining.is_empty:
            return True

        witnesses = self._wordlist.constructible_from(remaining, limit=self._limit)
        logger.debug("Pool %s still spells %s word(s), e.g. %s", remaining, len(witnesses), sorted(witnesses)[:3])
        return not witnesses
