from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from src.games.letter_pool.letters import ALPHABET, LetterMultiset
from src.utils.text import is_alphabetic

logger = logging.getLogger(__name__)


def _letter_counts(letters: str) -> list[int]:
    counts = [0] * len(ALPHABET)
    for c in letters:
        counts[ord(c) - ord("A")] += 1
    return counts


def _letter_mask(counts: list[int]) -> int:
    mask = 0
    for i, n in enumerate(counts):
        if n:
            mask |= 1 << i
    return mask


@dataclass
class _Signature:
    """All dictionary words sharing one sorted-letter signature ("ACT" -> CAT, ACT)."""

    key: str
    need: tuple[tuple[int, int], ...]  # (letter index, count) for letters used
    mask: int
    words: list[str] = field(default_factory=list)

    @classmethod
    def of(cls, key: str) -> "_Signature":
        counts = _letter_counts(key)
        need = tuple((i, n) for i, n in enumerate(counts) if n)
        return cls(key=key, need=need, mask=_letter_mask(counts))

    @property
    def length(self) -> int:
        return len(self.key)


@dataclass(frozen=True)
class WordList:
    """
    In-memory English word list loaded from a text file (one word per line).
    Designed to be loaded once at startup and shared by every puzzle.

    Words are stored uppercase. Besides membership, the list answers
    "which words can be spelled from these letters" through an index of
    sorted-letter signatures, each with a cached letter bitmask and counts.
    """

    words: frozenset[str]
    _signatures: tuple[_Signature, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_key: dict[str, _Signature] = {}
        for w in self.words:
            key = "".join(sorted(w))
            sig = by_key.get(key)
            if sig is None:
                sig = by_key[key] = _Signature.of(key)
            sig.words.append(w)

        for sig in by_key.values():
            sig.words.sort()

        # Shortest first: queries stop scanning once signatures outgrow the pool.
        ordered = sorted(by_key.values(), key=lambda s: (s.length, s.key))
        object.__setattr__(self, "_signatures", tuple(ordered))

    @classmethod
    def from_words(cls, words: Iterable[str]) -> "WordList":
        cleaned = {w.strip().upper() for w in words}
        return cls(words=frozenset(w for w in cleaned if w and is_alphabetic(w)))

    @classmethod
    def load_from_txt(cls, path: Path) -> "WordList":
        if not path.exists():
            raise FileNotFoundError(f"Word list file not found: {path}")

        # utf-8 with errors ignored to be resilient to odd characters
        with path.open("r", encoding="utf-8", errors="ignore") as f:
            wordlist = cls.from_words(f)

        logger.info(
            "Loaded %s words (%s signatures) from %s",
            len(wordlist.words),
            len(wordlist._signatures),
            path,
        )
        return wordlist

    def is_word(self, w: str) -> bool:
        return w.upper() in self.words

    def constructible_from(self, letters: LetterMultiset | str, limit: int | None = None) -> set[str]:
        """
        Words whose letters are a sub-multiset of `letters`.

        With `limit`, returns at most that many words (any subset). The result
        is empty only when no word at all can be formed.
        """
        if limit is not None and limit < 1:
            raise ValueError("limit must be a positive integer or None")

        # Anything outside A-Z ("C A T", "ſ") cannot spell a dictionary word.
        pool = "".join(c for c in str(letters) if c.isascii()).upper()
        pool = "".join(c for c in pool if c in ALPHABET)
        have = _letter_counts(pool)
        pool_mask = _letter_mask(have)
        total = len(pool)

        found: set[str] = set()
        for sig in self._signatures:
            if sig.length > total:
                break
            if sig.mask & ~pool_mask:
                continue
            if any(n > have[i] for i, n in sig.need):
                continue

            for w in sig.words:
                found.add(w)
                if limit is not None and len(found) >= limit:
                    return found
        return found

    def remaining_words(self, letters: LetterMultiset | str) -> list[str]:
        """Every constructible word, longest first, then alphabetical."""
        return sorted(self.constructible_from(letters), key=lambda w: (-len(w), w))
