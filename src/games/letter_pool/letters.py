from __future__ import annotations

import random
import string
from collections import Counter
from typing import Iterable

PUZZLE_LENGTH = 14
VOWEL_DRAWS = 3

VOWELS = "AEIOU"
# Frequency-ordered. Shares E, A, O, I, U with VOWELS.
COMMON_LETTERS = "ETAOINSHRDLUCMFWY"

ALPHABET = string.ascii_uppercase


class LetterMultiset:
    """
    Remaining letters of a pool.

    Keeps the letters in their original pool order so the remaining string
    reads like the pool with used letters taken out (first occurrence first).
    """

    def __init__(self, letters: Iterable[str] = "") -> None:
        self._letters: list[str] = list("".join(letters).upper())
        self._counts: Counter[str] = Counter(self._letters)

    def __len__(self) -> int:
        return len(self._letters)

    def __str__(self) -> str:
        return "".join(self._letters)

    def __repr__(self) -> str:
        return f"LetterMultiset({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LetterMultiset):
            return self._counts == other._counts
        return NotImplemented

    @property
    def is_empty(self) -> bool:
        return not self._letters

    def count(self, letter: str) -> int:
        return self._counts.get(letter.upper(), 0)

    def counts(self) -> dict[str, int]:
        return {c: n for c, n in self._counts.items() if n > 0}

    def contains(self, word: str) -> bool:
        need = Counter(word.upper())
        return all(self._counts.get(c, 0) >= n for c, n in need.items())

    def consume(self, word: str) -> None:
        word = word.upper()
        if not self.contains(word):
            raise ValueError(f"Letters of {word!r} are not available in {str(self)!r}")

        for c in word:
            self._letters.remove(c)
            self._counts[c] -= 1
            if self._counts[c] == 0:
                del self._counts[c]

    def copy(self) -> "LetterMultiset":
        return LetterMultiset(self._letters)


class LetterPool:
    """Generates puzzle strings: 3 vowels + 11 common letters, shuffled."""

    def __init__(self, rng: random.Random | None = None, *, length: int = PUZZLE_LENGTH) -> None:
        if length < VOWEL_DRAWS:
            raise ValueError(f"Pool length must be at least {VOWEL_DRAWS}")
        self._rng = rng or random.Random()
        self._length = length

    @property
    def length(self) -> int:
        return self._length

    def generate(self) -> str:
        letters = [self._rng.choice(VOWELS) for _ in range(VOWEL_DRAWS)]
        letters += [self._rng.choice(COMMON_LETTERS) for _ in range(self._length - VOWEL_DRAWS)]
        self._rng.shuffle(letters)
        return "".join(letters)
