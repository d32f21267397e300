import random
from collections import Counter
from pathlib import Path

import pytest

from src.games.letter_pool.letters import LetterMultiset, LetterPool
from src.services.wordlist import WordList

WORDS_TXT = Path(__file__).resolve().parent.parent / "src" / "assets" / "words_en.txt"


def test_load_from_txt_keeps_plain_words(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text("cat\nDog\n\n  tea  \ndon't\ncafé\nx2\n", encoding="utf-8")

    wordlist = WordList.load_from_txt(path)

    assert wordlist.words == {"CAT", "DOG", "TEA"}


def test_load_from_txt_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        WordList.load_from_txt(tmp_path / "nope.txt")


def test_is_word_is_case_insensitive(wordlist):
    assert wordlist.is_word("CAT")
    assert wordlist.is_word("cat")
    assert not wordlist.is_word("TAC")


def test_constructible_from_finds_exactly_the_spellable_words(wordlist):
    found = wordlist.constructible_from("TACE")

    assert found == {"A", "AT", "CAT", "ACT", "TEA", "EAT"}


def test_constructible_from_respects_duplicate_letters(wordlist):
    assert "CATCH" not in wordlist.constructible_from("CATH")
    assert "CATCH" in wordlist.constructible_from("CATCH")
    assert "ZOO" not in wordlist.constructible_from("ZO")


def test_constructible_from_accepts_multiset(wordlist):
    assert wordlist.constructible_from(LetterMultiset("HENS")) == {"HEN"}


def test_constructible_from_ignores_non_letters(wordlist):
    assert wordlist.constructible_from("C A T") == wordlist.constructible_from("CAT")
    assert wordlist.constructible_from("c-a-t!") == {"A", "AT", "CAT", "ACT"}
    # "ſ" is not an S here.
    assert wordlist.constructible_from("ſat") == {"A", "AT"}


def test_constructible_from_limit(wordlist):
    found = wordlist.constructible_from("CATSHEDRINOLMU", limit=3)
    assert len(found) == 3
    assert found <= wordlist.constructible_from("CATSHEDRINOLMU")


def test_constructible_from_empty_when_nothing_fits(wordlist):
    assert wordlist.constructible_from("Z") == set()
    assert wordlist.constructible_from("Z", limit=10) == set()
    assert wordlist.constructible_from("") == set()


def test_constructible_from_rejects_non_positive_limit(wordlist):
    with pytest.raises(ValueError):
        wordlist.constructible_from("CAT", limit=0)


def test_remaining_words_longest_first(wordlist):
    assert wordlist.remaining_words("TACE") == ["ACT", "CAT", "EAT", "TEA", "AT", "A"]


def test_index_agrees_with_a_plain_counter_scan():
    wordlist = WordList.load_from_txt(WORDS_TXT)
    rng = random.Random(11)

    for _ in range(20):
        pool = LetterPool(rng).generate()
        have = Counter(pool)
        expected = {w for w in wordlist.words if not Counter(w) - have}
        assert wordlist.constructible_from(pool) == expected
