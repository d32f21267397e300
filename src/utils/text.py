from __future__ import annotations

import re

_WORD_RE = re.compile(r"^[A-Z]+$")


def normalize_word(raw: str) -> str:
    """
    Strip and uppercase. Non-ASCII characters are left as they are:
    str.upper() would turn "ſ" into "S" and "ß" into "SS".
    """
    word = raw.strip()
    return word.upper() if word.isascii() else word


def is_alphabetic(word: str) -> bool:
    """ASCII A-Z only (str.isalpha() also accepts accented letters)."""
    return bool(_WORD_RE.match(word))
